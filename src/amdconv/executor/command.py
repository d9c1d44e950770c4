"""FFmpeg command building for conversions.

build_ffmpeg_command() applies a fixed sequence of steps to an EncodeOptions
value. Each step returns its own arguments (possibly none); the command is
their concatenation in order, so no step ever edits another step's output.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from amdconv.config.models import Codec, Container, DenoiseLevel, Preset, RunConfig
from amdconv.executor.presets import (
    DENOISE_SOFTWARE,
    DENOISE_VAAPI,
    SOFTWARE_BFRAME_ARGS,
    SOFTWARE_ENCODERS,
    SOFTWARE_PRESETS,
    TEXTURE_PRESERVE_ARGS,
    VAAPI_PRESETS,
    X264_TUNING,
    amf_preset,
    hardware_bframes,
)
from amdconv.hardware.architecture import GpuArchitecture
from amdconv.hardware.probe import Backend, CapabilityDecision

logger = logging.getLogger(__name__)

# Containers that take -movflags and need the hvc1 tag for HEVC
_MOV_FAMILY = frozenset({Container.MP4, Container.MOV})


@dataclass(frozen=True)
class EncodeOptions:
    """Everything needed to build one ffmpeg invocation."""

    input_path: Path
    output_path: Path
    codec: Codec
    container: Container
    backend: Backend
    preset: Preset = Preset.BALANCED
    architecture: GpuArchitecture = GpuArchitecture.UNKNOWN
    quality: int | None = None
    audio_bitrate: str = "128k"
    target_bitrate: int | None = None
    """Target video bitrate in kbps; replaces preset rate control when set."""

    scale: str | None = None
    crop: str | None = None
    fps: str | None = None
    trim: tuple[str, str] | None = None
    deinterlace: bool = False
    denoise: DenoiseLevel | None = None

    no_vbaq: bool = False
    no_preanalysis: bool = False
    no_opengop: bool = False
    texture_preserve: bool = False

    render_device: str | None = None
    debug: bool = False
    overwrite: bool = False
    ffmpeg_path: str = "ffmpeg"

    @classmethod
    def for_job(
        cls,
        config: RunConfig,
        decision: CapabilityDecision,
        input_path: Path,
        output_path: Path,
        *,
        render_device: str | None = None,
        target_bitrate: int | None = None,
        ffmpeg_path: str = "ffmpeg",
    ) -> EncodeOptions:
        """Combine run settings and the backend decision for one file."""
        return cls(
            input_path=input_path,
            output_path=output_path,
            codec=decision.effective_codec,
            container=config.container,
            backend=decision.backend,
            preset=config.preset,
            architecture=decision.architecture,
            quality=config.quality,
            audio_bitrate=config.audio_bitrate,
            target_bitrate=target_bitrate,
            scale=config.scale,
            crop=config.crop,
            fps=config.fps,
            trim=config.trim_range,
            deinterlace=config.deinterlace,
            denoise=config.denoise,
            no_vbaq=config.no_vbaq,
            no_preanalysis=config.no_preanalysis,
            no_opengop=config.no_opengop,
            texture_preserve=config.texture_preserve,
            render_device=render_device if decision.is_hardware else None,
            debug=config.debug,
            overwrite=config.force,
            ffmpeg_path=ffmpeg_path,
        )

    @property
    def encoder(self) -> str:
        """FFmpeg encoder name, e.g. "hevc_amf" or "libx264"."""
        if self.backend is Backend.AMF:
            return f"{self.codec.value}_amf"
        if self.backend is Backend.VAAPI:
            return f"{self.codec.value}_vaapi"
        return SOFTWARE_ENCODERS[self.codec]


def _global_args(o: EncodeOptions) -> list[str]:
    args = [o.ffmpeg_path, "-hide_banner", "-y" if o.overwrite else "-n"]
    if not o.debug:
        args.extend(["-loglevel", "error", "-stats"])
    return args


def _hwaccel_args(o: EncodeOptions) -> list[str]:
    if not o.render_device:
        return []
    if o.backend is Backend.VAAPI:
        return [
            "-hwaccel",
            "vaapi",
            "-hwaccel_device",
            o.render_device,
            "-hwaccel_output_format",
            "vaapi",
        ]
    if o.backend is Backend.AMF:
        # Decode on the GPU; frames come back to system memory for AMF
        return ["-hwaccel", "vaapi", "-hwaccel_device", o.render_device]
    return []


def _input_args(o: EncodeOptions) -> list[str]:
    args: list[str] = []
    if o.trim:
        args.extend(["-ss", o.trim[0]])
    args.extend(["-i", str(o.input_path)])
    if o.trim:
        args.extend(["-t", o.trim[1]])
    return args


def build_filter_chain(o: EncodeOptions) -> list[str]:
    """Return the video filters in application order."""
    filters: list[str] = []
    vaapi = o.backend is Backend.VAAPI
    if vaapi:
        # No-op for frames already on the GPU, uploads software-decoded ones
        filters.append("format=nv12|vaapi,hwupload")
    if o.deinterlace:
        filters.append("deinterlace_vaapi" if vaapi else "yadif")
    if o.denoise:
        filters.append((DENOISE_VAAPI if vaapi else DENOISE_SOFTWARE)[o.denoise])
    if o.crop:
        filters.append(f"crop={o.crop}")
    if o.scale:
        width, _, height = o.scale.partition("x")
        if vaapi:
            filters.append(f"scale_vaapi=w={width}:h={height}")
        else:
            filters.append(f"scale={width}:{height}")
    if o.fps:
        filters.append(f"fps={o.fps}")
    return filters


def _filter_args(o: EncodeOptions) -> list[str]:
    filters = build_filter_chain(o)
    return ["-vf", ",".join(filters)] if filters else []


def _encoder_args(o: EncodeOptions) -> list[str]:
    return ["-c:v", o.encoder]


def _target_bitrate_args(o: EncodeOptions) -> list[str]:
    kbps = o.target_bitrate
    if o.backend is Backend.AMF:
        return [
            "-rc",
            "vbr_peak",
            "-b:v",
            f"{kbps}k",
            "-maxrate",
            f"{kbps * 2}k",
            "-bufsize",
            f"{kbps * 4}k",
        ]
    if o.backend is Backend.VAAPI:
        return ["-rc_mode", "VBR", "-b:v", f"{kbps}k", "-maxrate", f"{kbps * 2}k"]
    return ["-b:v", f"{kbps}k", "-maxrate", f"{kbps * 2}k", "-bufsize", f"{kbps * 4}k"]


def _rate_control_args(o: EncodeOptions) -> list[str]:
    if o.target_bitrate is not None:
        return _target_bitrate_args(o)

    args: list[str] = []
    if o.backend is Backend.AMF:
        preset = amf_preset(o.codec, o.preset)
        args.extend(["-quality", preset.quality, "-rc", preset.rc])
        # An explicit --quality replaces the table's QP / QVBR level
        if o.quality is None:
            if preset.qp:
                qp_i, qp_p, qp_b = preset.qp
                args.extend(["-qp_i", str(qp_i), "-qp_p", str(qp_p)])
                if qp_b is not None:
                    args.extend(["-qp_b", str(qp_b)])
            if preset.qvbr_level is not None:
                args.extend(["-qvbr_quality_level", str(preset.qvbr_level)])
        if preset.maxrate:
            args.extend(["-maxrate", preset.maxrate])
        if preset.bufsize:
            args.extend(["-bufsize", preset.bufsize])
        args.extend(preset.extra)
    elif o.backend is Backend.VAAPI:
        vaapi = VAAPI_PRESETS[o.preset]
        args.extend(["-rc_mode", vaapi.rc_mode])
        if vaapi.bitrate:
            args.extend(["-b:v", vaapi.bitrate])
        if vaapi.maxrate:
            args.extend(["-maxrate", vaapi.maxrate])
        if vaapi.qp is not None and o.quality is None:
            args.extend(["-qp", str(vaapi.qp)])
        if vaapi.compression_level is not None:
            args.extend(["-compression_level", str(vaapi.compression_level)])
    else:
        software = SOFTWARE_PRESETS[o.codec][o.preset]
        if o.quality is None:
            args.extend(["-crf", str(software.crf)])
        args.extend(["-preset", software.speed])
    return args


def _quality_args(o: EncodeOptions) -> list[str]:
    if o.quality is None or o.target_bitrate is not None:
        return []
    q = o.quality
    if o.backend is Backend.AMF:
        if amf_preset(o.codec, o.preset).is_cqp:
            args = ["-qp_i", str(q), "-qp_p", str(q)]
            if o.codec is not Codec.AV1:
                args.extend(["-qp_b", str(q + 2)])
            return args
        return ["-qvbr_quality_level", str(q)]
    if o.backend is Backend.VAAPI:
        return ["-qp", str(q)]
    return ["-crf", str(q)]


def _amf_toggle_args(o: EncodeOptions) -> list[str]:
    if o.backend is not Backend.AMF:
        return []
    preset = amf_preset(o.codec, o.preset)
    toggles = (
        ("-vbaq", preset.vbaq, o.texture_preserve, o.no_vbaq),
        ("-preanalysis", preset.preanalysis, o.texture_preserve, o.no_preanalysis),
        ("-open_gop", preset.open_gop, False, o.no_opengop),
    )
    args: list[str] = []
    for flag, default, forced_on, disabled in toggles:
        if default is None:
            continue
        # --texture-preserve overrides --no-vbaq and --no-preanalysis
        enabled = forced_on or (default and not disabled)
        args.extend([flag, "1" if enabled else "0"])
    return args


def _texture_args(o: EncodeOptions) -> list[str]:
    if not o.texture_preserve:
        return []
    return list(TEXTURE_PRESERVE_ARGS[o.backend])


def _bframe_args(o: EncodeOptions) -> list[str]:
    if o.backend is Backend.SOFTWARE:
        return list(SOFTWARE_BFRAME_ARGS[o.codec])
    settings = hardware_bframes(o.architecture, o.codec)
    if settings is None:
        return []
    b_frames, refs = settings
    return ["-bf", str(b_frames), "-refs", str(refs)]


def _software_tuning_args(o: EncodeOptions) -> list[str]:
    if o.backend is Backend.SOFTWARE and o.codec is Codec.H264:
        return list(X264_TUNING)
    return []


def _tag_args(o: EncodeOptions) -> list[str]:
    # Apple players only accept HEVC tagged hvc1
    if o.codec is Codec.HEVC and o.container in _MOV_FAMILY:
        return ["-tag:v", "hvc1"]
    return []


def _audio_args(o: EncodeOptions) -> list[str]:
    encoder = "libopus" if o.container is Container.WEBM else "aac"
    return ["-c:a", encoder, "-b:a", o.audio_bitrate]


def _container_args(o: EncodeOptions) -> list[str]:
    args: list[str] = []
    if o.container in _MOV_FAMILY:
        args.extend(["-movflags", "+faststart"])
    args.extend(["-map_metadata", "0"])
    return args


def _output_args(o: EncodeOptions) -> list[str]:
    return [str(o.output_path)]


BUILD_STEPS: tuple[Callable[[EncodeOptions], list[str]], ...] = (
    _global_args,
    _hwaccel_args,
    _input_args,
    _filter_args,
    _encoder_args,
    _rate_control_args,
    _quality_args,
    _amf_toggle_args,
    _texture_args,
    _bframe_args,
    _software_tuning_args,
    _tag_args,
    _audio_args,
    _container_args,
    _output_args,
)


def build_ffmpeg_command(options: EncodeOptions) -> list[str]:
    """Build the ffmpeg argument list for one conversion.

    Args:
        options: Encode settings for the file.

    Returns:
        List of command arguments, starting with the ffmpeg executable.
    """
    cmd: list[str] = []
    for step in BUILD_STEPS:
        cmd.extend(step(options))
    logger.debug("Built ffmpeg command with encoder %s", options.encoder)
    return cmd

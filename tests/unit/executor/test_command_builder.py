"""Tests for ffmpeg command building."""

from pathlib import Path

import pytest

from amdconv.config.models import Codec, Container, DenoiseLevel, Preset, RunConfig
from amdconv.executor.command import (
    BUILD_STEPS,
    EncodeOptions,
    build_ffmpeg_command,
    build_filter_chain,
)
from amdconv.hardware.architecture import GpuArchitecture
from amdconv.hardware.probe import Backend, BackendSupport, CapabilityDecision

RENDER_NODE = "/dev/dri/renderD128"


def _options(**overrides) -> EncodeOptions:
    values = {
        "input_path": Path("in.mkv"),
        "output_path": Path("out/in.mp4"),
        "codec": Codec.H264,
        "container": Container.MP4,
        "backend": Backend.SOFTWARE,
    }
    values.update(overrides)
    return EncodeOptions(**values)


def _value_after(cmd: list[str], flag: str) -> str:
    return cmd[cmd.index(flag) + 1]


class TestFullCommands:
    """Complete argument lists for each backend."""

    def test_amf_hevc_balanced(self) -> None:
        cmd = build_ffmpeg_command(
            _options(
                codec=Codec.HEVC,
                backend=Backend.AMF,
                architecture=GpuArchitecture.RDNA2,
            )
        )
        # fmt: off
        assert cmd == [
            "ffmpeg", "-hide_banner", "-n", "-loglevel", "error", "-stats",
            "-i", "in.mkv",
            "-c:v", "hevc_amf",
            "-quality", "quality", "-rc", "hqvbr",
            "-qvbr_quality_level", "22",
            "-maxrate", "15M", "-bufsize", "24M",
            "-me_half_pel", "1", "-me_quarter_pel", "1", "-gops_per_idr", "30",
            "-vbaq", "1", "-preanalysis", "1", "-open_gop", "1",
            "-bf", "0", "-refs", "4",
            "-tag:v", "hvc1",
            "-c:a", "aac", "-b:a", "128k",
            "-movflags", "+faststart", "-map_metadata", "0",
            "out/in.mp4",
        ]
        # fmt: on

    def test_vaapi_h264_balanced(self) -> None:
        cmd = build_ffmpeg_command(
            _options(
                backend=Backend.VAAPI,
                architecture=GpuArchitecture.RDNA2,
                render_device=RENDER_NODE,
            )
        )
        # fmt: off
        assert cmd == [
            "ffmpeg", "-hide_banner", "-n", "-loglevel", "error", "-stats",
            "-hwaccel", "vaapi", "-hwaccel_device", RENDER_NODE,
            "-hwaccel_output_format", "vaapi",
            "-i", "in.mkv",
            "-vf", "format=nv12|vaapi,hwupload",
            "-c:v", "h264_vaapi",
            "-rc_mode", "VBR", "-b:v", "8M", "-maxrate", "15M",
            "-compression_level", "5",
            "-bf", "0", "-refs", "4",
            "-c:a", "aac", "-b:a", "128k",
            "-movflags", "+faststart", "-map_metadata", "0",
            "out/in.mp4",
        ]
        # fmt: on

    def test_software_h264_balanced(self) -> None:
        cmd = build_ffmpeg_command(_options())
        # fmt: off
        assert cmd == [
            "ffmpeg", "-hide_banner", "-n", "-loglevel", "error", "-stats",
            "-i", "in.mkv",
            "-c:v", "libx264",
            "-crf", "22", "-preset", "medium",
            "-bf", "3", "-refs", "6", "-b_strategy", "2", "-weightb", "1",
            "-b-pyramid", "normal",
            "-tune", "film", "-profile:v", "high", "-level", "4.1",
            "-c:a", "aac", "-b:a", "128k",
            "-movflags", "+faststart", "-map_metadata", "0",
            "out/in.mp4",
        ]
        # fmt: on

    def test_build_steps_are_concatenated_in_order(self) -> None:
        options = _options(codec=Codec.HEVC, backend=Backend.AMF)
        expected: list[str] = []
        for step in BUILD_STEPS:
            expected.extend(step(options))
        assert build_ffmpeg_command(options) == expected


class TestGlobalArgs:
    """Tests for overwrite and log level handling."""

    def test_force_overwrites(self) -> None:
        cmd = build_ffmpeg_command(_options(overwrite=True))
        assert cmd[:3] == ["ffmpeg", "-hide_banner", "-y"]

    def test_debug_keeps_ffmpeg_output(self) -> None:
        cmd = build_ffmpeg_command(_options(debug=True))
        assert "-loglevel" not in cmd
        assert "-stats" not in cmd

    def test_custom_ffmpeg_path(self) -> None:
        cmd = build_ffmpeg_command(_options(ffmpeg_path="/opt/ffmpeg/bin/ffmpeg"))
        assert cmd[0] == "/opt/ffmpeg/bin/ffmpeg"


class TestHwaccelArgs:
    """Tests for hardware decode arguments."""

    def test_amf_decodes_without_output_format(self) -> None:
        cmd = build_ffmpeg_command(
            _options(backend=Backend.AMF, render_device=RENDER_NODE)
        )
        assert cmd[6:10] == ["-hwaccel", "vaapi", "-hwaccel_device", RENDER_NODE]
        assert "-hwaccel_output_format" not in cmd

    def test_no_render_device_no_hwaccel(self) -> None:
        cmd = build_ffmpeg_command(_options(backend=Backend.AMF))
        assert "-hwaccel" not in cmd

    def test_software_ignores_render_device(self) -> None:
        cmd = build_ffmpeg_command(_options(render_device=RENDER_NODE))
        assert "-hwaccel" not in cmd


class TestInputArgs:
    """Tests for trimming."""

    def test_trim_wraps_input(self) -> None:
        cmd = build_ffmpeg_command(_options(trim=("00:01:30", "60")))
        start = cmd.index("-ss")
        assert cmd[start : start + 6] == [
            "-ss",
            "00:01:30",
            "-i",
            "in.mkv",
            "-t",
            "60",
        ]


class TestFilterChain:
    """Tests for build_filter_chain function."""

    def test_software_filters_in_order(self) -> None:
        options = _options(
            deinterlace=True,
            denoise=DenoiseLevel.MEDIUM,
            crop="1920:800:0:140",
            scale="1280x720",
            fps="30",
        )
        assert build_filter_chain(options) == [
            "yadif",
            "hqdn3d=4:3:6:4.5",
            "crop=1920:800:0:140",
            "scale=1280:720",
            "fps=30",
        ]

    def test_vaapi_filters_run_on_gpu(self) -> None:
        options = _options(
            backend=Backend.VAAPI,
            deinterlace=True,
            denoise=DenoiseLevel.HIGH,
            scale="1920x1080",
        )
        assert build_filter_chain(options) == [
            "format=nv12|vaapi,hwupload",
            "deinterlace_vaapi",
            "denoise_vaapi=denoise=16",
            "scale_vaapi=w=1920:h=1080",
        ]

    def test_aspect_preserving_scale(self) -> None:
        assert build_filter_chain(_options(scale="1280x-1")) == ["scale=1280:-1"]

    def test_no_filters(self) -> None:
        cmd = build_ffmpeg_command(_options(backend=Backend.AMF))
        assert build_filter_chain(_options(backend=Backend.AMF)) == []
        assert "-vf" not in cmd

    def test_filters_joined_with_commas(self) -> None:
        cmd = build_ffmpeg_command(_options(crop="100:100:0:0", fps="24"))
        assert _value_after(cmd, "-vf") == "crop=100:100:0:0,fps=24"


class TestRateControl:
    """Tests for preset rate control and overrides."""

    def test_amf_maxquality_uses_constant_qp(self) -> None:
        cmd = build_ffmpeg_command(
            _options(backend=Backend.AMF, preset=Preset.MAXQUALITY)
        )
        assert _value_after(cmd, "-rc") == "cqp"
        assert _value_after(cmd, "-qp_i") == "18"
        assert _value_after(cmd, "-qp_b") == "22"
        assert "-qvbr_quality_level" not in cmd

    def test_amf_av1_has_no_bframe_qp(self) -> None:
        cmd = build_ffmpeg_command(
            _options(
                codec=Codec.AV1,
                backend=Backend.AMF,
                preset=Preset.MAXQUALITY,
            )
        )
        assert _value_after(cmd, "-quality") == "high_quality"
        assert _value_after(cmd, "-qp_p") == "20"
        assert "-qp_b" not in cmd

    def test_target_bitrate_replaces_preset_on_amf(self) -> None:
        cmd = build_ffmpeg_command(
            _options(backend=Backend.AMF, target_bitrate=1061, quality=20)
        )
        assert _value_after(cmd, "-rc") == "vbr_peak"
        assert _value_after(cmd, "-b:v") == "1061k"
        assert _value_after(cmd, "-maxrate") == "2122k"
        assert _value_after(cmd, "-bufsize") == "4244k"
        assert "-quality" not in cmd
        assert "-qvbr_quality_level" not in cmd

    def test_target_bitrate_on_vaapi(self) -> None:
        cmd = build_ffmpeg_command(
            _options(backend=Backend.VAAPI, target_bitrate=500)
        )
        assert _value_after(cmd, "-rc_mode") == "VBR"
        assert _value_after(cmd, "-b:v") == "500k"
        assert _value_after(cmd, "-maxrate") == "1000k"

    def test_target_bitrate_on_software_drops_crf(self) -> None:
        cmd = build_ffmpeg_command(_options(target_bitrate=227))
        assert _value_after(cmd, "-b:v") == "227k"
        assert "-crf" not in cmd
        assert "-preset" not in cmd


class TestQualityOverride:
    """An explicit quality replaces the preset value exactly once."""

    def test_amf_vbr_preset(self) -> None:
        cmd = build_ffmpeg_command(_options(backend=Backend.AMF, quality=20))
        assert cmd.count("-qvbr_quality_level") == 1
        assert _value_after(cmd, "-qvbr_quality_level") == "20"

    def test_amf_cqp_preset(self) -> None:
        cmd = build_ffmpeg_command(
            _options(backend=Backend.AMF, preset=Preset.MAXQUALITY, quality=24)
        )
        assert cmd.count("-qp_i") == 1
        assert _value_after(cmd, "-qp_i") == "24"
        assert _value_after(cmd, "-qp_p") == "24"
        assert _value_after(cmd, "-qp_b") == "26"

    def test_vaapi(self) -> None:
        cmd = build_ffmpeg_command(
            _options(backend=Backend.VAAPI, preset=Preset.MAXQUALITY, quality=21)
        )
        assert cmd.count("-qp") == 1
        assert _value_after(cmd, "-qp") == "21"

    def test_software(self) -> None:
        cmd = build_ffmpeg_command(_options(quality=19))
        assert cmd.count("-crf") == 1
        assert _value_after(cmd, "-crf") == "19"
        assert _value_after(cmd, "-preset") == "medium"


class TestAmfToggles:
    """Tests for VBAQ, pre-analysis and open GOP flags."""

    def test_fast_preset_disables_toggles(self) -> None:
        cmd = build_ffmpeg_command(_options(backend=Backend.AMF, preset=Preset.FAST))
        assert _value_after(cmd, "-vbaq") == "0"
        assert _value_after(cmd, "-preanalysis") == "0"
        assert _value_after(cmd, "-open_gop") == "0"

    def test_no_flags_disable(self) -> None:
        cmd = build_ffmpeg_command(
            _options(
                backend=Backend.AMF,
                no_vbaq=True,
                no_preanalysis=True,
                no_opengop=True,
            )
        )
        assert _value_after(cmd, "-vbaq") == "0"
        assert _value_after(cmd, "-preanalysis") == "0"
        assert _value_after(cmd, "-open_gop") == "0"

    def test_texture_preserve_forces_vbaq_and_preanalysis(self) -> None:
        cmd = build_ffmpeg_command(
            _options(backend=Backend.AMF, preset=Preset.FAST, texture_preserve=True)
        )
        assert _value_after(cmd, "-vbaq") == "1"
        assert _value_after(cmd, "-preanalysis") == "1"
        assert _value_after(cmd, "-open_gop") == "0"
        assert _value_after(cmd, "-pa_caq_strength") == "high"

    def test_texture_preserve_beats_no_flags(self) -> None:
        cmd = build_ffmpeg_command(
            _options(
                backend=Backend.AMF,
                texture_preserve=True,
                no_vbaq=True,
                no_preanalysis=True,
                no_opengop=True,
            )
        )
        assert _value_after(cmd, "-vbaq") == "1"
        assert _value_after(cmd, "-preanalysis") == "1"
        assert _value_after(cmd, "-open_gop") == "0"

    def test_av1_emits_only_preanalysis(self) -> None:
        cmd = build_ffmpeg_command(
            _options(codec=Codec.AV1, backend=Backend.AMF, container=Container.MKV)
        )
        assert "-vbaq" not in cmd
        assert "-open_gop" not in cmd
        assert _value_after(cmd, "-preanalysis") == "1"

    def test_not_emitted_for_other_backends(self) -> None:
        cmd = build_ffmpeg_command(_options(backend=Backend.VAAPI, no_vbaq=True))
        assert "-vbaq" not in cmd


class TestTextureArgs:
    """Tests for --texture-preserve outside AMF."""

    def test_software(self) -> None:
        cmd = build_ffmpeg_command(_options(texture_preserve=True))
        assert _value_after(cmd, "-qcomp") == "0.8"

    def test_vaapi_has_no_extra_flags(self) -> None:
        plain = build_ffmpeg_command(_options(backend=Backend.VAAPI))
        textured = build_ffmpeg_command(
            _options(backend=Backend.VAAPI, texture_preserve=True)
        )
        assert plain == textured


class TestBframeArgs:
    """Tests for per-architecture B-frame settings."""

    @pytest.mark.parametrize(
        ("architecture", "codec", "expected"),
        [
            (GpuArchitecture.RDNA3, Codec.HEVC, ["-bf", "3", "-refs", "4"]),
            (GpuArchitecture.POLARIS, Codec.H264, ["-bf", "3", "-refs", "4"]),
            (GpuArchitecture.RDNA2, Codec.H264, ["-bf", "0", "-refs", "4"]),
            (GpuArchitecture.UNKNOWN, Codec.HEVC, ["-bf", "0", "-refs", "4"]),
        ],
    )
    def test_hardware(
        self, architecture: GpuArchitecture, codec: Codec, expected: list[str]
    ) -> None:
        cmd = build_ffmpeg_command(
            _options(
                codec=codec,
                backend=Backend.VAAPI,
                architecture=architecture,
                container=Container.MKV,
            )
        )
        start = cmd.index("-bf")
        assert cmd[start : start + 4] == expected

    def test_hardware_av1_has_none(self) -> None:
        cmd = build_ffmpeg_command(
            _options(
                codec=Codec.AV1,
                backend=Backend.VAAPI,
                architecture=GpuArchitecture.RDNA3,
            )
        )
        assert "-bf" not in cmd

    def test_software_hevc_uses_x265_params(self) -> None:
        cmd = build_ffmpeg_command(_options(codec=Codec.HEVC))
        assert _value_after(cmd, "-x265-params") == "bframes=5:ref=5:b-pyramid=1"
        assert "-tune" not in cmd


class TestContainerArgs:
    """Tests for tags, audio and muxer flags."""

    def test_hevc_in_mov_gets_hvc1_tag(self) -> None:
        cmd = build_ffmpeg_command(_options(codec=Codec.HEVC, container=Container.MOV))
        assert _value_after(cmd, "-tag:v") == "hvc1"
        assert "-movflags" in cmd

    def test_hevc_in_mkv_has_no_tag(self) -> None:
        cmd = build_ffmpeg_command(_options(codec=Codec.HEVC, container=Container.MKV))
        assert "-tag:v" not in cmd
        assert "-movflags" not in cmd
        assert _value_after(cmd, "-map_metadata") == "0"

    def test_webm_uses_opus(self) -> None:
        cmd = build_ffmpeg_command(
            _options(codec=Codec.AV1, container=Container.WEBM, audio_bitrate="96k")
        )
        assert _value_after(cmd, "-c:a") == "libopus"
        assert _value_after(cmd, "-b:a") == "96k"
        assert _value_after(cmd, "-c:v") == "libsvtav1"

    def test_output_path_is_last(self) -> None:
        cmd = build_ffmpeg_command(_options(output_path=Path("/tmp/a b.mp4")))
        assert cmd[-1] == "/tmp/a b.mp4"


class TestEncodeOptionsForJob:
    """Tests for EncodeOptions.for_job."""

    def _decision(self, backend: Backend) -> CapabilityDecision:
        return CapabilityDecision(
            backend=backend,
            requested_codec=Codec.AV1,
            effective_codec=Codec.HEVC,
            architecture=GpuArchitecture.RDNA3,
            vaapi=BackendSupport(),
            amf=BackendSupport(),
        )

    def test_uses_effective_codec(self) -> None:
        config = RunConfig(
            codec=Codec.AV1, container=Container.MKV, quality=20, force=True
        )
        options = EncodeOptions.for_job(
            config,
            self._decision(Backend.AMF),
            Path("a.mp4"),
            Path("out/a.mkv"),
            render_device=RENDER_NODE,
        )
        assert options.codec is Codec.HEVC
        assert options.encoder == "hevc_amf"
        assert options.architecture is GpuArchitecture.RDNA3
        assert options.quality == 20
        assert options.overwrite is True
        assert options.render_device == RENDER_NODE

    def test_software_drops_render_device(self) -> None:
        options = EncodeOptions.for_job(
            RunConfig(trim="10:30"),
            self._decision(Backend.SOFTWARE),
            Path("a.mp4"),
            Path("out/a.mp4"),
            render_device=RENDER_NODE,
        )
        assert options.render_device is None
        assert options.encoder == "libx265"
        assert options.trim == ("10", "30")

"""Encoder preset tables.

Each backend has its own table keyed by Preset. Values are structured
records rather than flag strings; command.py turns them into arguments.

Flag names follow ffmpeg's per-encoder options (``ffmpeg -h encoder=X``).
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from amdconv.config.models import Codec, DenoiseLevel, Preset
from amdconv.hardware.architecture import GpuArchitecture
from amdconv.hardware.probe import Backend


@dataclass(frozen=True)
class AmfPreset:
    """Rate control and tuning for an AMF encoder.

    Toggles set to None are not supported by the encoder and never emitted.
    """

    quality: str
    rc: str
    qp: tuple[int, int, int | None] | None = None
    qvbr_level: int | None = None
    maxrate: str | None = None
    bufsize: str | None = None
    extra: tuple[str, ...] = ()
    vbaq: bool | None = None
    preanalysis: bool | None = None
    open_gop: bool | None = None

    @property
    def is_cqp(self) -> bool:
        return self.rc == "cqp"


@dataclass(frozen=True)
class VaapiPreset:
    """Rate control for a VA-API encoder."""

    rc_mode: str
    bitrate: str | None = None
    maxrate: str | None = None
    qp: int | None = None
    compression_level: int | None = None


@dataclass(frozen=True)
class SoftwarePreset:
    """CRF and speed preset for a CPU encoder."""

    crf: int
    speed: str


_ME_FULL = ("-me_half_pel", "1", "-me_quarter_pel", "1")
_ME_HALF = ("-me_half_pel", "1", "-me_quarter_pel", "0")

# H.264 and HEVC over AMF
AMF_PRESETS: MappingProxyType[Preset, AmfPreset] = MappingProxyType(
    {
        Preset.MAXQUALITY: AmfPreset(
            quality="quality",
            rc="cqp",
            qp=(18, 18, 22),
            extra=(*_ME_FULL, "-gops_per_idr", "60"),
            vbaq=True,
            preanalysis=True,
            open_gop=True,
        ),
        Preset.BALANCED: AmfPreset(
            quality="quality",
            rc="hqvbr",
            qvbr_level=22,
            maxrate="15M",
            bufsize="24M",
            extra=(*_ME_FULL, "-gops_per_idr", "30"),
            vbaq=True,
            preanalysis=True,
            open_gop=True,
        ),
        Preset.FAST: AmfPreset(
            quality="speed",
            rc="vbr_peak",
            maxrate="8M",
            bufsize="16M",
            extra=(*_ME_HALF, "-gops_per_idr", "15"),
            vbaq=False,
            preanalysis=False,
            open_gop=False,
        ),
        Preset.HIGHCOMPRESSION: AmfPreset(
            quality="quality",
            rc="qvbr",
            qvbr_level=26,
            maxrate="8M",
            bufsize="16M",
            extra=(*_ME_FULL, "-gops_per_idr", "45"),
            vbaq=True,
            preanalysis=True,
            open_gop=True,
        ),
        Preset.STREAMING: AmfPreset(
            quality="quality",
            rc="vbr_latency",
            qvbr_level=23,
            maxrate="10M",
            bufsize="20M",
            extra=(*_ME_FULL, "-gops_per_idr", "60"),
            vbaq=True,
            preanalysis=True,
            open_gop=True,
        ),
    }
)

# av1_amf has no VBAQ, open GOP or B-frame QP
AMF_AV1_PRESETS: MappingProxyType[Preset, AmfPreset] = MappingProxyType(
    {
        Preset.MAXQUALITY: AmfPreset(
            quality="high_quality", rc="cqp", qp=(20, 20, None), preanalysis=True
        ),
        Preset.BALANCED: AmfPreset(
            quality="quality",
            rc="hqvbr",
            qvbr_level=24,
            maxrate="12M",
            bufsize="20M",
            preanalysis=True,
        ),
        Preset.FAST: AmfPreset(
            quality="speed",
            rc="vbr_peak",
            maxrate="6M",
            bufsize="12M",
            preanalysis=False,
        ),
        Preset.HIGHCOMPRESSION: AmfPreset(
            quality="high_quality",
            rc="qvbr",
            qvbr_level=28,
            maxrate="6M",
            bufsize="12M",
            preanalysis=True,
        ),
        Preset.STREAMING: AmfPreset(
            quality="balanced",
            rc="vbr_latency",
            qvbr_level=25,
            maxrate="8M",
            bufsize="16M",
            preanalysis=True,
        ),
    }
)

VAAPI_PRESETS: MappingProxyType[Preset, VaapiPreset] = MappingProxyType(
    {
        Preset.MAXQUALITY: VaapiPreset(rc_mode="CQP", qp=18, compression_level=7),
        Preset.BALANCED: VaapiPreset(
            rc_mode="VBR", bitrate="8M", maxrate="15M", compression_level=5
        ),
        Preset.FAST: VaapiPreset(
            rc_mode="VBR", bitrate="5M", maxrate="8M", compression_level=3
        ),
        Preset.HIGHCOMPRESSION: VaapiPreset(
            rc_mode="VBR", bitrate="3M", maxrate="5M", compression_level=7
        ),
        Preset.STREAMING: VaapiPreset(
            rc_mode="VBR", bitrate="8M", maxrate="10M", compression_level=5
        ),
    }
)

SOFTWARE_ENCODERS: MappingProxyType[Codec, str] = MappingProxyType(
    {Codec.H264: "libx264", Codec.HEVC: "libx265", Codec.AV1: "libsvtav1"}
)

_X26X_PRESETS = MappingProxyType(
    {
        Preset.MAXQUALITY: SoftwarePreset(crf=16, speed="slow"),
        Preset.BALANCED: SoftwarePreset(crf=22, speed="medium"),
        Preset.FAST: SoftwarePreset(crf=26, speed="fast"),
        Preset.HIGHCOMPRESSION: SoftwarePreset(crf=28, speed="veryslow"),
        Preset.STREAMING: SoftwarePreset(crf=23, speed="medium"),
    }
)

# SVT-AV1 uses a numeric preset (0 slowest .. 13 fastest) and a wider CRF scale
_SVTAV1_PRESETS = MappingProxyType(
    {
        Preset.MAXQUALITY: SoftwarePreset(crf=24, speed="4"),
        Preset.BALANCED: SoftwarePreset(crf=30, speed="6"),
        Preset.FAST: SoftwarePreset(crf=35, speed="8"),
        Preset.HIGHCOMPRESSION: SoftwarePreset(crf=38, speed="3"),
        Preset.STREAMING: SoftwarePreset(crf=32, speed="7"),
    }
)

SOFTWARE_PRESETS: MappingProxyType[
    Codec, MappingProxyType[Preset, SoftwarePreset]
] = MappingProxyType(
    {
        Codec.H264: _X26X_PRESETS,
        Codec.HEVC: _X26X_PRESETS,
        Codec.AV1: _SVTAV1_PRESETS,
    }
)

# (b_frames, ref_frames) known to be stable on the hardware encoders.
# Combinations not listed run without B-frames.
BFRAME_SETTINGS: MappingProxyType[
    tuple[GpuArchitecture, Codec], tuple[int, int]
] = MappingProxyType(
    {
        (GpuArchitecture.POLARIS, Codec.H264): (3, 4),
        (GpuArchitecture.VEGA, Codec.H264): (3, 4),
        (GpuArchitecture.RDNA3, Codec.H264): (3, 4),
        (GpuArchitecture.RDNA3, Codec.HEVC): (3, 4),
    }
)

NO_BFRAMES = (0, 4)

SOFTWARE_BFRAME_ARGS: MappingProxyType[Codec, tuple[str, ...]] = MappingProxyType(
    {
        Codec.H264: (
            "-bf",
            "3",
            "-refs",
            "6",
            "-b_strategy",
            "2",
            "-weightb",
            "1",
            "-b-pyramid",
            "normal",
        ),
        Codec.HEVC: ("-x265-params", "bframes=5:ref=5:b-pyramid=1"),
        Codec.AV1: (),
    }
)

DENOISE_VAAPI: MappingProxyType[DenoiseLevel, str] = MappingProxyType(
    {
        DenoiseLevel.LOW: "denoise_vaapi=denoise=4",
        DenoiseLevel.MEDIUM: "denoise_vaapi=denoise=8",
        DenoiseLevel.HIGH: "denoise_vaapi=denoise=16",
    }
)

DENOISE_SOFTWARE: MappingProxyType[DenoiseLevel, str] = MappingProxyType(
    {
        DenoiseLevel.LOW: "hqdn3d=2:1.5:3:2.25",
        DenoiseLevel.MEDIUM: "hqdn3d=4:3:6:4.5",
        DenoiseLevel.HIGH: "hqdn3d=8:6:12:9",
    }
)

# Extra flags for --texture-preserve; on AMF it also forces VBAQ and
# pre-analysis on unless explicitly disabled
TEXTURE_PRESERVE_ARGS: MappingProxyType[Backend, tuple[str, ...]] = MappingProxyType(
    {
        Backend.AMF: ("-pa_caq_strength", "high", "-pa_taq_mode", "2"),
        Backend.VAAPI: (),
        Backend.SOFTWARE: ("-qcomp", "0.8"),
    }
)

X264_TUNING = ("-tune", "film", "-profile:v", "high", "-level", "4.1")


def amf_preset(codec: Codec, preset: Preset) -> AmfPreset:
    """Return the AMF table entry for a codec and preset."""
    table = AMF_AV1_PRESETS if codec is Codec.AV1 else AMF_PRESETS
    return table[preset]


def hardware_bframes(
    architecture: GpuArchitecture, codec: Codec
) -> tuple[int, int] | None:
    """Return (b_frames, ref_frames) for a hardware encode.

    None for AV1, whose hardware encoders take no B-frame settings.
    """
    if codec is Codec.AV1:
        return None
    return BFRAME_SETTINGS.get((architecture, codec), NO_BFRAMES)

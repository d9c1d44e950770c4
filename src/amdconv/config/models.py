"""Configuration data models.

This module defines the enumerations for user-facing choices and the
dataclasses for application configuration (config.toml) and the per-run
conversion settings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType


class Codec(Enum):
    """Output video codec."""

    H264 = "h264"
    HEVC = "hevc"
    AV1 = "av1"


class Container(Enum):
    """Output container format (also the output file extension)."""

    MP4 = "mp4"
    MKV = "mkv"
    MOV = "mov"
    WEBM = "webm"


class Preset(Enum):
    """Encoding quality preset."""

    MAXQUALITY = "maxquality"
    BALANCED = "balanced"
    FAST = "fast"
    HIGHCOMPRESSION = "highcompression"
    STREAMING = "streaming"


class DenoiseLevel(Enum):
    """Strength of the denoise filter."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRESET_DESCRIPTIONS: MappingProxyType[Preset, str] = MappingProxyType(
    {
        Preset.MAXQUALITY: "Constant QP, best quality, large files",
        Preset.BALANCED: "High-quality VBR, good size/quality trade-off",
        Preset.FAST: "Speed-oriented VBR for quick conversions",
        Preset.HIGHCOMPRESSION: "Small files, slower encode",
        Preset.STREAMING: "Bounded bitrate suited to streaming",
    }
)

# Codecs each container can carry
CONTAINER_CODECS: MappingProxyType[Container, frozenset[Codec]] = MappingProxyType(
    {
        Container.MP4: frozenset({Codec.H264, Codec.HEVC, Codec.AV1}),
        Container.MKV: frozenset({Codec.H264, Codec.HEVC, Codec.AV1}),
        Container.MOV: frozenset({Codec.H264, Codec.HEVC}),
        Container.WEBM: frozenset({Codec.AV1}),
    }
)

# Advisory range for --quality; values outside only produce a warning
QUALITY_ADVISORY_RANGE = (16, 32)


def is_valid_pair(codec: Codec, container: Container) -> bool:
    """Return True if the container can carry the codec."""
    return codec in CONTAINER_CODECS[container]


@dataclass
class ToolPathsConfig:
    """Configuration for external tool paths.

    All paths are optional. If not specified, tools are looked up in PATH.
    """

    ffmpeg: Path | None = None
    ffprobe: Path | None = None
    vainfo: Path | None = None
    lspci: Path | None = None


@dataclass
class LoggingConfig:
    """Configuration for console and per-run log file output."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Directory for per-run conversion_*.log files (None = working directory)
    directory: Path | None = None

    # Log file format: text or json
    format: str = "text"

    # Number of per-run log files to keep (0 = keep all)
    keep: int = 20

    # Console colours: True, False, or None to detect a terminal
    color: bool | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )
        if self.keep < 0:
            raise ValueError(f"keep must be >= 0, got {self.keep}")


@dataclass
class AppConfig:
    """Application configuration from config.toml and the environment."""

    data_dir: Path
    profiles_dir: Path
    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


@dataclass(frozen=True)
class RunConfig:
    """Immutable settings for one batch run.

    Built once by RunConfigBuilder from defaults, the config file, a loaded
    profile and command-line flags, then read-only for the rest of the run.
    """

    codec: Codec = Codec.H264
    preset: Preset = Preset.BALANCED
    quality: int | None = None
    audio_bitrate: str = "128k"
    container: Container = Container.MP4
    output_dir: Path = Path("output")

    # Filters
    scale: str | None = None
    crop: str | None = None
    fps: str | None = None
    trim: str | None = None
    deinterlace: bool = False
    denoise: DenoiseLevel | None = None

    # Rate control
    target_size: str | None = None

    # AMF tuning
    no_vbaq: bool = False
    no_preanalysis: bool = False
    no_opengop: bool = False
    texture_preserve: bool = False

    # Behaviour
    keep_tree: bool = False
    no_hwaccel: bool = False
    force: bool = False
    dry_run: bool = False
    debug: bool = False

    # Advisory messages produced while building
    warnings: tuple[str, ...] = ()

    @property
    def trim_range(self) -> tuple[str, str] | None:
        """Split trim into (start, duration).

        The split happens on the last colon so "00:01:30:60" reads as start
        "00:01:30" and duration "60".
        """
        if not self.trim:
            return None
        start, _, duration = self.trim.rpartition(":")
        return start, duration

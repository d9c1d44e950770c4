"""Data models for external tools.

This module defines dataclasses for representing detected tool information
and the aggregated tool registry.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from amdconv.exceptions import ToolNotFoundError


class ToolStatus(Enum):
    """Status of an external tool."""

    AVAILABLE = "available"  # Tool found and version detected
    MISSING = "missing"  # Tool not found in PATH or configured location
    ERROR = "error"  # Tool found but detection failed


@dataclass
class ToolInfo:
    """Base information for any external tool."""

    name: str
    path: Path | None = None
    version: str | None = None
    version_tuple: tuple[int, ...] | None = None
    status: ToolStatus = ToolStatus.MISSING
    status_message: str | None = None
    detected_at: datetime | None = None

    def is_available(self) -> bool:
        """Return True if the tool is available and usable."""
        return self.status == ToolStatus.AVAILABLE

    def meets_version(self, min_version: tuple[int, ...]) -> bool:
        """Check if tool version meets minimum requirement.

        Args:
            min_version: Minimum version as tuple (e.g., (4, 0) for 4.0).

        Returns:
            True if tool version >= min_version, False otherwise.
        """
        if self.version_tuple is None:
            return False
        max_len = max(len(self.version_tuple), len(min_version))
        v1 = self.version_tuple + (0,) * (max_len - len(self.version_tuple))
        v2 = min_version + (0,) * (max_len - len(min_version))
        return v1 >= v2


@dataclass
class FFmpegInfo(ToolInfo):
    """FFmpeg tool information with its encoder and hwaccel lists."""

    name: str = field(init=False, default="ffmpeg")
    encoders: set[str] = field(default_factory=set)
    hwaccels: set[str] = field(default_factory=set)
    # Raw `ffmpeg -encoders` output, consumed by backend selection
    encoders_output: str = ""

    def has_encoder(self, name: str) -> bool:
        """Check if encoder is available."""
        return name.casefold() in self.encoders


@dataclass
class FFprobeInfo(ToolInfo):
    """FFprobe tool information."""

    name: str = field(init=False, default="ffprobe")


@dataclass
class VainfoInfo(ToolInfo):
    """vainfo (libva-utils) tool information."""

    name: str = field(init=False, default="vainfo")


@dataclass
class LspciInfo(ToolInfo):
    """lspci (pciutils) tool information."""

    name: str = field(init=False, default="lspci")


@dataclass(frozen=True)
class ToolDetectionConfig:
    """Configuration for detecting a specific tool.

    ``version_optional`` tools stay usable when their version command
    fails; vainfo from older libva-utils releases has no --version.
    """

    name: str
    version_flag: str
    version_pattern: str
    info_factory: Callable[[], ToolInfo]
    post_detect: Callable[[ToolInfo, Path, str], None] | None = None
    version_optional: bool = False


TOOL_NAMES = ("ffmpeg", "ffprobe", "vainfo", "lspci")


@dataclass
class ToolRegistry:
    """Aggregated registry of all external tools."""

    ffmpeg: FFmpegInfo = field(default_factory=FFmpegInfo)
    ffprobe: FFprobeInfo = field(default_factory=FFprobeInfo)
    vainfo: VainfoInfo = field(default_factory=VainfoInfo)
    lspci: LspciInfo = field(default_factory=LspciInfo)
    detected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get_tool(self, name: str) -> ToolInfo | None:
        """Get tool info by name, or None for an unknown name."""
        if name.casefold() not in TOOL_NAMES:
            return None
        return getattr(self, name.casefold())

    def is_available(self, name: str) -> bool:
        """Check if a tool is available."""
        tool = self.get_tool(name)
        return tool is not None and tool.is_available()

    def path_of(self, name: str) -> str | None:
        """Return the executable path of an available tool as a string."""
        tool = self.get_tool(name)
        if tool is None or not tool.is_available() or tool.path is None:
            return None
        return str(tool.path)

    def require(self, name: str) -> str:
        """Return the path of a tool that must be present.

        Raises:
            ToolNotFoundError: If the tool is not available.
        """
        path = self.path_of(name)
        if path is None:
            raise ToolNotFoundError(name, "run: sudo amdconv --install-deps")
        return path

    def get_missing_tools(self) -> list[str]:
        """Get list of missing tool names."""
        return [name for name in TOOL_NAMES if not self.is_available(name)]

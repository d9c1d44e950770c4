"""External tool detection, requirement checks and dependency install."""

from amdconv.tools.detection import (
    detect_all_tools,
    detect_ffmpeg,
    detect_ffprobe,
    detect_lspci,
    detect_vainfo,
    find_tool,
    parse_encoder_list,
    parse_version_string,
    run_probe,
)
from amdconv.tools.install import (
    Distribution,
    InstallResult,
    PackageManager,
    detect_distribution,
    install_dependencies,
)
from amdconv.tools.models import (
    FFmpegInfo,
    FFprobeInfo,
    LspciInfo,
    ToolInfo,
    ToolRegistry,
    ToolStatus,
    VainfoInfo,
)
from amdconv.tools.requirements import (
    RequirementLevel,
    RequirementsReport,
    check_requirements,
)

__all__ = [
    "Distribution",
    "FFmpegInfo",
    "FFprobeInfo",
    "InstallResult",
    "LspciInfo",
    "PackageManager",
    "RequirementLevel",
    "RequirementsReport",
    "ToolInfo",
    "ToolRegistry",
    "ToolStatus",
    "VainfoInfo",
    "check_requirements",
    "detect_all_tools",
    "detect_distribution",
    "detect_ffmpeg",
    "detect_ffprobe",
    "detect_lspci",
    "detect_vainfo",
    "find_tool",
    "install_dependencies",
    "parse_encoder_list",
    "parse_version_string",
    "run_probe",
]

"""External tool detection and version parsing.

This module provides functions to detect ffmpeg, ffprobe, vainfo and lspci,
parse their versions, and enumerate the ffmpeg encoders and hwaccels that
backend selection depends on.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess  # nosec B404 - subprocess is required for tool detection
from datetime import datetime, timezone
from pathlib import Path

from amdconv.config.models import ToolPathsConfig
from amdconv.tools.models import (
    FFmpegInfo,
    FFprobeInfo,
    LspciInfo,
    ToolDetectionConfig,
    ToolInfo,
    ToolRegistry,
    ToolStatus,
    VainfoInfo,
)

logger = logging.getLogger(__name__)

# Timeout for version/capability detection commands (seconds)
DETECTION_TIMEOUT = 10


def parse_version_string(version_str: str) -> tuple[int, ...] | None:
    """Parse a version string into a comparable tuple.

    Handles various version formats:
    - "6.1.1" -> (6, 1, 1)
    - "n6.1.1" -> (6, 1, 1)  (ffmpeg nightlies)
    - "6.0-0ubuntu1" -> (6, 0)  (distribution builds)

    Args:
        version_str: Version string to parse.

    Returns:
        Tuple of version components, or None if parsing fails.
    """
    if not version_str:
        return None

    version_str = version_str.lstrip("nv")
    match = re.match(r"(\d+(?:\.\d+)*)", version_str)
    if not match:
        return None
    return tuple(int(p) for p in match.group(1).split("."))


def find_tool(name: str, configured_path: Path | None = None) -> Path | None:
    """Find a tool executable.

    Args:
        name: Tool name (e.g., "ffmpeg").
        configured_path: Optional configured path override.

    Returns:
        Path to tool executable, or None if not found.
    """
    if configured_path:
        if configured_path.is_file():
            return configured_path
        logger.warning(
            "Configured path for %s is not a file: %s", name, configured_path
        )

    which_result = shutil.which(name)
    if which_result:
        return Path(which_result)

    return None


def run_probe(
    args: list[str], timeout: int = DETECTION_TIMEOUT
) -> tuple[str, str, int]:
    """Run a detection command and capture output.

    Never raises: a missing executable, a timeout or an OS error are all
    reported through a -1 return code.

    Args:
        args: Command and arguments.
        timeout: Timeout in seconds.

    Returns:
        Tuple of (stdout, stderr, returncode).
    """
    try:
        result = subprocess.run(  # nosec B603 - args are tool paths and fixed flags
            args,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
        return result.stdout, result.stderr, result.returncode
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out: %s", " ".join(args))
        return "", "timeout", -1
    except FileNotFoundError:
        return "", "not found", -1
    except OSError as e:
        logger.warning("Command failed: %s - %s", " ".join(args), e)
        return "", str(e), -1


def _detect_tool(
    config: ToolDetectionConfig, configured_path: Path | None = None
) -> ToolInfo:
    """Locate one tool, read its version and run its post-detection hook."""
    info = config.info_factory()
    info.detected_at = datetime.now(timezone.utc)

    path = find_tool(config.name, configured_path)
    if not path:
        info.status = ToolStatus.MISSING
        info.status_message = f"{config.name} not found in PATH"
        return info

    info.path = path

    stdout, stderr, rc = run_probe([str(path), config.version_flag])
    if rc != 0:
        if not config.version_optional:
            info.status = ToolStatus.ERROR
            info.status_message = (
                f"Failed to get {config.name} version: {stderr.strip()}"
            )
            return info
        logger.debug("%s reports no version: %s", config.name, stderr.strip())
    # Some tools print their version on stderr
    elif version_match := re.search(config.version_pattern, stdout + stderr):
        info.version = version_match.group(1)
        info.version_tuple = parse_version_string(info.version)

    if config.post_detect:
        config.post_detect(info, path, stdout)

    info.status = ToolStatus.AVAILABLE
    info.status_message = None
    return info


# " V....D h264_amf    AMD AMF H.264 Encoder (codec h264)"
_ENCODER_LINE = re.compile(r"\s+[VASFXBDI.]{6}\s+(\S+)")


def parse_encoder_list(output: str) -> set[str]:
    """Return the lower-cased encoder names listed by ``ffmpeg -encoders``."""
    return {
        match.group(1).casefold()
        for line in output.splitlines()
        if (match := _ENCODER_LINE.match(line))
    }


def parse_hwaccel_list(output: str) -> set[str]:
    """Parse ``ffmpeg -hwaccels`` output (one name per line after a header)."""
    names: set[str] = set()
    for line in output.splitlines():
        line = line.strip()
        if line and not line.endswith(":"):
            names.add(line.casefold())
    return names


def _ffmpeg_post_detect(info: ToolInfo, path: Path, _stdout: str) -> None:
    """Post-detection hook listing ffmpeg encoders and hwaccels."""
    assert isinstance(info, FFmpegInfo)

    stdout, stderr, rc = run_probe([str(path), "-hide_banner", "-encoders"])
    if rc == 0:
        info.encoders_output = stdout
        info.encoders = parse_encoder_list(stdout)
    else:
        logger.warning("Failed to enumerate ffmpeg encoders: %s", stderr.strip())

    stdout, stderr, rc = run_probe([str(path), "-hide_banner", "-hwaccels"])
    if rc == 0:
        info.hwaccels = parse_hwaccel_list(stdout)
    else:
        logger.debug("Failed to enumerate ffmpeg hwaccels: %s", stderr.strip())

    logger.debug(
        "ffmpeg %s: %d encoders, hwaccels=%s",
        info.version,
        len(info.encoders),
        sorted(info.hwaccels),
    )


FFMPEG_CONFIG = ToolDetectionConfig(
    name="ffmpeg",
    version_flag="-version",
    version_pattern=r"ffmpeg version (\S+)",
    info_factory=FFmpegInfo,
    post_detect=_ffmpeg_post_detect,
)

FFPROBE_CONFIG = ToolDetectionConfig(
    name="ffprobe",
    version_flag="-version",
    version_pattern=r"ffprobe version (\S+)",
    info_factory=FFprobeInfo,
)

VAINFO_CONFIG = ToolDetectionConfig(
    name="vainfo",
    version_flag="--version",
    version_pattern=r"vainfo version:?\s*(\S+)",
    info_factory=VainfoInfo,
    version_optional=True,
)

LSPCI_CONFIG = ToolDetectionConfig(
    name="lspci",
    version_flag="--version",
    version_pattern=r"lspci version (\S+)",
    info_factory=LspciInfo,
    version_optional=True,
)


def detect_ffmpeg(configured_path: Path | None = None) -> FFmpegInfo:
    """Detect ffmpeg and enumerate its encoders.

    Args:
        configured_path: Optional configured path to ffmpeg.

    Returns:
        FFmpegInfo with version, encoders and hwaccels.
    """
    result = _detect_tool(FFMPEG_CONFIG, configured_path)
    assert isinstance(result, FFmpegInfo)
    return result


def detect_ffprobe(configured_path: Path | None = None) -> FFprobeInfo:
    """Detect ffprobe and get version."""
    result = _detect_tool(FFPROBE_CONFIG, configured_path)
    assert isinstance(result, FFprobeInfo)
    return result


def detect_vainfo(configured_path: Path | None = None) -> VainfoInfo:
    """Detect vainfo and get version."""
    result = _detect_tool(VAINFO_CONFIG, configured_path)
    assert isinstance(result, VainfoInfo)
    return result


def detect_lspci(configured_path: Path | None = None) -> LspciInfo:
    """Detect lspci and get version."""
    result = _detect_tool(LSPCI_CONFIG, configured_path)
    assert isinstance(result, LspciInfo)
    return result


def detect_all_tools(paths: ToolPathsConfig | None = None) -> ToolRegistry:
    """Detect all external tools and build a registry.

    Args:
        paths: Optional configured tool paths.

    Returns:
        ToolRegistry with all detected tools.
    """
    paths = paths or ToolPathsConfig()
    registry = ToolRegistry(
        ffmpeg=detect_ffmpeg(paths.ffmpeg),
        ffprobe=detect_ffprobe(paths.ffprobe),
        vainfo=detect_vainfo(paths.vainfo),
        lspci=detect_lspci(paths.lspci),
        detected_at=datetime.now(timezone.utc),
    )
    logger.debug("Missing tools: %s", registry.get_missing_tools() or "none")
    return registry

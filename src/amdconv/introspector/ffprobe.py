"""ffprobe-based media inspection.

Reads the duration and a short video summary of an input file. Duration is
needed to turn --target-size into a bitrate.
"""

from __future__ import annotations

import json
import logging
import subprocess  # nosec B404 - subprocess is required for ffprobe invocation
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from amdconv.exceptions import MediaProbeError

logger = logging.getLogger(__name__)

# Corrupted files can make ffprobe hang
PROBE_TIMEOUT = 60


@dataclass(frozen=True)
class MediaInfo:
    """Summary of an input file."""

    path: Path
    duration: Decimal | None = None
    video_codec: str | None = None
    width: int | None = None
    height: int | None = None
    bit_rate: int | None = None

    @property
    def resolution(self) -> str | None:
        if self.width and self.height:
            return f"{self.width}x{self.height}"
        return None

    def describe(self) -> str:
        """One-line description, e.g. "h264 | 1920x1080 | 93.21s | 4500000bps"."""
        parts = [self.video_codec or "unknown", self.resolution or "?"]
        if self.duration is not None:
            parts.append(f"{self.duration:.2f}s")
        if self.bit_rate:
            parts.append(f"{self.bit_rate}bps")
        return " | ".join(parts)


def _parse_decimal(value: Any) -> Decimal | None:
    if value in (None, "", "N/A"):
        return None
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return None
    return result if result.is_finite() and result > 0 else None


def _parse_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_ffprobe_output(path: Path, data: dict[str, Any]) -> MediaInfo:
    """Build MediaInfo from ``ffprobe -print_format json`` output.

    Duration comes from the container, falling back to the first video
    stream when the container does not report one.
    """
    fmt = data.get("format", {})
    streams = data.get("streams", [])
    video = next((s for s in streams if s.get("codec_type") == "video"), {})

    duration = _parse_decimal(fmt.get("duration"))
    if duration is None:
        logger.debug("No container duration for %s, trying video stream", path)
        duration = _parse_decimal(video.get("duration"))

    return MediaInfo(
        path=path,
        duration=duration,
        video_codec=video.get("codec_name"),
        width=_parse_int(video.get("width")),
        height=_parse_int(video.get("height")),
        bit_rate=_parse_int(fmt.get("bit_rate")),
    )


class FFprobeIntrospector:
    """Inspect media files with ffprobe."""

    def __init__(self, ffprobe_path: Path | str) -> None:
        """Initialize the introspector.

        Args:
            ffprobe_path: Path to the ffprobe executable.
        """
        self._ffprobe_path = str(ffprobe_path)

    def get_media_info(self, path: Path) -> MediaInfo:
        """Extract a media summary from a file.

        Raises:
            MediaProbeError: If the file cannot be probed.
        """
        if not path.exists():
            raise MediaProbeError(f"File not found: {path}")

        try:
            result = subprocess.run(  # nosec B603 - ffprobe path is validated
                [
                    self._ffprobe_path,
                    "-v",
                    "error",
                    "-print_format",
                    "json",
                    "-show_format",
                    "-show_streams",
                    str(path),
                ],
                capture_output=True,
                text=True,
                errors="replace",
                check=True,
                timeout=PROBE_TIMEOUT,
            )
            data = json.loads(result.stdout or "{}")
        except subprocess.TimeoutExpired as e:
            raise MediaProbeError(
                f"ffprobe timed out for {path} after {e.timeout}s"
            ) from e
        except subprocess.CalledProcessError as e:
            raise MediaProbeError(
                f"ffprobe failed for {path}: {(e.stderr or '').strip() or e}"
            ) from e
        except json.JSONDecodeError as e:
            raise MediaProbeError(f"Invalid ffprobe output for {path}: {e}") from e
        except OSError as e:
            raise MediaProbeError(f"Could not run ffprobe: {e}") from e

        if "format" not in data:
            raise MediaProbeError(
                f"Missing 'format' in ffprobe output for {path}. "
                "File may be corrupted or not a valid media file."
            )
        return parse_ffprobe_output(path, data)


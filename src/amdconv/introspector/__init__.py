"""Media file inspection via ffprobe."""

from amdconv.introspector.ffprobe import (
    FFprobeIntrospector,
    MediaInfo,
    parse_ffprobe_output,
)

__all__ = ["FFprobeIntrospector", "MediaInfo", "parse_ffprobe_output"]

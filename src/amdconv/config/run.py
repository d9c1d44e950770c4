"""Run configuration builder.

RunConfig is assembled by successive override passes:

1. Built-in defaults (RunConfig field defaults)
2. ``[defaults]`` table of config.toml
3. A loaded profile (--load-conf)
4. Command-line flags

Each pass is a RunSource whose None fields mean "not specified". Raw user
strings are only converted and checked in build(), so a bad value from a
profile is reported exactly like a bad flag.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any

from amdconv.config.models import (
    CONTAINER_CODECS,
    QUALITY_ADVISORY_RANGE,
    Codec,
    Container,
    DenoiseLevel,
    Preset,
    RunConfig,
    is_valid_pair,
)
from amdconv.core.units import SizeParseError, parse_size
from amdconv.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

RESOLUTION_PRESETS: MappingProxyType[str, str] = MappingProxyType(
    {
        "480p": "854x480",
        "720p": "1280x720",
        "1080p": "1920x1080",
        "2K": "2560x1440",
        "4K": "3840x2160",
        "8K": "7680x4320",
    }
)

_SCALE_PATTERN = re.compile(r"^(-?\d+)[x:](-?\d+)$")
_CROP_PATTERN = re.compile(r"^\d+:\d+:\d+:\d+$")
_FPS_PATTERN = re.compile(r"^\d+(?:\.\d+)?(?:/\d+)?$")
_TIME_PATTERN = re.compile(r"^\d+(?::\d{1,2}){0,2}(?:\.\d+)?$")
_BITRATE_PATTERN = re.compile(r"^\d+(?:\.\d+)?[kKmM]?$")


@dataclass
class RunSource:
    """Run settings from a single source.

    None values indicate "not specified in this source" and will not
    override values from lower-precedence sources. Enum-valued settings
    are carried as the raw strings the user typed.
    """

    codec: str | None = None
    preset: str | None = None
    quality: int | str | None = None
    audio_bitrate: str | None = None
    container: str | None = None
    output_dir: Path | str | None = None

    scale: str | None = None
    crop: str | None = None
    fps: str | None = None
    trim: str | None = None
    deinterlace: bool | None = None
    denoise: str | None = None

    target_size: str | None = None

    no_vbaq: bool | None = None
    no_preanalysis: bool | None = None
    no_opengop: bool | None = None
    texture_preserve: bool | None = None

    keep_tree: bool | None = None
    no_hwaccel: bool | None = None
    force: bool | None = None
    dry_run: bool | None = None
    debug: bool | None = None


def resolve_resolution(value: str) -> str:
    """Map a resolution preset name (e.g. "1080p", "4k") to WxH.

    Unknown names are returned unchanged so that an explicit "1280x720"
    can be passed through -r as well.
    """
    for name, size in RESOLUTION_PRESETS.items():
        if name.lower() == value.lower():
            return size
    return value


def _parse_enum(enum_type: type, value: str, label: str, errors: list[str]) -> Any:
    try:
        return enum_type(value.strip().lower())
    except ValueError:
        valid = ", ".join(member.value for member in enum_type)
        errors.append(f"Invalid {label}: {value} (valid: {valid})")
        return None


def _is_time(value: str) -> bool:
    return bool(_TIME_PATTERN.match(value))


class RunConfigBuilder:
    """Builds RunConfig by layering RunSources with precedence.

    Example:
        builder = RunConfigBuilder()
        builder.apply(run_source_from_file(file_config), source_name="config")
        builder.apply(profile_source, source_name="profile")
        builder.apply(cli_source, source_name="cli")
        run_config = builder.build()
    """

    def __init__(self) -> None:
        """Initialize the builder with no values set."""
        self._values: dict[str, Any] = {}

    def apply(self, source: RunSource, source_name: str = "unknown") -> None:
        """Apply a source, overriding existing values with its non-None ones.

        Args:
            source: Settings to apply.
            source_name: Label used in debug logging.
        """
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                logger.debug(
                    "Run setting %s=%r from %s", field_obj.name, value, source_name
                )
                self._values[field_obj.name] = value

    def build(self) -> RunConfig:
        """Validate accumulated values and build the immutable RunConfig.

        Returns:
            The resolved RunConfig. Advisory warnings (such as a quality
            outside 16-32) are carried on ``RunConfig.warnings``.

        Raises:
            ConfigValidationError: If any value is invalid or the codec
                cannot be stored in the container. All problems are
                reported together.
        """
        errors: list[str] = []
        warnings: list[str] = []
        kwargs: dict[str, Any] = {}
        v = self._values

        if "codec" in v:
            kwargs["codec"] = _parse_enum(Codec, str(v["codec"]), "codec", errors)
        if "preset" in v:
            kwargs["preset"] = _parse_enum(Preset, str(v["preset"]), "preset", errors)
        if "container" in v:
            kwargs["container"] = _parse_enum(
                Container, str(v["container"]).lstrip("."), "container format", errors
            )
        if "denoise" in v:
            kwargs["denoise"] = _parse_enum(
                DenoiseLevel, str(v["denoise"]), "denoise level", errors
            )

        if "quality" in v:
            try:
                quality = int(str(v["quality"]).strip())
            except ValueError:
                errors.append(f"Invalid quality: {v['quality']} (must be an integer)")
            else:
                low, high = QUALITY_ADVISORY_RANGE
                if not low <= quality <= high:
                    warnings.append(
                        f"Quality value {quality} is outside recommended "
                        f"range ({low}-{high})"
                    )
                kwargs["quality"] = quality

        if "audio_bitrate" in v:
            bitrate = str(v["audio_bitrate"]).strip()
            if _BITRATE_PATTERN.match(bitrate):
                kwargs["audio_bitrate"] = bitrate
            else:
                errors.append(f"Invalid audio bitrate: {bitrate} (e.g. 128k)")

        if "output_dir" in v:
            kwargs["output_dir"] = Path(v["output_dir"]).expanduser()

        if "scale" in v:
            scale = resolve_resolution(str(v["scale"]).strip())
            match = _SCALE_PATTERN.match(scale)
            if match:
                kwargs["scale"] = f"{match.group(1)}x{match.group(2)}"
            else:
                presets = ", ".join(RESOLUTION_PRESETS)
                errors.append(
                    f"Invalid resolution: {scale} (use WxH or one of {presets})"
                )

        if "crop" in v:
            crop = str(v["crop"]).strip()
            if _CROP_PATTERN.match(crop):
                kwargs["crop"] = crop
            else:
                errors.append(f"Invalid crop: {crop} (use W:H:X:Y)")

        if "fps" in v:
            fps = str(v["fps"]).strip()
            if _FPS_PATTERN.match(fps) and not re.match(r"^0+(\.0+)?(/|$)", fps):
                kwargs["fps"] = fps
            else:
                errors.append(f"Invalid frame rate: {fps} (e.g. 30 or 30000/1001)")

        if "trim" in v:
            trim = str(v["trim"]).strip()
            start, sep, duration = trim.rpartition(":")
            if sep and _is_time(start) and _is_time(duration):
                kwargs["trim"] = trim
            else:
                errors.append(f"Invalid trim: {trim} (use START:DURATION)")

        if "target_size" in v:
            target = str(v["target_size"]).strip()
            try:
                if parse_size(target) <= 0:
                    raise SizeParseError(f"Target size must be positive: {target}")
            except SizeParseError as e:
                errors.append(str(e))
            else:
                kwargs["target_size"] = target

        for flag in (
            "deinterlace",
            "no_vbaq",
            "no_preanalysis",
            "no_opengop",
            "texture_preserve",
            "keep_tree",
            "no_hwaccel",
            "force",
            "dry_run",
            "debug",
        ):
            if flag in v:
                kwargs[flag] = bool(v[flag])

        if not errors:
            codec = kwargs.get("codec", RunConfig.codec)
            container = kwargs.get("container", RunConfig.container)
            if not is_valid_pair(codec, container):
                supported = ", ".join(
                    sorted(c.value for c in CONTAINER_CODECS[container])
                )
                errors.append(
                    f"Codec {codec.value} cannot be stored in {container.value} "
                    f"(supported: {supported})"
                )

        if errors:
            raise ConfigValidationError(errors)

        return RunConfig(warnings=tuple(warnings), **kwargs)


def run_source_from_file(file_config: dict[str, Any]) -> RunSource:
    """Create a RunSource from the ``[defaults]`` table of config.toml.

    Args:
        file_config: Parsed configuration dictionary from TOML file.

    Returns:
        RunSource carrying the configured defaults.
    """
    defaults = file_config.get("defaults", {})
    return RunSource(
        codec=defaults.get("codec"),
        preset=defaults.get("preset"),
        quality=defaults.get("quality"),
        audio_bitrate=defaults.get("audio_bitrate"),
        container=defaults.get("container"),
        output_dir=defaults.get("output_dir"),
        no_hwaccel=defaults.get("no_hwaccel"),
        keep_tree=defaults.get("keep_tree"),
    )

"""Application configuration builder with explicit layering.

This module provides ConfigBuilder for building AppConfig by composing the
config file and environment sources with explicit precedence handling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from amdconv.config.env import EnvReader
from amdconv.config.models import AppConfig, LoggingConfig, ToolPathsConfig

logger = logging.getLogger(__name__)


@dataclass
class ConfigSource:
    """Application configuration values from a single source.

    None values indicate "not specified in this source" and will not
    override values from lower-precedence sources.
    """

    # Tool paths
    ffmpeg_path: Path | None = None
    ffprobe_path: Path | None = None
    vainfo_path: Path | None = None
    lspci_path: Path | None = None

    # Profiles
    profiles_dir: Path | None = None

    # Logging
    logging_level: str | None = None
    logging_directory: Path | None = None
    logging_format: str | None = None
    logging_keep: int | None = None
    logging_color: bool | None = None


class ConfigBuilder:
    """Builds AppConfig by layering ConfigSources with precedence.

    Later sources override earlier ones (for non-None values).

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config), source_name="file")
        builder.apply(source_from_env(reader), source_name="env")
        config = builder.build(data_dir)
    """

    def __init__(self) -> None:
        """Initialize the builder with no values set."""
        self._values: dict[str, Any] = {}

    def apply(self, source: ConfigSource, source_name: str = "unknown") -> None:
        """Apply configuration source, overriding existing values.

        Args:
            source: Configuration source to apply.
            source_name: Label used in debug logging.
        """
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                logger.debug(
                    "Config %s set from %s", field_obj.name, source_name
                )
                self._values[field_obj.name] = value

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def build(self, data_dir: Path) -> AppConfig:
        """Build the final AppConfig with defaults for unset values.

        Args:
            data_dir: Application data directory; the profiles directory
                defaults to ``data_dir / "profiles"``.

        Returns:
            Complete AppConfig with all values resolved.

        Raises:
            ValueError: If a logging value is invalid.
        """
        tools = ToolPathsConfig(
            ffmpeg=self._get("ffmpeg_path", None),
            ffprobe=self._get("ffprobe_path", None),
            vainfo=self._get("vainfo_path", None),
            lspci=self._get("lspci_path", None),
        )

        logging_config = LoggingConfig(
            level=self._get("logging_level", "info"),
            directory=self._get("logging_directory", None),
            format=self._get("logging_format", "text"),
            keep=self._get("logging_keep", 20),
            color=self._get("logging_color", None),
        )

        return AppConfig(
            data_dir=data_dir,
            profiles_dir=self._get("profiles_dir", data_dir / "profiles"),
            tools=tools,
            logging=logging_config,
        )


def _optional_path(value: Any) -> Path | None:
    return Path(value).expanduser() if value else None


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create ConfigSource from parsed TOML config file.

    Args:
        file_config: Parsed configuration dictionary from TOML file.

    Returns:
        ConfigSource with values from the config file.
    """
    tools = file_config.get("tools", {})
    profiles = file_config.get("profiles", {})
    logging_conf = file_config.get("logging", {})

    return ConfigSource(
        ffmpeg_path=_optional_path(tools.get("ffmpeg")),
        ffprobe_path=_optional_path(tools.get("ffprobe")),
        vainfo_path=_optional_path(tools.get("vainfo")),
        lspci_path=_optional_path(tools.get("lspci")),
        profiles_dir=_optional_path(profiles.get("directory")),
        logging_level=logging_conf.get("level"),
        logging_directory=_optional_path(logging_conf.get("directory")),
        logging_format=logging_conf.get("format"),
        logging_keep=logging_conf.get("keep"),
        logging_color=logging_conf.get("color"),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from environment variables.

    Args:
        reader: EnvReader instance for reading environment variables.

    Returns:
        ConfigSource with values from AMDCONV_* environment variables.
    """
    return ConfigSource(
        ffmpeg_path=reader.get_path("AMDCONV_FFMPEG_PATH"),
        ffprobe_path=reader.get_path("AMDCONV_FFPROBE_PATH"),
        vainfo_path=reader.get_path("AMDCONV_VAINFO_PATH"),
        lspci_path=reader.get_path("AMDCONV_LSPCI_PATH"),
        profiles_dir=reader.get_path("AMDCONV_PROFILES_DIR", must_exist=False),
        logging_level=reader.get_str("AMDCONV_LOG_LEVEL"),
        logging_directory=reader.get_path("AMDCONV_LOG_DIR", must_exist=False),
        logging_format=reader.get_str("AMDCONV_LOG_FORMAT"),
        logging_keep=reader.get_int("AMDCONV_LOG_KEEP"),
        logging_color=reader.get_bool("AMDCONV_LOG_COLOR"),
    )

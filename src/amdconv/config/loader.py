"""Configuration loader with precedence handling.

Application configuration is loaded with the following precedence (highest
to lowest):
1. Environment variables (AMDCONV_*)
2. Config file (~/.amdconv/config.toml)
3. Default values

Environment variables:
- AMDCONV_CONFIG_PATH: Path to config file (overrides default location)
- AMDCONV_DATA_DIR: Path to data directory (overrides ~/.amdconv/)
- AMDCONV_FFMPEG_PATH, AMDCONV_FFPROBE_PATH, AMDCONV_VAINFO_PATH,
  AMDCONV_LSPCI_PATH: Paths to external tools
- AMDCONV_PROFILES_DIR: Directory holding saved profiles
- AMDCONV_LOG_LEVEL, AMDCONV_LOG_DIR, AMDCONV_LOG_FORMAT, AMDCONV_LOG_KEEP,
  AMDCONV_LOG_COLOR: Logging overrides
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from amdconv.config.builder import ConfigBuilder, source_from_env, source_from_file
from amdconv.config.env import EnvReader
from amdconv.config.models import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".amdconv"
CONFIG_FILE_NAME = "config.toml"

# Loaded config files (path -> (parsed dict, mtime))
_config_cache: dict[Path, tuple[dict[str, Any], float]] = {}


class ConfigFileError(Exception):
    """Config file exists but cannot be parsed."""


def get_data_dir() -> Path:
    """Get the amdconv data directory.

    Holds config.toml and the profiles/ directory. Can be overridden by the
    AMDCONV_DATA_DIR environment variable.

    Returns:
        Path to the data directory (~/.amdconv/ by default).
    """
    env_path = os.environ.get("AMDCONV_DATA_DIR")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_DATA_DIR


def get_default_config_path() -> Path:
    """Get the default config file path.

    Can be overridden by AMDCONV_CONFIG_PATH environment variable.
    """
    env_path = os.environ.get("AMDCONV_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return get_data_dir() / CONFIG_FILE_NAME


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict:
    """Load configuration from TOML file.

    Results are cached with mtime-based invalidation. Use
    clear_config_cache() to force a reload.

    Args:
        path: Path to config file. If None, uses default location.
        strict: If True, raise ConfigFileError on parse failures.
                If False (default), log a warning and return an empty dict.

    Returns:
        Parsed configuration dict. Empty dict if file doesn't exist.

    Raises:
        ConfigFileError: When strict=True and the file cannot be parsed.
    """
    if path is None:
        path = get_default_config_path()

    try:
        current_mtime = path.stat().st_mtime
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}

    cached = _config_cache.get(path)
    if cached is not None and cached[1] == current_mtime:
        return cached[0]

    try:
        with path.open("rb") as f:
            result = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        if strict:
            raise ConfigFileError(f"Failed to parse {path}: {e}") from e
        logger.warning("Failed to load config file %s: %s", path, e)
        return {}

    logger.debug("Loaded config from %s", path)
    _config_cache[path] = (result, current_mtime)
    return result


def clear_config_cache() -> None:
    """Clear the config file cache. Primarily useful for testing."""
    _config_cache.clear()


def get_config(
    config_path: Path | None = None,
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
) -> AppConfig:
    """Get application configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides AMDCONV_CONFIG_PATH).
        env_reader: Optional EnvReader for testing (uses os.environ if None).
        strict: If True, raise ConfigFileError on config file parse failures.

    Returns:
        AppConfig with merged configuration.

    Raises:
        ConfigFileError: When strict=True and the config file cannot be parsed.
        ValueError: If a configured logging value is invalid.
    """
    reader = env_reader or EnvReader()
    file_config = load_config_file(config_path, strict=strict)

    builder = ConfigBuilder()
    builder.apply(source_from_file(file_config), source_name="file")
    builder.apply(source_from_env(reader), source_name="env")
    return builder.build(get_data_dir())

"""Configuration package.

Application settings (config.toml and AMDCONV_* environment variables),
the layered per-run conversion settings, and saved profiles.
"""

from amdconv.config.builder import ConfigBuilder, ConfigSource
from amdconv.config.env import EnvReader
from amdconv.config.loader import (
    ConfigFileError,
    clear_config_cache,
    get_config,
    get_data_dir,
    get_default_config_path,
    load_config_file,
)
from amdconv.config.models import (
    CONTAINER_CODECS,
    AppConfig,
    Codec,
    Container,
    DenoiseLevel,
    LoggingConfig,
    Preset,
    RunConfig,
    ToolPathsConfig,
)
from amdconv.config.run import (
    RESOLUTION_PRESETS,
    RunConfigBuilder,
    RunSource,
    run_source_from_file,
)

__all__ = [
    "CONTAINER_CODECS",
    "RESOLUTION_PRESETS",
    "AppConfig",
    "Codec",
    "ConfigBuilder",
    "ConfigFileError",
    "ConfigSource",
    "Container",
    "DenoiseLevel",
    "EnvReader",
    "LoggingConfig",
    "Preset",
    "RunConfig",
    "RunConfigBuilder",
    "RunSource",
    "ToolPathsConfig",
    "clear_config_cache",
    "get_config",
    "get_data_dir",
    "get_default_config_path",
    "load_config_file",
    "run_source_from_file",
]

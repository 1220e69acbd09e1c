"""Configuration management for transcoder.

This module provides configuration loading with precedence handling:
1. Explicit arguments / CLI flags (highest priority)
2. Environment variables (TRANSCODER_*)
3. Config file (~/.transcoder/config.toml)
4. Default values (lowest priority)
"""

from transcoder.config.env import EnvReader
from transcoder.config.loader import (
    ConfigError,
    auto_config,
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
)
from transcoder.config.logging_factory import (
    build_logging_config,
    configure_logging_from_cli,
)
from transcoder.config.models import (
    Flags,
    LoggingConfig,
    ToolPathsConfig,
    TranscoderConfig,
    merge_flags,
)

__all__ = [
    # Models
    "Flags",
    "LoggingConfig",
    "ToolPathsConfig",
    "TranscoderConfig",
    "merge_flags",
    # Loader
    "ConfigError",
    "auto_config",
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "load_config_file",
    # Environment and logging
    "EnvReader",
    "build_logging_config",
    "configure_logging_from_cli",
]

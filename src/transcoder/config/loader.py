"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. Arguments passed to get_config() (e.g. CLI flags)
2. Environment variables (TRANSCODER_*)
3. Config file (~/.transcoder/config.toml)
4. Default values

Environment variables:
- TRANSCODER_CONFIG_PATH: Path to config file (overrides default location)
- TRANSCODER_FFMPEG_PATH: Path to ffmpeg executable
- TRANSCODER_FFPROBE_PATH: Path to ffprobe executable
- TRANSCODER_PROGRESS / TRANSCODER_VERBOSE / TRANSCODER_DEBUG: Session flags
- TRANSCODER_LOG_LEVEL / TRANSCODER_LOG_FORMAT / TRANSCODER_LOG_FILE: Logging

Config file layout:

    [tools]
    ffmpeg = "/usr/local/bin/ffmpeg"
    ffprobe = "/usr/local/bin/ffprobe"

    [flags]
    progress = true

    [logging]
    level = "debug"
    format = "json"
"""

from __future__ import annotations

import logging
import os
import threading
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from transcoder.config.env import EnvReader
from transcoder.config.models import (
    Flags,
    LoggingConfig,
    ToolPathsConfig,
    TranscoderConfig,
    merge_flags,
)
from transcoder.exceptions import ConfigurationError
from transcoder.tools.detection import locate_binaries

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".transcoder"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

# Cache for loaded config files (path -> (parsed dict, mtime))
_config_cache: dict[Path, tuple[dict, float]] = {}
_config_cache_lock = threading.Lock()


class ConfigError(ConfigurationError):
    """Raised when a config file cannot be read or parsed in strict mode."""


def get_default_config_path() -> Path:
    """Get the default config file path.

    Can be overridden by TRANSCODER_CONFIG_PATH environment variable.
    """
    env_path = os.environ.get("TRANSCODER_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_FILE


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict:
    """Load configuration from TOML file.

    Results are cached with mtime-based invalidation, so an edited file is
    reloaded on the next call. Thread-safe.

    Args:
        path: Path to config file. If None, uses default location.
        strict: If True, raise ConfigError on read or parse failures.
                If False (default), log a warning and return empty dict.

    Returns:
        Parsed configuration dict. Empty dict if file doesn't exist.

    Raises:
        ConfigError: When strict=True and the file cannot be parsed.
    """
    if path is None:
        path = get_default_config_path()

    try:
        current_mtime = path.stat().st_mtime
    except FileNotFoundError:
        return {}

    with _config_cache_lock:
        cached = _config_cache.get(path)
        if cached is not None and cached[1] == current_mtime:
            return cached[0]

        try:
            with path.open("rb") as f:
                result = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            if strict:
                raise ConfigError(f"Cannot load config file {path}: {e}") from e
            logger.warning("Ignoring unreadable config file %s: %s", path, e)
            return {}

        _config_cache[path] = (result, current_mtime)
        return result


def clear_config_cache() -> None:
    """Clear the config file cache. Primarily useful for testing."""
    with _config_cache_lock:
        _config_cache.clear()


def _file_path(section: Mapping[str, Any], key: str) -> Path | None:
    value = section.get(key)
    if not value:
        return None
    return Path(str(value)).expanduser()


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def get_config(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
    *,
    ffmpeg_path: Path | None = None,
    ffprobe_path: Path | None = None,
    flags: Flags | None = None,
    strict: bool = False,
) -> TranscoderConfig:
    """Get transcoder configuration with full precedence handling.

    Tool paths are taken as configured; no PATH lookup happens here (see
    auto_config()).

    Args:
        config_path: Path to config file (overrides TRANSCODER_CONFIG_PATH).
        env: Optional environment mapping for testing (os.environ if None).
        ffmpeg_path: Override for ffmpeg path.
        ffprobe_path: Override for ffprobe path.
        flags: Flags merged (OR) on top of env and file flags.
        strict: Raise ConfigError on unparseable config files.

    Returns:
        TranscoderConfig with merged configuration.

    Raises:
        ConfigError: When strict=True and the config file cannot be parsed.
        ValueError: If the logging section holds invalid values.
    """
    reader = EnvReader(env)
    file_config = load_config_file(config_path, strict=strict)

    tools_file = file_config.get("tools", {})
    flags_file = file_config.get("flags", {})
    logging_file = file_config.get("logging", {})

    tools = ToolPathsConfig(
        ffmpeg=_first(
            ffmpeg_path,
            reader.get_path("TRANSCODER_FFMPEG_PATH"),
            _file_path(tools_file, "ffmpeg"),
        ),
        ffprobe=_first(
            ffprobe_path,
            reader.get_path("TRANSCODER_FFPROBE_PATH"),
            _file_path(tools_file, "ffprobe"),
        ),
    )

    env_flags = Flags(
        progress=bool(
            reader.get_bool("TRANSCODER_PROGRESS", flags_file.get("progress", False))
        ),
        verbose=bool(
            reader.get_bool("TRANSCODER_VERBOSE", flags_file.get("verbose", False))
        ),
        debug=bool(
            reader.get_bool("TRANSCODER_DEBUG", flags_file.get("debug", False))
        ),
    )
    merged_flags = merge_flags(env_flags, flags) if flags else env_flags

    logging_config = LoggingConfig(
        level=reader.get_str("TRANSCODER_LOG_LEVEL")
        or logging_file.get("level", "info"),
        file=_first(
            reader.get_path("TRANSCODER_LOG_FILE", must_exist=False),
            _file_path(logging_file, "file"),
        ),
        format=reader.get_str("TRANSCODER_LOG_FORMAT")
        or logging_file.get("format", "text"),
        include_stderr=bool(logging_file.get("include_stderr", False)),
        max_bytes=int(logging_file.get("max_bytes", 10_485_760)),
        backup_count=int(logging_file.get("backup_count", 5)),
    )

    return TranscoderConfig(tools=tools, flags=merged_flags, logging=logging_config)


def auto_config(
    *flags: Flags,
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> TranscoderConfig:
    """Build a configuration with both binaries resolved.

    Configured paths are used when they point at a file, otherwise ffmpeg
    and ffprobe are looked up in PATH.

    Args:
        *flags: Flag sets merged with logical OR.
        config_path: Optional config file.
        env: Optional environment mapping for testing.

    Returns:
        TranscoderConfig with absolute tool paths.

    Raises:
        ConfigurationError: If either binary cannot be found.
    """
    base = get_config(
        config_path,
        env,
        flags=merge_flags(*flags) if flags else None,
    )
    binaries = locate_binaries(base.tools.ffmpeg, base.tools.ffprobe)
    if binaries.ffmpeg is None:
        raise ConfigurationError("ffmpeg binary path not found")
    if binaries.ffprobe is None:
        raise ConfigurationError("ffprobe binary path not found")

    return TranscoderConfig(
        tools=ToolPathsConfig(ffmpeg=binaries.ffmpeg, ffprobe=binaries.ffprobe),
        flags=base.flags,
        logging=base.logging,
    )

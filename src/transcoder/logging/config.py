"""Root logger setup for transcoder.

configure_logging() installs one formatter on a rotating log file, on
stderr, or on both, and apply_flags() maps the session flags onto the
package loggers: ``debug`` surfaces every ffmpeg status line, ``verbose``
keeps session lifecycle messages visible even when the root level is
quieter.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from transcoder.logging.context import SessionContextFilter
from transcoder.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from transcoder.config.models import Flags, LoggingConfig

logger = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(session_tag)s%(name)s: %(message)s"

PROGRESS_LOGGER = "transcoder.tools.ffmpeg_progress"
SESSION_LOGGER = "transcoder.executor.session"


def _attach(
    root: logging.Logger, handler: logging.Handler, fmt: logging.Formatter
) -> None:
    handler.setFormatter(fmt)
    handler.addFilter(SessionContextFilter())
    root.addHandler(handler)


def configure_logging(config: LoggingConfig, flags: Flags | None = None) -> None:
    """Replace the root logger's handlers according to config.

    Args:
        config: Level, destination and format settings.
        flags: Optional session flags, applied with apply_flags().
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if isinstance(handler, RotatingFileHandler):
            handler.close()
    root.setLevel(config.level.upper())

    if config.format.casefold() == "json":
        fmt: logging.Formatter = JSONFormatter()
    else:
        fmt = logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")

    file_error: OSError | None = None
    if config.file:
        path = Path(config.file).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                path,
                maxBytes=config.max_bytes,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            file_error = e
        else:
            _attach(root, file_handler, fmt)

    if config.include_stderr or not root.handlers:
        _attach(root, logging.StreamHandler(sys.stderr), fmt)

    if file_error is not None:
        logger.warning("Could not open log file %s: %s", config.file, file_error)

    if flags is not None:
        apply_flags(flags)


def apply_flags(flags: Flags) -> None:
    """Lower package logger levels for the debug and verbose flags.

    Handlers carry no level of their own, so a lowered logger level is
    enough for its records to reach the configured outputs.
    """
    if flags.debug:
        logging.getLogger(PROGRESS_LOGGER).setLevel(logging.DEBUG)
        logging.getLogger(SESSION_LOGGER).setLevel(logging.DEBUG)
    elif flags.verbose:
        logging.getLogger(SESSION_LOGGER).setLevel(logging.INFO)

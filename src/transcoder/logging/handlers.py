"""JSON log formatting for transcoder.

Records are rendered as one JSON object per line. Fields describing an
external tool run (``command``, ``pid``, ``returncode`` and timings, as
passed through ``extra`` by run_command() and Session) are grouped under
``process`` so log pipelines can index them without knowing every logger.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

PROCESS_FIELDS: tuple[str, ...] = (
    "command",
    "pid",
    "returncode",
    "arg_count",
    "outputs",
    "elapsed_seconds",
    "timeout_seconds",
)

# Attributes every LogRecord has, plus the ones added by formatters and
# SessionContextFilter
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "taskName", "session_id", "session_tag"}


class JSONFormatter(logging.Formatter):
    """Format log records as JSON objects.

    Keys, in order: ``time`` (ISO-8601 UTC), ``level``, ``logger``, ``msg``,
    then when present ``session``, ``process``, ``extra`` and ``exc``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        session_id = getattr(record, "session_id", None)
        if session_id:
            entry["session"] = session_id

        process: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in vars(record).items():
            if key in _RECORD_ATTRS or key.startswith("_"):
                continue
            if key in PROCESS_FIELDS:
                process[key] = value
            else:
                extra[key] = value
        if process:
            entry["process"] = {k: process[k] for k in PROCESS_FIELDS if k in process}
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)

"""Logging configuration.

Log records go to stderr, as plain text or as JSON (`BASESHA_LOG_JSON`).
`configure_logging()` installs the handler once; modules call `get_logger()`.

Standard output is reserved for console messages and the final
`Commit: <sha>` line, so log records never go there.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Mapping

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

SENSITIVE_KEYS = {
    "circle_api_token",
    "circle-token",
    "token",
    "api_key",
    "access_token",
    "secret",
    "password",
}

REDACTED = "***"


def redact(values: Mapping[str, Any]) -> dict[str, Any]:
    """Copy `values` with secret-looking keys masked, descending into nested mappings."""
    redacted: dict[str, Any] = {}
    for key, value in values.items():
        if str(key).lower() in SENSITIVE_KEYS:
            redacted[key] = REDACTED
        elif isinstance(value, Mapping):
            redacted[key] = redact(value)
        else:
            redacted[key] = value
    return redacted


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record, for CI log collectors.

    `extra=` fields are copied in with secrets masked. Records logged with a
    basesha exception also carry its `context`.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        payload.update(redact(extras))

        if record.exc_info:
            error = record.exc_info[1]
            context = getattr(error, "context", None)
            if isinstance(context, Mapping):
                payload["context"] = redact(context)
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(*, level: str = "WARNING", json_logs: bool = False) -> None:
    """Configure root logging once.

    Args:
        level: Root log level (e.g. 'INFO', 'DEBUG').
        json_logs: If True, emit JSON logs; otherwise emit plain text.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        JsonLogFormatter()
        if json_logs
        else logging.Formatter("%(levelname)s %(name)s %(message)s")
    )
    root.addHandler(handler)
    root.setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

"""Structured JSON logger for larkpost.

Every log record is emitted as a single-line JSON object::

    {"ts": "2026-10-19T12:00:00.123456+00:00", "level": "INFO",
     "logger": "larkpost.client", "message": "message sent",
     "op": "send_markdown", "chat_id": "oc_123", "msg_type": "post"}

Structured fields are passed with ``extra={"extra_fields": {...}}``.  They
go through :func:`larkpost.utils.redact.redact` before being written, so a
field named ``app_secret`` or ``tenant_access_token`` never reaches the log
stream in clear text.

Usage::

    from larkpost.observability import get_logger

    log = get_logger("larkpost.client")
    log.info("message sent", extra={"extra_fields": {"chat_id": "oc_1"}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from larkpost.utils.redact import redact


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys: ``ts`` (ISO-8601 UTC), ``level``, ``logger`` and
    ``message``.  Caller-supplied ``extra_fields`` are redacted and merged
    into the top level; ``exception`` and ``stack_info`` are added when the
    record carries them.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(
            record, "extra_fields", None
        )
        if extra_fields is not None:
            log_entry.update(redact(extra_fields))

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str, ensure_ascii=False)


# One handler per logger name so that repeated ``get_logger`` calls from
# several modules do not stack handlers.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "larkpost",
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Parameters
    ----------
    name:
        Logger name, e.g. ``"larkpost.converter"``.
    level:
        Minimum level as an ``int`` or a case-insensitive name such as
        ``"INFO"``.  Only applied the first time *name* is configured.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        The configured logger.  Repeated calls with the same *name* return
        the same logger without adding handlers.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.propagate = False

        _configured_loggers.add(name)

    return logger

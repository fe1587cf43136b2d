"""Logging setup for action scripts, with an optional JSON formatter."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict


# Attributes every LogRecord carries; anything else came from extra={...}
_RESERVED_ATTRS = frozenset({
    "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno",
    "funcName", "created", "msecs", "relativeCreated", "thread",
    "threadName", "processName", "process", "name", "message",
    "taskName",
})

PLAIN_FORMAT = "%(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects.

    Merges any `extra=` kwargs directly into the payload.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                payload[key] = value

        # non-serializable values fall back to str()
        return json.dumps(payload, default=str)


def configure_logging(level: int | str = logging.INFO, json_format: bool = False) -> logging.Handler:
    """
    Attach a stderr handler to the "fars" logger.

    Calling it again replaces the handler installed by the previous call
    instead of adding a second one.

    Args:
        level: Logging level for the "fars" logger.
        json_format: Emit JSON lines (JsonFormatter) instead of plain text.

    Returns:
        The installed handler.
    """
    logger = logging.getLogger("fars")

    for handler in list(logger.handlers):
        if getattr(handler, "_fars_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(PLAIN_FORMAT))
    handler._fars_handler = True

    logger.addHandler(handler)
    logger.setLevel(level)
    return handler

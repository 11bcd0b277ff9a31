"""
Logging configuration.
Installs one root handler at startup: JSON lines in deployed environments,
plain text for local development.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

# Extra attributes passed via logger.*(..., extra={...}) that end up in JSON output
EXTRA_FIELDS = ("error_code", "path", "actor_id", "target_id")

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

HANDLER_MARKER = "_block_server_handler"


class JSONFormatter(logging.Formatter):
    """
    Render each log record as a single JSON line.

    Output keys: timestamp (UTC, ISO 8601), level, logger, message, any
    populated EXTRA_FIELDS, and exception when exc_info is set.

    Example:
        ```python
        logger.warning("Guard denied request", extra={"error_code": "BLOCKING"})
        # {"timestamp": "...", "level": "WARNING", ..., "error_code": "BLOCKING"}
        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({
            key: getattr(record, key)
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        })
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """
    Configure the root logger.

    Calling it again swaps the previously installed handler instead of
    adding a second one, so tests and reloads do not duplicate output.

    Args:
        level: Log level name (unknown names fall back to INFO)
        fmt: "json" for JSON lines, anything else for plain text
    """
    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if not getattr(h, HANDLER_MARKER, False)]

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    setattr(handler, HANDLER_MARKER, True)

    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

_EXTRA_KEYS = (
    "trace_id",
    "req_id",
    "op",
    "endpoint",
    "audit_id",
    "code",
    "duration_ms",
    "outcome",
    "path",
    "status",
    "method",
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname.lower(),
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in _EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach the JSON handler to the ``frp_manager`` logger tree.

    Every module logger (``logging.getLogger(__name__)``) inside the package
    inherits the handler, so only the root of the tree is configured.
    """
    logger = logging.getLogger("frp_manager")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_server_logger() -> logging.Logger:
    return logging.getLogger("frp_manager.server")

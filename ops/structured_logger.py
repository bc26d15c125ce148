from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Any, Dict

from utils.request_context import get_event_id, get_request_id


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time_unix": time.time(),
            "revision": os.getenv("K_REVISION") or "",
            "service": os.getenv("K_SERVICE") or "docnotify",
        }
        rid = get_request_id()
        if rid:
            payload["request_id"] = rid
        event_id = get_event_id()
        if event_id:
            payload["event_id"] = event_id
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            payload.update(record.extra)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # Delivery requests carry datetimes; never let a log line raise.
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    # Prevent accidental secret leakage: httpx can log full URLs (incl. tokens) at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    root.handlers[:] = [handler]

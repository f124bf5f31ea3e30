# ledger/logging_config.py
"""
Logging setup for the ledger tracker.

Two output formats:
- text: human-readable lines for local development
- json: one JSON object per line for log aggregation
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

import settings

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    def __init__(self, service_name: str = "ledger-tracker"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def configure_logging(level: str = None, fmt: str = None) -> None:
    """
    Install a single stdout handler on the root logger.
    Safe to call more than once (the handler is replaced).
    """
    level = (level or settings.LOG_LEVEL).upper()
    fmt = (fmt or settings.LOG_FORMAT).lower()

    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_ledger_handler", False):
            root.removeHandler(existing)
    handler._ledger_handler = True
    root.addHandler(handler)
    root.setLevel(level)

    # SQL statement logging is controlled by SQL_ECHO on the engine
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

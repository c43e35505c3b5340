"""Structured logging configuration for the People Analytics Engine."""
import logging
import json
import sys
from datetime import datetime, timezone

# Optional ``extra=`` fields copied onto the JSON entry when present
EXTRA_FIELDS = ("section", "duration_ms", "employee_id", "department_id")


class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""
    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", json_output: bool = True):
    """Install a single stdout handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
        ))

    root.handlers = [handler]

    # SQL echo and pool chatter
    for name in ["sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "asyncio"]:
        logging.getLogger(name).setLevel(logging.WARNING)

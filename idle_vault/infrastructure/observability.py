"""Structured Logging — JSON log lines carrying economy context.

Invariants:
    - Every line has timestamp, level, logger, service and message
    - Economy extras (account_id, operation, amount, referrer_id, slot, tier,
      error_code, path) are surfaced when a call site passes them via extra=
    - Values that JSON cannot encode (enums, datetimes) are written as str,
      so a log call never raises
    - setup_logging() is idempotent: calling it again replaces the handler it
      installed instead of stacking a second one

Design Decisions:
    - Stdlib logging + own formatter: no extra dependency
    - SQLAlchemy engine and uvicorn access logs held at WARNING unless the app
      runs at DEBUG; claim traffic would otherwise drown the economy events
"""

import logging
import json
from datetime import datetime, timezone

SERVICE_NAME = "idle-vault"

ECONOMY_FIELDS = (
    "account_id", "operation", "amount", "referrer_id",
    "slot", "tier", "error_code", "path",
)

_NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, economy extras flattened to top level."""

    def __init__(self, service: str = SERVICE_NAME):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service,
            "message": record.getMessage(),
        }
        entry.update({
            key: record.__dict__[key]
            for key in ECONOMY_FIELDS
            if record.__dict__.get(key) is not None
        })
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the app's root handler, replacing one from an earlier call."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_idle_vault", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler._idle_vault = True
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    root.addHandler(handler)

    root_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(root_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            root_level if root_level <= logging.DEBUG else logging.WARNING,
        )
    return handler

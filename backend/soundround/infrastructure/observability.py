"""Structured Logging — JSON formatter, log-context helper and setup.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Round-scoped fields (round_code, participant_id, stored_file, ...) surfaced when present
    - setup_logging replaces its own handler on repeat calls, never stacks duplicates
"""

import logging
import json
from datetime import datetime, timezone

ROUND_FIELDS = (
    "round_code", "participant_id", "error_code", "stored_file", "path",
    "old_state", "new_state", "size",
)

_HANDLER_NAME = "soundround"


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ROUND_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def log_context(**fields: object) -> dict:
    """Build a logging `extra=` mapping from the round fields that are set."""
    return {
        key: value for key, value in fields.items()
        if key in ROUND_FIELDS and value is not None
    }


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s — %(message)s",
        ))
    for existing in list(logging.root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logging.root.removeHandler(existing)
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))

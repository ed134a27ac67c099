"""
Logging setup for the API process.

Modules log through `logging.getLogger(__name__)`; this module only decides
where records go and how they look. It is called once from the FastAPI
lifespan in main.py.

Two formats:
  - "text": human-readable, for local development
  - "json": one JSON object per line, for log shippers in production

Card numbers, ciphertexts, passwords and tokens are never passed to a logger;
services log ids and the last four card digits at most.
"""

import json
import logging
from datetime import datetime, timezone

# Extra fields surfaced by the JSON formatter when a record carries them
_EXTRA_FIELDS = ("card_id", "user_id", "request_id", "transfer_id", "error_type")


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            value = record.__dict__.get(key)
            if value is not None:
                log[key] = str(value)
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Attach a single stream handler to the root logger."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))

    root = logging.getLogger()
    # Re-running setup (tests, reloads) must not stack handlers
    for existing in list(root.handlers):
        if getattr(existing, "_bankcards_handler", False):
            root.removeHandler(existing)
    handler._bankcards_handler = True
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

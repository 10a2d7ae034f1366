"""
Logging setup for the ledger engine.

Modules log through `logging.getLogger(__name__)`, so everything lands under
the "ledger" logger configured here. Plain text is the default; set
LOG_JSON=true to get one JSON object per line for log shippers.
"""

import json
import logging
from datetime import datetime, timezone


class JSONFormatter(logging.Formatter):
    """Render a log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    logger_name: str = "ledger",
) -> logging.Logger:
    """
    Configure the ledger logger hierarchy with a single stream handler.

    Safe to call more than once (e.g. by every app lifespan in a test run):
    existing handlers are replaced rather than duplicated.
    """
    logger = logging.getLogger(logger_name)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False
    return logger

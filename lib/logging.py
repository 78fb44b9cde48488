"""
Logging module - one configured app logger, request lines as JSON
"""
import json
import logging
from typing import Any, Dict, Optional

LOGGER_NAME = "notes_status"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the app logger once; later calls only adjust the level"""
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(level.upper() if isinstance(level, str) else level)

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Child of the app logger, e.g. get_logger("db") -> notes_status.db"""
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def log_json(logger: logging.Logger, data: Dict[str, Any], level: int = logging.INFO):
    """Emit a single JSON line (picked up by log aggregators)"""
    logger.log(level, json.dumps(data, default=str))

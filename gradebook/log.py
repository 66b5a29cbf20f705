from __future__ import annotations
import os
import sys
from typing import Optional

from loguru import logger

LOG_LEVEL_ENV = "GRADEBOOK_LOG_LEVEL"
LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

_sink_id: Optional[int] = None


def setup_logging(level: Optional[str] = None) -> None:
    """Replace loguru's default sink with a single stderr sink. Safe to call on every rerun."""
    global _sink_id
    level = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    if _sink_id is None:
        logger.remove()
    else:
        logger.remove(_sink_id)
    _sink_id = logger.add(sys.stderr, level=level, format=LOG_FORMAT)

"""
Logging setup. Stdout only; the embedding application decides where
stdout goes.
"""
import logging
import sys
from typing import Optional

from habitlog.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_handler: Optional[logging.Handler] = None


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a stdout handler to the `habitlog` logger. Safe to call twice."""
    global _handler
    logger = logging.getLogger("habitlog")
    logger.setLevel((level or settings.LOG_LEVEL).upper())
    if _handler is None:
        _handler = logging.StreamHandler(sys.stdout)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_handler)

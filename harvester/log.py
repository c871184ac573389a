"""Logging setup for command-line entry points.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
attached here, once, by whoever owns the process.
"""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a single stream handler."""
    logging.basicConfig(level=level.upper(), format=_FORMAT, force=True)
    # httpx logs every request at INFO; keep it quiet unless debugging.
    if logging.getLogger().level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)

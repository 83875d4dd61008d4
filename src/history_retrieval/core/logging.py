"""
Logging setup.

All modules log through stdlib loggers named under ``retrieval.*``; this
configures the root handler once for the hosting process.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging at the given level name.

    Unknown level names fall back to INFO. Calling this more than once only
    adjusts the level.
    """
    resolved = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt=DATE_FORMAT)

    root.setLevel(resolved)
    logging.getLogger("retrieval").setLevel(resolved)

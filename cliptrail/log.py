"""Package-wide logger.

Modules import ``logger`` from here rather than creating their own so a
single ``--debug`` switch in :mod:`cliptrail.__main__` controls everything.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger("cliptrail")
logger.addHandler(logging.NullHandler())


def configure_file_logging(path: Path, level: int = logging.DEBUG) -> None:
    """Send package logs to *path*.

    The TUI owns the terminal, so logs never go to stderr while it runs.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.setLevel(level)

"""Logging setup.

The terminal belongs to Textual while the app runs, so records never go to
the console: they go to a rotating file when one is configured and are
dropped otherwise.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

_FORMAT = "%(asctime)s [%(levelname)8s] %(name)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(fmt=_FORMAT, datefmt=_DATEFMT)


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    max_bytes: int = 5_242_880,
    backup_count: int = 3,
) -> logging.Logger:
    """Configure the `tradeterm` logger tree and return its root."""
    root = logging.getLogger("tradeterm")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.propagate = False

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count
        )
        handler.setFormatter(TextFormatter())
    else:
        handler = logging.NullHandler()
    root.addHandler(handler)
    root.debug("Logging initialized: level=%s file=%s", level, log_file)
    return root

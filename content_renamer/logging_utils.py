"""Logging setup for the command-line tool.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, to the package logger.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "content_renamer"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
CONSOLE_FORMAT = "[%(asctime)s %(levelname).3s] %(message)s"


def get_logger(log_dir: Optional[Path] = None, verbose: bool = False) -> logging.Logger:
    """Return the package logger with console and rotating file handlers.

    Parameters
    ----------
    log_dir:
        Directory for ``content_renamer.log``. Created if missing. ``None``
        disables the file handler.
    verbose:
        Console shows DEBUG records instead of INFO.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG)

    # Guard against double-adding handlers on repeated calls
    if logger.handlers:
        for handler in logger.handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        return logger

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(console)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            log_dir / f"{PACKAGE_LOGGER}.log", maxBytes=5_000_000, backupCount=5, encoding="utf-8"
        )
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(fh)

    logger.propagate = False
    return logger

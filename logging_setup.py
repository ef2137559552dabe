#!/usr/bin/env python3
"""
logging_setup.py
================
Configures the root logger with a console handler and a rotating file
handler (``adas.log``, 1 MB, 2 backups).

Call :func:`setup_logging` once at startup before the pipeline is built.
"""

import logging
from logging.handlers import RotatingFileHandler

from config import ARBITER_DEBUG_LOG_FILE, LOG_FILE


def setup_logging(
    level: int = logging.INFO,
    log_file: str = LOG_FILE,
    arbiter_log_file: str = ARBITER_DEBUG_LOG_FILE,
) -> None:
    """Apply a unified log format to both console and file output.

    Parameters
    ----------
    level : int
        Minimum severity level (e.g. ``logging.DEBUG``, ``logging.INFO``).
    log_file : str
        Path of the rotating application log.
    arbiter_log_file : str
        Path of the dedicated mode-arbiter debug log.
    """
    root = logging.getLogger()
    root.setLevel(level)

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(fmt)

    fh = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=2)
    fh.setLevel(level)
    fh.setFormatter(fmt)

    root.handlers.clear()
    root.addHandler(ch)
    root.addHandler(fh)

    # ── Dedicated debug file for mode transition approvals / denials ─────
    arbiter_logger = logging.getLogger("mode_arbiter")
    arbiter_logger.setLevel(logging.DEBUG)
    for handler in list(arbiter_logger.handlers):
        if isinstance(handler, RotatingFileHandler):
            arbiter_logger.removeHandler(handler)
            handler.close()
    dfh = RotatingFileHandler(
        arbiter_log_file, maxBytes=5_000_000, backupCount=2
    )
    dfh.setLevel(logging.DEBUG)
    dfh.setFormatter(fmt)
    arbiter_logger.addHandler(dfh)

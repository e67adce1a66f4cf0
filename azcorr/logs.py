"""azcorr/logs.py
Author: Sabin Thapa <sthapa3@kent.edu>

Logger factory shared by every module of the package.
"""

from __future__ import annotations

import logging


def make_logger(name: str = "azcorr", level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(level)
        h = logging.StreamHandler()
        h.setLevel(level)
        h.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(h)
    else:
        logger.setLevel(level)
        for h in logger.handlers:
            h.setLevel(level)
    return logger


def get_logger(module: str) -> logging.Logger:
    """Child logger of the package logger, e.g. ``azcorr.pipeline``."""
    return logging.getLogger(f"azcorr.{module}")


log = make_logger()

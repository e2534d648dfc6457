"""Rotating file logging shared by the publisher and the monitor."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Union

MAX_BYTES = 1024 * 1024
BACKUP_COUNT = 3
LOG_FORMAT = "[%(asctime)s.%(msecs)03d] [t:%(thread)d] [%(name)s] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def init_logging(path: Union[str, Path], name: str = "sensor-hub") -> logging.Logger:
    """Configure a named logger writing to a size-rotated file.

    A failure to open the file is reported on stderr and leaves the logger
    without a file handler.
    """
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.INFO)
    logger.propagate = False

    try:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            target, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
        )
    except OSError as exc:
        print(f"Logger initialization failed: {exc}", file=sys.stderr)
        return logger

    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(handler)
    return logger
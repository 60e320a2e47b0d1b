"""Logger setup.  Five levels: ERROR, WARN, INFO, DETAIL, DEBUG."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO, Union

DETAIL = 15
logging.addLevelName(DETAIL, "DETAIL")

LOG_LEVELS = {
    "DEBUG":   logging.DEBUG,
    "DETAIL":  DETAIL,
    "INFO":    logging.INFO,
    "WARN":    logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR":   logging.ERROR,
}
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(
    level: str = "DETAIL",
    stream: Optional[TextIO] = None,
    *,
    log_file: Union[str, Path, None] = None,
) -> logging.Logger:
    resolved = LOG_LEVELS.get(level.upper(), DETAIL)

    logger = logging.getLogger("window_session")
    logger.setLevel(resolved)
    logger.handlers.clear()
    formatter = logging.Formatter(_FORMAT)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger

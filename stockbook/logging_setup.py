from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

LOG_FILE_NAME = "stockbook.log"


def setup_logging(settings) -> Path:
    """Configure rotating file logging under <data_dir>/logs/stockbook.log"""
    log_dir = Path(settings.data_dir).expanduser() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME

    level = logging.getLevelName(str(settings.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")
    handler = logging.handlers.RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    handler.setFormatter(fmt)
    handler.setLevel(level)

    logger = logging.getLogger()  # root
    logger.setLevel(level)
    # avoid duplicate handlers across streamlit reruns
    if not any(
        isinstance(h, logging.handlers.RotatingFileHandler) and getattr(h, "baseFilename", "") == str(log_path)
        for h in logger.handlers
    ):
        logger.addHandler(handler)
    else:
        handler.close()

    return log_path

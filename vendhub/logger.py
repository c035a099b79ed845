import logging
import sys
from logging.handlers import RotatingFileHandler
from . import settings


def setup_logger(name: str = None, log_level: int | str = None) -> logging.Logger:
    """
    Sets up the root logger with both console (StreamHandler) and file (RotatingFileHandler) output.
    """
    log_level = log_level or settings.LOG_LEVEL
    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Prevent adding handlers multiple times if logger is already set up
    if logger.hasHandlers():
        return logger

    console_format = logging.Formatter("%(message)s")
    file_format = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = settings.LOG_DIR / "vendhub.log"

    file_handler = RotatingFileHandler(
        log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"  # 5 MB
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(file_format)
    logger.addHandler(file_handler)

    # SQLAlchemy echoes through its own loggers; keep them quiet unless debugging.
    if logger.level > logging.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return logger

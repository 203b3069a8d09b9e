"""Logging setup shared by the CLI and embedding applications."""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from schedule_engine.config.settings import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def _rotating_handler(log_dir: Path, name: str, formatter: logging.Formatter) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_dir / f'{name}.log',
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
    )
    handler.setFormatter(formatter)
    return handler


def configure_logging(name: str, log_dir: Optional[Path] = None) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to a named logger.

    Args:
        name: Logger name, usually the package name so every module inherits it
        log_dir: Write a rotating ``<name>.log`` here. Without it, a file is
            only written when SCHEDULE_LOG_TO_FILE is set (under settings.LOG_DIR).

    Returns:
        The configured logger. Calling again for the same name adds nothing.
    """
    logger = logging.getLogger(name)
    logger.setLevel(settings.LOG_LEVEL)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_dir is not None:
        logger.addHandler(_rotating_handler(Path(log_dir), name, formatter))
    elif settings.LOG_TO_FILE:
        logger.addHandler(_rotating_handler(settings.LOG_DIR, name, formatter))

    return logger

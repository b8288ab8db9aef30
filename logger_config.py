"""Logging for Smart Task Service.

Each component (engine, api, mcp, crud) writes to its own rotating file under
LOG_DIR and echoes to the console. The trigger engine's per-task decisions
land in engine.log.
"""

import logging
from logging.handlers import RotatingFileHandler
import os

from config import settings

LOG_DIR = settings.LOG_DIR or os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs')
os.makedirs(LOG_DIR, exist_ok=True)

LOG_FORMAT = '[%(asctime)s] %(levelname)s %(name)s - %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'

# Loggers of libraries we talk through; their INFO output drowns the engine's
QUIET_LOGGERS = ('uvicorn', 'uvicorn.access', 'fastapi', 'sqlalchemy', 'httpx', 'httpcore', 'mcp')


def setup_logger(name: str, log_file: str = 'service.log') -> logging.Logger:
    """Return the logger for a component, attaching handlers on first use.

    Args:
        name: Logger name (usually __name__)
        log_file: File under LOG_DIR shared by the component's modules

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    file_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, log_file),
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding='utf-8'
    )
    console_handler = logging.StreamHandler()
    for handler in (file_handler, console_handler):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def quiet_third_party_loggers():
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


quiet_third_party_loggers()

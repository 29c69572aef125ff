"""
Logging configuration for Ultra Chat

Everything logs under the "ultrachat" logger: INFO and up to stdout, full
DEBUG detail to one file per day in Config.LOGS_DIR.
"""
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional, Union
from ultrachat.config import Config

ROOT_LOGGER = "ultrachat"

DETAILED_FORMAT = logging.Formatter(
    '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
CONSOLE_FORMAT = logging.Formatter(
    '%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)


def log_file_for(log_dir: Union[str, Path], day: Optional[date] = None) -> Path:
    """Path of the log file for a given day"""
    day = day or date.today()
    return Path(log_dir) / f"ultrachat_{day.strftime('%Y%m%d')}.log"


def _resolve_level(log_level) -> int:
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(str(log_level).upper())
    return level if isinstance(level, int) else logging.INFO


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    handler.setFormatter(CONSOLE_FORMAT)
    return handler


def _file_handler(log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file_for(log_dir), encoding='utf-8')
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(DETAILED_FORMAT)
    return handler


def setup_logger(name: str = ROOT_LOGGER, log_level=None, log_dir=None) -> logging.Logger:
    """
    Configure a logger with console and daily file output

    Safe to call repeatedly: the level is always applied, handlers are only
    added once per logger.

    Args:
        name: Logger name
        log_level: Level name or number (defaults to Config.LOG_LEVEL)
        log_dir: Directory for log files (defaults to Config.LOGS_DIR)

    Returns:
        logging.Logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(log_level or Config.LOG_LEVEL))

    if logger.handlers:
        return logger

    logger.addHandler(_console_handler())

    try:
        logger.addHandler(_file_handler(Path(log_dir or Config.LOGS_DIR)))
    except OSError as e:
        # Console logging still works without a writable log directory
        logger.warning(f"Could not create file handler: {e}")

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get the application logger or one of its children

    Args:
        name: Child name, e.g. "chat_session" for "ultrachat.chat_session"
    """
    if name:
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")
    return logging.getLogger(ROOT_LOGGER)


setup_logger()

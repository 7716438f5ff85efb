# livecaptions/LoggingSetup.py
import sys
import logging
from pathlib import Path
from typing import Optional
from logging.handlers import RotatingFileHandler

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] %(message)s'
LOG_FILE_NAME = "livecaptions.log"

# Libraries that log every frame at DEBUG
_NOISY_LOGGERS = ("websockets", "asyncio")


def _file_handler(logs_dir: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    logs_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        logs_dir / LOG_FILE_NAME,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(logs_dir: Optional[Path], verbose: bool = False, console: bool = True) -> Optional[Path]:
    """
    Configure root logging for the caption engine.

    Replaces any existing root handlers. Caption frames go to stdout, so
    console logging uses stderr. Third-party loggers that trace individual
    WebSocket frames are held at INFO even in verbose mode.

    Args:
        logs_dir: Directory for rotating log files; None disables the file handler
        verbose: If True, set DEBUG level; otherwise WARNING
        console: If True, also log to stderr

    Returns:
        Path of the log file, or None when no file handler was added
    """
    level = logging.DEBUG if verbose else logging.WARNING
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    log_file = None
    if logs_dir is not None:
        root_logger.addHandler(_file_handler(logs_dir, level, formatter))
        log_file = logs_dir / LOG_FILE_NAME

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    logging.info("Logging initialized: level=%s, log_file=%s", logging.getLevelName(level), log_file)
    return log_file

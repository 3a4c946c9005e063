"""Logging configuration for HomeNet.

Provides structured logging with file rotation and optional console output.
All components use this logging system instead of print().

Usage:
    from config.logging_config import setup_logging, get_logger

    # Initialize at startup
    setup_logging(data_dir=Path.home() / ".homenet")

    # Get logger in any module
    logger = get_logger(__name__)
    logger.info("Discovery started")
"""
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from config.constants import STORAGE


ROOT_LOGGER_NAME = 'homenet'

# Module-level logger cache
_loggers: dict = {}
_initialized: bool = False


class HomeNetFormatter(logging.Formatter):
    """Formatter with color support for console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',
    }

    def __init__(self, use_colors: bool = True):
        self.use_colors = use_colors
        super().__init__(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record: logging.LogRecord) -> str:
        if self.use_colors and sys.stderr.isatty():
            record = logging.makeLogRecord(record.__dict__)
            color = self.COLORS.get(record.levelname, '')
            record.levelname = f"{color}{record.levelname}{self.COLORS['RESET']}"
        return super().format(record)


def setup_logging(
    data_dir: Optional[Path] = None,
    debug: bool = False,
    console_output: bool = True,
    log_to_file: bool = True,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Initialize the logging system.

    Should be called once at startup. Subsequent calls reconfigure the
    existing logger.

    Args:
        data_dir: Directory for log files. Defaults to ~/.homenet/
        debug: Enable debug-level logging.
        console_output: Also log to stderr.
        log_to_file: Write logs to a rotating file.
        log_file: Log file name or path; relative names land in data_dir.

    Returns:
        The root logger for the application.
    """
    global _initialized

    if data_dir is None:
        data_dir = Path.home() / STORAGE.DATA_DIR_NAME

    data_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    root_logger.handlers.clear()

    if log_to_file:
        log_path = data_dir / (log_file or STORAGE.LOG_FILE)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=STORAGE.LOG_MAX_BYTES,
            backupCount=STORAGE.LOG_BACKUP_COUNT,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
        console_handler.setFormatter(HomeNetFormatter(use_colors=True))
        root_logger.addHandler(console_handler)

    root_logger.info(
        f"Logging initialized - level={'DEBUG' if debug else 'INFO'}, "
        f"file={log_to_file}, console={console_output}"
    )

    _initialized = True
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Returns a child of the root 'homenet' logger, named after the last two
    components of the module path (e.g. "discovery.prober").

    Args:
        name: Usually __name__ of the calling module.
    """
    short_name = '.'.join(name.split('.')[-2:])

    if short_name not in _loggers:
        _loggers[short_name] = logging.getLogger(f'{ROOT_LOGGER_NAME}.{short_name}')

    return _loggers[short_name]


def log_exception(logger: logging.Logger, message: str, exc: Exception) -> None:
    """Log an exception with full traceback and context.

    Example:
        >>> try:
        ...     registry.save(path)
        ... except OSError as e:
        ...     log_exception(logger, "Failed to save devices", e)
    """
    logger.error(f"{message}: {type(exc).__name__}: {exc}", exc_info=True)


class LogContext:
    """Context manager for logging operation duration.

    Example:
        >>> with LogContext(logger, "Discovery cycle"):
        ...     orchestrator.run_cycle()
        # Logs: "Discovery cycle completed in 1234ms"
    """

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.DEBUG):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.start_time: Optional[datetime] = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.log(self.level, f"{self.operation} starting...")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = (datetime.now() - self.start_time).total_seconds() * 1000

        if exc_type:
            self.logger.error(f"{self.operation} failed after {duration:.0f}ms: {exc_val}")
        else:
            self.logger.log(self.level, f"{self.operation} completed in {duration:.0f}ms")

        return False  # Don't suppress exceptions

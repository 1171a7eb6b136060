"""
Logging configuration for ytm-bridge.

This module sets up the logging system with up to three outputs:
    - Console: Compact colored messages, tqdm-compatible
    - log_full_{timestamp}.log: Complete log of all events (DEBUG and above)
    - log_errors_{timestamp}.log: Only ERROR and CRITICAL level messages

File outputs are only created when a log directory is given (CLI option
--log-dir or logging.directory in config.yaml). Library users who never call
setup_logging() get Python's default behaviour.

Usage:
    from ytm_bridge.core.logger import setup_logging, get_logger

    setup_logging("INFO", log_dir)  # Call once at startup
    logger = get_logger(__name__)   # Get logger for each module

    logger.info("Fetched 100 tracks")
    logger.debug("Retrying with client version 1.20240130.01.00")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

import colorama
from colorama import Fore, Style
from tqdm import tqdm


LOG_FULL_FILENAME = "log_full"
LOG_ERRORS_FILENAME = "log_errors"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at DEBUG
NOISY_LOGGERS = ("urllib3", "urllib3.connectionpool", "requests")


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that colors the level name for console output.

    Colors:
        - DEBUG: Cyan
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bright Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record as "LEVEL: message", with color if enabled.

        Args:
            record: The log record to format.

        Returns:
            Formatted string, possibly with ANSI color codes.
        """
        levelname = record.levelname
        if self.use_colors:
            color = self.LEVEL_COLORS.get(record.levelno, Fore.WHITE)
            levelname = f"{color}{levelname}{Style.RESET_ALL}"

        message = f"{levelname}: {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to the console without breaking tqdm progress bars.

    tqdm progress bars use carriage returns to update in-place; plain writes
    to the same stream corrupt them. tqdm.write() prints above any active bar.
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        """
        Args:
            stream: Output stream for log messages. Defaults to stderr so
                    stdout stays clean for JSON output.
        """
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class ErrorOnlyFilter(logging.Filter):
    """
    Filter that only allows ERROR and CRITICAL level records.

    Used by the error log file handler to exclude DEBUG, INFO, and WARNING.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(
    level: str = "INFO",
    log_dir: Path | None = None,
    colored_output: bool = True
) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any requests are made.

    Args:
        level: Console log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_dir: Directory where log files will be created, or None to log
                 to the console only.
        colored_output: Color the level names on the console.

    Behavior:
        1. Configure root logger level to DEBUG and drop existing handlers
        2. Add the console handler (TqdmLoggingHandler) at the given level
        3. If log_dir is set, create it and add the full and error-only
           file handlers, named with this run's timestamp
        4. Raise noisy third-party loggers to WARNING
    """
    colorama.just_fix_windows_console()

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.setFormatter(ColoredConsoleFormatter(use_colors=colored_output))
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        file_formatter = logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT)

        full_handler = logging.FileHandler(
            log_dir / f"{LOG_FULL_FILENAME}_{timestamp}.log", mode="w", encoding="utf-8"
        )
        full_handler.setLevel(logging.DEBUG)
        full_handler.setFormatter(file_formatter)
        root_logger.addHandler(full_handler)

        error_handler = logging.FileHandler(
            log_dir / f"{LOG_ERRORS_FILENAME}_{timestamp}.log", mode="w", encoding="utf-8"
        )
        error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
        error_handler.setFormatter(file_formatter)
        error_handler.addFilter(ErrorOnlyFilter())
        root_logger.addHandler(error_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    get_logger("ytm_bridge").debug(
        f"Logging initialized - Level: {level}, Directory: {log_dir}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.
              This creates a hierarchy like 'ytm_bridge.innertube.executor'.

    Returns:
        logging.Logger: A logger instance configured by setup_logging().

    Note:
        Loggers obtained before setup_logging() is called still work; they
        simply use whatever handlers the host application configured.
    """
    return logging.getLogger(name)


def shutdown_logging() -> None:
    """
    Flush and close all root handlers.

    Typically called in a finally block at CLI exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except Exception:
            pass
        root_logger.removeHandler(handler)

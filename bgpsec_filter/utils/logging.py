"""
Logging setup for BGPsec Filter

Console output goes to stderr so that commands writing JSON to stdout stay
pipeable. File output is optional and rotated.
"""

import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Dict

from bgpsec_filter.utils.config import get_config

LOG_FORMAT_WITH_MODULE = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_PLAIN = "%(asctime)s - %(levelname)s - %(message)s"


class FilterLogFormatter(logging.Formatter):
    """Formatter adding level colors and operation durations"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True, include_module: bool = True):
        # Colors only make sense on a terminal
        self.use_colors = use_colors and sys.stderr.isatty()
        super().__init__(
            fmt=LOG_FORMAT_WITH_MODULE if include_module else LOG_FORMAT_PLAIN,
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    def format(self, record):
        formatted = super().format(record)

        duration = getattr(record, "duration", None)
        if duration is not None:
            formatted += f" [took {duration:.3f}s]"

        if self.use_colors and record.levelname in self.COLORS:
            formatted = f"{self.COLORS[record.levelname]}{formatted}{self.RESET}"
        return formatted


def setup_logging(
    config=None,
    level: str = None,
    log_to_file: bool = None,
    log_file: str = None,
    console_colors: bool = True,
    include_modules: bool = True,
) -> Dict[str, logging.Handler]:
    """
    Replace the root logger's handlers with BGPsec Filter handlers

    Arguments left as None are taken from ``config.logging``.

    Args:
        config: FilterConfig instance (default: global configuration)
        level: Log level name
        log_to_file: Also log to ``log_file``
        log_file: Path of the rotated log file
        console_colors: Color console output when stderr is a terminal
        include_modules: Include logger names in console output

    Returns:
        Configured handlers keyed by 'console' and, when enabled, 'file'
    """
    logging_config = (config or get_config()).logging

    level = level or logging_config.level
    if log_to_file is None:
        log_to_file = logging_config.log_to_file
    log_file = log_file or logging_config.log_file

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(
        FilterLogFormatter(use_colors=console_colors, include_module=include_modules)
    )
    root_logger.addHandler(console_handler)
    handlers = {"console": console_handler}

    if log_to_file and log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=10 * 1024 * 1024, backupCount=5
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(FilterLogFormatter(use_colors=False))
        root_logger.addHandler(file_handler)
        handlers["file"] = file_handler

    logging.getLogger("bgpsec_filter.logging").debug(
        f"Logging configured: level={level}, handlers={sorted(handlers)}"
    )
    return handlers


def log_apply_summary(logger: logging.Logger, filters: int, emitted: int, suppressed: int):
    """Log the outcome of one filter application run"""
    total = emitted + suppressed
    message = (
        f"BGPsec filtering with {filters} filters: "
        f"{emitted}/{total} router certificates emitted, {suppressed} suppressed"
    )
    # Every certificate suppressed
    if total and not emitted:
        logger.warning(message)
    else:
        logger.debug(message)


class LoggingTimer:
    """Context manager logging start, completion and duration of an operation"""

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.INFO):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        self.logger.log(self.level, f"Starting {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time

        if exc_type is None:
            self.logger.log(self.level, f"Completed {self.operation}",
                            extra={"duration": duration})
        else:
            self.logger.error(f"Failed {self.operation}: {exc_val}",
                              extra={"duration": duration})
        return False

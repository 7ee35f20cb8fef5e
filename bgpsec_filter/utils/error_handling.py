"""
Exceptions and user-facing error reporting for BGPsec Filter

Every error raised on purpose derives from FilterError and carries a
severity plus optional guidance. Command functions are wrapped with
handle_errors(), which prints the error and turns the severity into the
process exit status:

    ✓ message        success (exit 0)
    ⚠ message        warning (exit 0)
    ✗ message        error (exit 1)
    ✗ Fatal: message fatal (exit 2)
"""

import logging
from functools import wraps
from typing import Optional


class ErrorSeverity:
    """Error severity levels"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"
    USAGE = "usage"


# Exit status per severity; anything not listed exits 0
EXIT_CODES = {
    ErrorSeverity.ERROR: 1,
    ErrorSeverity.USAGE: 1,
    ErrorSeverity.FATAL: 2,
}
EXIT_INTERRUPTED = 130


class FilterError(Exception):
    """Base class for all BGPsec Filter errors"""

    def __init__(self, message: str, severity: str = ErrorSeverity.ERROR,
                 guidance: Optional[str] = None, technical_details: Optional[str] = None):
        self.message = message
        self.severity = severity
        self.guidance = guidance
        self.technical_details = technical_details
        super().__init__(message)


class ValidationError(FilterError):
    """Caller supplied a value that cannot be accepted"""

    def __init__(self, message: str, parameter: str = None, guidance: str = None):
        self.parameter = parameter
        super().__init__(message, ErrorSeverity.ERROR, guidance)


class InvalidFilter(ValidationError):
    """BGPsec filter violates RFC 8416 constraints (no asn and no SKI, bad SKI, long comment)"""


class InvalidAsn(InvalidFilter):
    """AS number text outside the accepted notations or the 32-bit range"""

    def __init__(self, message: str, parameter: str = "asn", guidance: str = None):
        super().__init__(
            message, parameter,
            guidance or "Use AS<n>, <n> or asdot <high>.<low> notation within 0-4294967295"
        )


class SlurmFormatError(ValidationError):
    """SLURM document is malformed or uses an unsupported version"""


class RouterKeyFormatError(FilterError):
    """Router key input is not valid JSON or not in a known layout"""

    def __init__(self, message: str, guidance: str = None, technical_details: str = None):
        super().__init__(
            message, ErrorSeverity.ERROR,
            guidance or "Pass rpki-client, Routinator or native router key JSON",
            technical_details
        )


class ConfigurationError(FilterError):
    """Configuration file or environment is invalid"""


class ErrorFormatter:
    """Renders messages and exceptions for terminal output"""

    SYMBOLS = {
        ErrorSeverity.INFO: "✓",
        ErrorSeverity.WARNING: "⚠",
        ErrorSeverity.ERROR: "✗",
        ErrorSeverity.FATAL: "✗ Fatal:",
        ErrorSeverity.USAGE: "Usage:"
    }

    # (exception type, message prefix, guidance) for errors raised outside the package
    OS_ERRORS = (
        (FileNotFoundError, "File not found",
         "Check that the file path is correct and the file exists"),
        (PermissionError, "Permission denied",
         "Check file permissions or run with appropriate privileges"),
        (IsADirectoryError, "Expected a file",
         "Pass a file path, not a directory"),
    )

    @classmethod
    def format_message(cls, message: str, severity: str = ErrorSeverity.ERROR,
                       guidance: Optional[str] = None) -> str:
        text = f"{cls.SYMBOLS.get(severity, '•')} {message}"
        if guidance:
            text += f"\n  Suggestion: {guidance}"
        return text

    @classmethod
    def format_error(cls, error: BaseException, hide_technical: bool = True) -> str:
        """Render an exception, adding technical details only on request"""
        if isinstance(error, FilterError):
            text = cls.format_message(error.message, error.severity, error.guidance)
            if error.technical_details and not hide_technical:
                text += f"\n  Technical: {error.technical_details}"
            return text

        if isinstance(error, KeyboardInterrupt):
            return cls.format_message("Operation interrupted by user", ErrorSeverity.WARNING)

        for error_type, prefix, guidance in cls.OS_ERRORS:
            if isinstance(error, error_type):
                return cls.format_message(f"{prefix}: {error}", ErrorSeverity.ERROR, guidance)

        if hide_technical:
            return cls.format_message("Unexpected error occurred", ErrorSeverity.ERROR,
                                      "Check logs for details or run with --verbose")
        return cls.format_message(f"Unexpected {type(error).__name__}: {error}")


def handle_errors(logger_name: str = None, hide_technical: bool = True):
    """
    Decorator for CLI command functions

    Errors are printed and converted to an exit status instead of
    propagating. The wrapped function's own return value is passed through.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(logger_name or f'bgpsec_filter.{func.__name__}')
            try:
                return func(*args, **kwargs)
            except FilterError as e:
                logger.error(f"{func.__name__} failed ({e.severity}): {e.message}")
                print(ErrorFormatter.format_error(e, hide_technical))
                return EXIT_CODES.get(e.severity, 0)
            except KeyboardInterrupt as e:
                logger.info(f"{func.__name__} interrupted by user")
                print(ErrorFormatter.format_error(e))
                return EXIT_INTERRUPTED
            except Exception as e:
                logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
                print(ErrorFormatter.format_error(e, hide_technical))
                return 1
        return wrapper
    return decorator


def print_success(message: str):
    print(ErrorFormatter.format_message(message, ErrorSeverity.INFO))


def print_warning(message: str, guidance: str = None):
    print(ErrorFormatter.format_message(message, ErrorSeverity.WARNING, guidance))


__all__ = [
    'ErrorSeverity', 'EXIT_CODES', 'FilterError', 'ValidationError', 'InvalidFilter',
    'InvalidAsn', 'SlurmFormatError', 'RouterKeyFormatError', 'ConfigurationError',
    'ErrorFormatter', 'handle_errors', 'print_success', 'print_warning'
]

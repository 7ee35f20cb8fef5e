import logging
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from webui.settings import DATA_DIR

AUDIT_LOGGER_NAME = "bgpsec_filter.audit"


class AuditFormatter(logging.Formatter):
    def format(self, record):
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        user = getattr(record, 'user', None) or 'system'
        action = record.msg
        resource = getattr(record, 'resource', None)
        result = getattr(record, 'result', 'success')

        parts = [f"User: {user}", f"Action: {action}"]
        if resource:
            parts.append(f"Resource: {resource}")
        details = getattr(record, 'details', None)
        if details:
            rendered = ", ".join(
                f"{key}={value}" for key, value in details.items() if value is not None
            )
            if rendered:
                parts.append(f"Details: {rendered}")
        parts.append(f"Result: {result}")

        return f"{timestamp} - AUDIT - {' | '.join(parts)}"


def setup_audit_logging(log_dir: Optional[Union[str, Path]] = None):
    """Initialize audit logger with plain text formatter"""
    audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    audit_logger.setLevel(logging.INFO)

    if audit_logger.handlers:
        return audit_logger

    log_dir = Path(log_dir) if log_dir else DATA_DIR / "logs"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except (PermissionError, OSError) as e:
        # In development, use a null handler if we can't create the directory
        logging.getLogger("bgpsec_filter.webui").warning(
            f"Cannot create log directory {log_dir}: {e}"
        )
        audit_logger.addHandler(logging.NullHandler())
        return audit_logger

    handler = TimedRotatingFileHandler(
        log_dir / "audit.log", when="midnight", interval=1, backupCount=90
    )
    handler.setFormatter(AuditFormatter())
    audit_logger.addHandler(handler)
    return audit_logger


def audit_log(action: str, user: str = None, **kwargs):
    """Log an audit event"""
    logging.getLogger(AUDIT_LOGGER_NAME).info(action, extra={'user': user, **kwargs})

"""
Logging infrastructure for TalentHub.

Uses Loguru for console and rotating file logging, plus a dedicated
audit sink for consent and pipeline decisions. Audit entries are
written with ``audit_log`` and never carry candidate contact data.
"""

import sys
from typing import Any

from loguru import logger

from talenthub.utils.config import LoggingSettings, get_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
AUDIT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {extra[audit_type]} | {message}"

REDACTED = "***REDACTED***"

# Key fragments whose values never reach a log line
_SENSITIVE_KEYS = (
    "password", "secret", "token", "api_key", "credential",
    "email", "phone", "full_name", "contact",
)


def _is_audit(record: dict) -> bool:
    return "audit_type" in record["extra"]


def _add_file_sinks(log_settings: LoggingSettings, diagnose: bool) -> None:
    log_settings.file_path.parent.mkdir(parents=True, exist_ok=True)
    log_settings.audit_file_path.parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_settings.file_path,
        format=log_settings.format,
        level=log_settings.level,
        rotation=log_settings.rotation,
        retention=log_settings.retention,
        compression="zip",
        backtrace=True,
        diagnose=diagnose,
        enqueue=True,
    )
    logger.add(
        log_settings.audit_file_path,
        format=AUDIT_FORMAT,
        level="INFO",
        filter=_is_audit,
        rotation="1 week",
        retention=log_settings.audit_retention,
        compression="zip",
        enqueue=True,
    )


def setup_logging() -> None:
    """
    Configure application-wide logging.

    Replaces Loguru's default handler with a console sink and, unless
    disabled, a rotating application log and a separate audit log.
    """
    settings = get_settings()
    log_settings = settings.logging

    # Tracebacks with variable values only on a developer's machine
    diagnose = settings.debug and settings.environment == "development"

    logger.remove()
    logger.configure(extra={"name": "talenthub"})

    if log_settings.console_output:
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=log_settings.level,
            colorize=True,
            backtrace=True,
            diagnose=diagnose,
        )

    if log_settings.file_output:
        _add_file_sinks(log_settings, diagnose)

    logger.debug(
        f"Logging ready (level={log_settings.level}, files={log_settings.file_output})"
    )


def get_logger(name: str) -> Any:
    """
    Get a logger bound to a module or class name.

    Args:
        name: The name for the logger (typically __name__)
    """
    return logger.bind(name=name)


def _sanitize_for_logging(data: Any) -> Any:
    """Redact credentials and candidate contact fields, recursively."""
    if isinstance(data, dict):
        return {
            k: REDACTED
            if any(s in str(k).lower() for s in _SENSITIVE_KEYS)
            else _sanitize_for_logging(v)
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [_sanitize_for_logging(item) for item in data]
    return data


def audit_log(
    action: str,
    details: dict[str, Any],
    audit_type: str = "DECISION",
) -> None:
    """
    Write an audit entry.

    Args:
        action: What happened (e.g., "identity_revealed", "stage_changed")
        details: IDs and outcome of the action
        audit_type: CONSENT for disclosure events, DECISION for pipeline moves
    """
    logger.bind(name="audit", audit_type=audit_type).info(
        f"{action} | {_sanitize_for_logging(details)}"
    )


class LoggerMixin:
    """
    Mixin class to add logging capability to any class.

    Usage:
        class MyService(LoggerMixin):
            def run(self):
                self.logger.info("Doing something...")
    """

    @property
    def logger(self) -> Any:
        """Get a logger instance for this class."""
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger


# Configure on import; an unwritable log directory falls back to console only
try:
    setup_logging()
except OSError as e:
    logger.warning(f"File logging disabled: {e}")

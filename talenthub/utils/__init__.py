"""
Utility modules for TalentHub.

This package contains shared utilities used across the application:
- config: Configuration management
- logger: Logging infrastructure
- constants: Enums, stage orders and threshold tables
- clock: UTC time helpers
"""

from talenthub.utils.config import (
    AppSettings,
    get_settings,
    reload_settings,
    settings,
    ROOT_DIR,
)
from talenthub.utils.constants import (
    APP_NAME,
    APP_DISPLAY_NAME,
    VERSION,
    ActionType,
    NegotiationStatus,
    SubmissionStage,
    UrgencyTier,
)
from talenthub.utils.clock import to_naive_utc, utcnow
from talenthub.utils.logger import (
    setup_logging,
    get_logger,
    audit_log,
    LoggerMixin,
)

__all__ = [
    # Config
    "AppSettings",
    "get_settings",
    "reload_settings",
    "settings",
    "ROOT_DIR",
    # Constants
    "APP_NAME",
    "APP_DISPLAY_NAME",
    "VERSION",
    "ActionType",
    "NegotiationStatus",
    "SubmissionStage",
    "UrgencyTier",
    # Clock
    "to_naive_utc",
    "utcnow",
    # Logger
    "setup_logging",
    "get_logger",
    "audit_log",
    "LoggerMixin",
]

"""
Pydantic data models and schemas for TalentHub.

This module provides all data models used throughout the application,
including database documents, embedded models, and computed views.
"""

# Base models
from .base import Actor, BaseDocument, EmbeddedModel, PyObjectId, TimestampMixin

# Submission models
from .submission import (
    CandidateContact,
    CandidateProfile,
    ClientFeedback,
    RejectionInfo,
    Submission,
    SubmissionCreate,
)

# Negotiation models
from .negotiation import InterviewNegotiation

# Notification models
from .notification import NotificationEvent

# Computed views
from .views import (
    ActionItem,
    ActionQueue,
    AnonymizedIdentity,
    HealthReport,
    QueueStats,
)

__all__ = [
    # Base
    "Actor",
    "BaseDocument",
    "EmbeddedModel",
    "PyObjectId",
    "TimestampMixin",
    # Submission
    "CandidateContact",
    "CandidateProfile",
    "ClientFeedback",
    "RejectionInfo",
    "Submission",
    "SubmissionCreate",
    # Negotiation
    "InterviewNegotiation",
    # Notification
    "NotificationEvent",
    # Views
    "ActionItem",
    "ActionQueue",
    "AnonymizedIdentity",
    "HealthReport",
    "QueueStats",
]

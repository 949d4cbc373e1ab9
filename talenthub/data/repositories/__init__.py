"""
Database repositories for TalentHub data access.

This module provides repository classes for all database collections,
implementing the repository pattern for clean data access.
"""

# Base repository
from .base import BaseRepository

# Entity repositories
from .submission_repository import SubmissionRepository, get_submission_repository
from .negotiation_repository import NegotiationRepository, get_negotiation_repository
from .notification_repository import NotificationRepository, get_notification_repository
from .candidate_repository import CandidateDirectory, get_candidate_directory

__all__ = [
    # Base
    "BaseRepository",
    # Submission
    "SubmissionRepository",
    "get_submission_repository",
    # Negotiation
    "NegotiationRepository",
    "get_negotiation_repository",
    # Notification
    "NotificationRepository",
    "get_notification_repository",
    # Candidate
    "CandidateDirectory",
    "get_candidate_directory",
]

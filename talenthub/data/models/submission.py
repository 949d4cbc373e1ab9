"""
Submission data models for TalentHub.

A submission is one candidate proposed by a recruiter against one
job opening. Candidate contact data only lands on the submission
once the candidate has opted in to an interview.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from talenthub.utils.clock import utcnow
from talenthub.utils.constants import (
    FeedbackRating,
    RejectionCategory,
    SubmissionStage,
    SubmissionStatus,
)

from .base import Actor, BaseDocument, EmbeddedModel, PyObjectId


class CandidateContact(EmbeddedModel):
    """Identifying contact details of a candidate."""

    full_name: str
    email: str
    phone: Optional[str] = None


class CandidateProfile(EmbeddedModel):
    """Non-identifying facts the recruiter shares before disclosure."""

    skills: list[str] = Field(default_factory=list)
    experience_years: Optional[float] = None
    expected_salary: Optional[int] = None
    city: Optional[str] = None
    availability: Optional[str] = None


class RejectionInfo(EmbeddedModel):
    """Why and by whom a submission was rejected."""

    category: RejectionCategory
    reason: Optional[str] = None
    rejected_by: Optional[Actor] = None
    rejected_at: datetime = Field(default_factory=utcnow)


class ClientFeedback(EmbeddedModel):
    """Feedback left by the client on a submitted candidate."""

    rating: FeedbackRating
    note: Optional[str] = None
    given_by: Optional[Actor] = None
    given_at: datetime = Field(default_factory=utcnow)


class Submission(BaseDocument):
    """
    Main submission document.

    ``stage`` is written only by the submission pipeline and
    ``identity_revealed`` only by the identity veil.
    """

    # References
    job_id: PyObjectId
    candidate_id: PyObjectId
    recruiter_id: str
    client_id: str
    job_title: Optional[str] = None

    # Pipeline position
    stage: SubmissionStage = SubmissionStage.SUBMITTED
    status: SubmissionStatus = SubmissionStatus.ACTIVE
    stage_entered_at: datetime = Field(default_factory=utcnow)

    # Opaque score from the matching subsystem
    match_score: Optional[float] = Field(None, ge=0, le=100)

    profile: CandidateProfile = Field(default_factory=CandidateProfile)

    # Disclosure
    identity_revealed: bool = False
    revealed_at: Optional[datetime] = None
    revealed_contact: Optional[CandidateContact] = None

    # Decisions
    rejection: Optional[RejectionInfo] = None
    withdrawal_reason: Optional[str] = None
    feedback: list[ClientFeedback] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        """Check if the submission reached an absorbing stage."""
        return SubmissionStage(self.stage).is_terminal

    @property
    def awaiting_decision(self) -> bool:
        """Check if the client still has to review this submission."""
        return (
            self.stage == SubmissionStage.SUBMITTED
            and self.status == SubmissionStatus.ACTIVE
        )

    class Settings:
        """MongoDB collection settings."""

        name = "submissions"
        indexes = [
            [("client_id", 1), ("stage", 1)],
            "job_id",
            "candidate_id",
            "recruiter_id",
            "created_at",
        ]


class SubmissionCreate(BaseModel):
    """Schema for a recruiter submitting a candidate."""

    job_id: str
    candidate_id: str
    recruiter_id: str
    client_id: str
    job_title: Optional[str] = None
    match_score: Optional[float] = Field(None, ge=0, le=100)
    profile: Optional[CandidateProfile] = None

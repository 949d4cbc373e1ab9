"""
Interview negotiation data models for TalentHub.

One negotiation covers a single proposed-to-booked interview cycle
for one submission. Contact data never lives here; it is copied onto
the submission by the identity veil after opt-in.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from talenthub.utils.clock import utcnow
from talenthub.utils.constants import (
    CancellationReason,
    NegotiationStatus,
    NoShowParty,
)

from .base import Actor, BaseDocument, PyObjectId


class InterviewNegotiation(BaseDocument):
    """Main negotiation document."""

    # References
    submission_id: PyObjectId
    client_id: str
    recruiter_id: str
    candidate_id: PyObjectId
    job_title: Optional[str] = None

    # State
    status: NegotiationStatus = NegotiationStatus.PENDING_OPT_IN
    active: bool = True  # Backs the one-active-per-submission unique index
    status_changed_at: datetime = Field(default_factory=utcnow)
    revision: int = 1  # Bumped whenever the client re-proposes slots

    # Client side
    proposed_slots: list[datetime] = Field(default_factory=list)
    client_message: Optional[str] = None
    created_by: Optional[Actor] = None

    # Candidate side
    candidate_consent: bool = False
    selected_slot: Optional[datetime] = None
    decline_reason: Optional[str] = None

    # Outcome
    cancellation_reason: Optional[CancellationReason] = None
    cancellation_note: Optional[str] = None
    no_show_party: Optional[NoShowParty] = None
    completed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_consent_invariant(self) -> "InterviewNegotiation":
        """A selected slot only exists alongside candidate consent."""
        if self.selected_slot is not None and not self.candidate_consent:
            raise ValueError("selected_slot requires candidate_consent")
        if self.status == NegotiationStatus.SCHEDULED and self.selected_slot is None:
            raise ValueError("scheduled negotiation requires a selected slot")
        return self

    @property
    def is_active(self) -> bool:
        """Check if the negotiation is in a non-terminal state."""
        return NegotiationStatus(self.status).is_active

    @property
    def is_terminal(self) -> bool:
        return NegotiationStatus(self.status).is_terminal

    def slot_has_passed(self, now: datetime) -> bool:
        """Check if the booked interview time lies in the past."""
        return self.selected_slot is not None and self.selected_slot <= now

    class Settings:
        """MongoDB collection settings."""

        name = "interview_negotiations"
        indexes = [
            # At most one active negotiation per submission across all workers
            (
                "submission_id",
                {
                    "unique": True,
                    "partialFilterExpression": {"active": True},
                    "name": "uniq_active_negotiation_per_submission",
                },
            ),
            [("client_id", 1), ("status", 1)],
            "created_at",
        ]

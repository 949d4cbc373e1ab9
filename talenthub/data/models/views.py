"""
Computed view models for TalentHub.

These are projections over stored submissions and negotiations.
They are rebuilt on every read and never persisted.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from talenthub.utils.constants import ActionType, HealthLevel, UrgencyTier


class AnonymizedIdentity(BaseModel):
    """Client-facing stand-in for a candidate before disclosure."""

    label: str
    submission_id: str
    job_title: Optional[str] = None
    match_score: Optional[float] = None
    skills: list[str] = Field(default_factory=list)
    experience_range: str = "Not specified"
    salary_band: str = "Not disclosed"
    region: str = "DACH"
    availability: Optional[str] = None


class ActionItem(BaseModel):
    """One open decision, negotiation or offer in a client's queue."""

    item_id: str
    action_type: ActionType
    urgency: UrgencyTier
    waiting_hours: int
    created_at: datetime
    title: str
    submission_id: Optional[str] = None
    negotiation_id: Optional[str] = None
    candidate_label: Optional[str] = None
    job_title: Optional[str] = None


class QueueStats(BaseModel):
    """Activity signals feeding the health score."""

    new_candidates_recent: int = 0
    pending_interviews: int = 0
    placements: int = 0
    active_jobs: int = 0


class HealthReport(BaseModel):
    """Composite health of a client's action queue."""

    score: int = Field(ge=0, le=100)
    level: HealthLevel
    critical_count: int = 0
    warning_count: int = 0


class ActionQueue(BaseModel):
    """Ranked action queue with per-type counts."""

    client_id: str
    generated_at: datetime
    items: list[ActionItem] = Field(default_factory=list)

    @property
    def pending_decisions(self) -> int:
        return sum(1 for i in self.items if i.action_type == ActionType.DECISION)

    @property
    def pending_interviews(self) -> int:
        return sum(1 for i in self.items if i.action_type == ActionType.INTERVIEW)

    @property
    def pending_offers(self) -> int:
        return sum(1 for i in self.items if i.action_type == ActionType.OFFER)

    @property
    def critical_count(self) -> int:
        return sum(1 for i in self.items if i.urgency == UrgencyTier.CRITICAL)

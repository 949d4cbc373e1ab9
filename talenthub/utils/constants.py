"""
Application-wide constants for TalentHub.

Stage orders, negotiation state sets, urgency thresholds and
health score weights live here so call sites stay table-driven.
"""

from enum import Enum
from typing import Final


# =============================================================================
# Application Constants
# =============================================================================

APP_NAME: Final[str] = "TalentHub"
APP_DISPLAY_NAME: Final[str] = "TalentHub Interview Negotiation Core"
VERSION: Final[str] = "0.1.0"


# =============================================================================
# Enums
# =============================================================================


class SubmissionStage(str, Enum):
    """Coarse hiring-pipeline position of a submission."""

    SUBMITTED = "submitted"
    INTERVIEW_1 = "interview_1"
    INTERVIEW_2 = "interview_2"
    OFFER = "offer"
    HIRED = "hired"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STAGES

    def next(self) -> "SubmissionStage":
        """Next stage in the linear order."""
        if self not in STAGE_ORDER or self == STAGE_ORDER[-1]:
            raise ValueError(f"No stage follows {self.value}")
        return STAGE_ORDER[STAGE_ORDER.index(self) + 1]


class SubmissionStatus(str, Enum):
    """Broad lifecycle flag of a submission, independent of stage."""

    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"


class NegotiationStatus(str, Enum):
    """State of a single interview negotiation."""

    PENDING_OPT_IN = "pending_opt_in"
    PENDING_SLOT_SELECTION = "pending_slot_selection"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    RESCHEDULING_NEEDED = "rescheduling_needed"

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_NEGOTIATION_STATES

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_NEGOTIATION_STATES


class NoShowParty(str, Enum):
    """Who caused a missed interview."""

    CANDIDATE = "candidate"
    CLIENT = "client"
    TECHNICAL = "technical"


class CancellationReason(str, Enum):
    """Why an interview negotiation was cancelled."""

    CANDIDATE_CANCELLED = "candidate_cancelled"
    COMPANY_CANCELLED = "company_cancelled"
    SCHEDULING_CONFLICT = "scheduling_conflict"
    POSITION_FILLED = "position_filled"
    CANDIDATE_DECLINED = "candidate_declined"
    OTHER = "other"


class RejectionCategory(str, Enum):
    """Structured reason for rejecting a submission."""

    SKILLS_MISMATCH = "skills_mismatch"
    EXPERIENCE_MISMATCH = "experience_mismatch"
    SALARY_EXPECTATIONS = "salary_expectations"
    CULTURE_FIT = "culture_fit"
    POSITION_FILLED = "position_filled"
    OTHER = "other"


class FeedbackRating(str, Enum):
    """Client feedback rating on a submitted candidate."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class ActorRole(str, Enum):
    """Role of the authenticated caller."""

    CLIENT = "client"
    RECRUITER = "recruiter"
    ADMIN = "admin"
    CANDIDATE = "candidate"
    SYSTEM = "system"


class RecipientRole(str, Enum):
    """Party receiving a notification."""

    CLIENT = "client"
    RECRUITER = "recruiter"
    CANDIDATE = "candidate"


class NotificationType(str, Enum):
    """Template keys for notification transport."""

    INTERVIEW_REQUESTED = "interview_requested"
    OPT_IN_CONFIRMED = "opt_in_confirmed"
    INTERVIEW_CONFIRMED = "interview_confirmed"
    INTERVIEW_DECLINED = "interview_declined"
    INTERVIEW_CANCELLED = "interview_cancelled"
    INTERVIEW_NO_SHOW = "interview_no_show"
    RESCHEDULING_NEEDED = "rescheduling_needed"
    NEW_SLOTS_PROPOSED = "new_slots_proposed"
    INTERVIEW_COMPLETED = "interview_completed"
    CANDIDATE_MOVED = "candidate_moved"
    CANDIDATE_REJECTED = "candidate_rejected"


class DeliveryState(str, Enum):
    """Delivery state of a notification event."""

    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


class ActionType(str, Enum):
    """Kind of open item in a client's action queue."""

    DECISION = "decision"
    INTERVIEW = "interview"
    OFFER = "offer"


class UrgencyTier(str, Enum):
    """Time-decayed urgency of an open item."""

    CRITICAL = "critical"
    WARNING = "warning"
    NORMAL = "normal"

    @property
    def rank(self) -> int:
        """Sort rank, lowest first."""
        return URGENCY_ORDER[self]


class HealthLevel(str, Enum):
    """Categorical level of a client's queue health."""

    EXCELLENT = "excellent"
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"

    @classmethod
    def from_score(cls, score: int) -> "HealthLevel":
        """Convert a numeric health score to a level."""
        if score >= HEALTH_LEVEL_THRESHOLDS["excellent"]:
            return cls.EXCELLENT
        elif score >= HEALTH_LEVEL_THRESHOLDS["good"]:
            return cls.GOOD
        elif score >= HEALTH_LEVEL_THRESHOLDS["warning"]:
            return cls.WARNING
        return cls.CRITICAL


# =============================================================================
# Pipeline Constants
# =============================================================================

STAGE_ORDER: Final[tuple[SubmissionStage, ...]] = (
    SubmissionStage.SUBMITTED,
    SubmissionStage.INTERVIEW_1,
    SubmissionStage.INTERVIEW_2,
    SubmissionStage.OFFER,
    SubmissionStage.HIRED,
)

TERMINAL_STAGES: Final[frozenset[SubmissionStage]] = frozenset(
    {SubmissionStage.HIRED, SubmissionStage.REJECTED, SubmissionStage.WITHDRAWN}
)

ACTIVE_NEGOTIATION_STATES: Final[frozenset[NegotiationStatus]] = frozenset(
    {
        NegotiationStatus.PENDING_OPT_IN,
        NegotiationStatus.PENDING_SLOT_SELECTION,
        NegotiationStatus.SCHEDULED,
        NegotiationStatus.RESCHEDULING_NEEDED,
    }
)

TERMINAL_NEGOTIATION_STATES: Final[frozenset[NegotiationStatus]] = frozenset(
    {
        NegotiationStatus.COMPLETED,
        NegotiationStatus.CANCELLED,
        NegotiationStatus.NO_SHOW,
    }
)

# Negotiations that wait on the candidate or client to pick a time
AWAITING_SCHEDULING_STATES: Final[frozenset[NegotiationStatus]] = frozenset(
    {
        NegotiationStatus.PENDING_OPT_IN,
        NegotiationStatus.PENDING_SLOT_SELECTION,
        NegotiationStatus.RESCHEDULING_NEEDED,
    }
)


# =============================================================================
# Urgency Constants
# =============================================================================

# (warning_hours, critical_hours) per action type
URGENCY_THRESHOLDS: Final[dict[ActionType, tuple[int, int]]] = {
    ActionType.DECISION: (24, 48),
    ActionType.INTERVIEW: (48, 72),
    ActionType.OFFER: (72, 96),
}

# Variant for dashboards that weight interviews higher
INTERVIEW_PRIORITY_THRESHOLDS: Final[dict[ActionType, tuple[int, int]]] = {
    **URGENCY_THRESHOLDS,
    ActionType.INTERVIEW: (24, 72),
}

URGENCY_ORDER: Final[dict[UrgencyTier, int]] = {
    UrgencyTier.CRITICAL: 0,
    UrgencyTier.WARNING: 1,
    UrgencyTier.NORMAL: 2,
}


# =============================================================================
# Health Score Constants
# =============================================================================

HEALTH_SCORE_WEIGHTS: Final[dict[str, int]] = {
    "base": 100,
    "critical_penalty": 15,
    "warning_penalty": 5,
    "new_candidates_bonus": 10,
    "pending_interviews_bonus": 5,
    "placements_bonus": 10,
    "no_active_jobs_penalty": 20,
}

# More than this many new candidates in the recent window earns the bonus
NEW_CANDIDATES_BONUS_THRESHOLD: Final[int] = 5

HEALTH_LEVEL_THRESHOLDS: Final[dict[str, int]] = {
    "excellent": 85,
    "good": 65,
    "warning": 40,
}


# =============================================================================
# Anonymization Constants
# =============================================================================

# Upper bounds (inclusive) in years, checked in order
EXPERIENCE_BANDS: Final[tuple[tuple[float, str], ...]] = (
    (2, "0-2 years"),
    (5, "3-5 years"),
    (10, "6-10 years"),
    (15, "10-15 years"),
)

SALARY_BAND_WIDTH: Final[int] = 10000

REGION_KEYWORDS: Final[dict[str, tuple[str, ...]]] = {
    "Southern Germany": ("munich", "münchen", "augsburg", "nuremberg", "nürnberg", "stuttgart", "freiburg", "karlsruhe"),
    "Northern Germany": ("berlin", "hamburg", "bremen", "hanover", "hannover", "kiel", "rostock"),
    "Western Germany": ("cologne", "köln", "düsseldorf", "dortmund", "essen", "frankfurt", "bonn", "mainz"),
    "Eastern Germany": ("dresden", "leipzig", "chemnitz", "erfurt", "magdeburg", "potsdam"),
    "Austria": ("vienna", "wien", "graz", "linz", "salzburg", "innsbruck", "austria"),
    "Switzerland": ("zurich", "zürich", "basel", "bern", "geneva", "lausanne", "switzerland"),
    "UK": ("london", "manchester", "uk", "england"),
}

DEFAULT_REGION: Final[str] = "DACH"

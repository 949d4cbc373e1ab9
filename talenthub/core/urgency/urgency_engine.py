"""
Urgency engine for client action queues.

Classifies open items by how long they have been waiting, orders the
queue and scores its overall health. Pure and deterministic: every
function takes ``now`` explicitly and reads nothing from storage.
"""

from datetime import datetime
from typing import Iterable, Optional

from talenthub.data.models.views import ActionItem, HealthReport, QueueStats
from talenthub.utils.clock import to_naive_utc
from talenthub.utils.constants import (
    HEALTH_SCORE_WEIGHTS,
    INTERVIEW_PRIORITY_THRESHOLDS,
    NEW_CANDIDATES_BONUS_THRESHOLD,
    URGENCY_THRESHOLDS,
    ActionType,
    HealthLevel,
    UrgencyTier,
)

SECONDS_PER_HOUR = 3600


def waiting_hours(created_at: datetime, now: datetime) -> int:
    """Whole hours elapsed since ``created_at``, never negative."""
    elapsed = (to_naive_utc(now) - to_naive_utc(created_at)).total_seconds()
    return max(0, int(elapsed // SECONDS_PER_HOUR))


class UrgencyEngine:
    """
    Table-driven urgency classification and queue scoring.

    Usage:
        engine = UrgencyEngine()
        tier = engine.classify(ActionType.INTERVIEW, created_at, now)
        ranked = engine.rank(items)
        report = engine.health(ranked, stats)
    """

    def __init__(
        self,
        thresholds: Optional[dict[ActionType, tuple[int, int]]] = None,
        interview_priority: bool = False,
    ):
        """
        Initialize the urgency engine.

        Args:
            thresholds: Custom (warning_hours, critical_hours) per action type
            interview_priority: Use the earlier interview warning threshold
        """
        if thresholds is not None:
            self.thresholds = thresholds
        elif interview_priority:
            self.thresholds = INTERVIEW_PRIORITY_THRESHOLDS
        else:
            self.thresholds = URGENCY_THRESHOLDS

    def classify_hours(self, action_type: ActionType, hours: int) -> UrgencyTier:
        """Map waiting hours to a tier for the given action type."""
        warning, critical = self.thresholds[ActionType(action_type)]
        if hours >= critical:
            return UrgencyTier.CRITICAL
        if hours >= warning:
            return UrgencyTier.WARNING
        return UrgencyTier.NORMAL

    def classify(
        self, action_type: ActionType, created_at: datetime, now: datetime
    ) -> UrgencyTier:
        """Tier of an item created at ``created_at``, as seen at ``now``."""
        return self.classify_hours(action_type, waiting_hours(created_at, now))

    def build_item(
        self,
        item_id: str,
        action_type: ActionType,
        created_at: datetime,
        now: datetime,
        title: str,
        **fields,
    ) -> ActionItem:
        """Create a classified action item."""
        hours = waiting_hours(created_at, now)
        return ActionItem(
            item_id=item_id,
            action_type=action_type,
            urgency=self.classify_hours(action_type, hours),
            waiting_hours=hours,
            created_at=created_at,
            title=title,
            **fields,
        )

    @staticmethod
    def rank(items: Iterable[ActionItem]) -> list[ActionItem]:
        """Order by tier (critical first), then longest waiting first."""
        return sorted(items, key=lambda i: (UrgencyTier(i.urgency).rank, -i.waiting_hours))

    @staticmethod
    def health(items: Iterable[ActionItem], stats: QueueStats) -> HealthReport:
        """
        Score the health of a client's queue.

        Starts at 100, loses points per critical and warning item, gains
        points for recent activity and is clamped to [0, 100].
        """
        items = list(items)
        critical = sum(1 for i in items if i.urgency == UrgencyTier.CRITICAL)
        warning = sum(1 for i in items if i.urgency == UrgencyTier.WARNING)

        w = HEALTH_SCORE_WEIGHTS
        score = w["base"]
        score -= critical * w["critical_penalty"]
        score -= warning * w["warning_penalty"]

        if stats.new_candidates_recent > NEW_CANDIDATES_BONUS_THRESHOLD:
            score += w["new_candidates_bonus"]
        if stats.pending_interviews > 0:
            score += w["pending_interviews_bonus"]
        if stats.placements > 0:
            score += w["placements_bonus"]
        if stats.active_jobs == 0:
            score -= w["no_active_jobs_penalty"]

        score = max(0, min(100, score))
        return HealthReport(
            score=score,
            level=HealthLevel.from_score(score),
            critical_count=critical,
            warning_count=warning,
        )

"""
Client action queue.

Collects a client's open decisions, interviews waiting to be scheduled
and pending offers from storage, classifies them with the urgency
engine and scores the queue's health.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable, Optional

from talenthub.core.identity.identity_veil import IdentityVeil, get_identity_veil
from talenthub.data.models import (
    ActionItem,
    ActionQueue,
    HealthReport,
    InterviewNegotiation,
    QueueStats,
    Submission,
)
from talenthub.data.repositories import (
    NegotiationRepository,
    SubmissionRepository,
    get_negotiation_repository,
    get_submission_repository,
)
from talenthub.utils.clock import utcnow
from talenthub.utils.config import UrgencySettings, get_settings
from talenthub.utils.constants import (
    ACTIVE_NEGOTIATION_STATES,
    AWAITING_SCHEDULING_STATES,
    ActionType,
    SubmissionStage,
)
from talenthub.utils.logger import get_logger

from .urgency_engine import UrgencyEngine

logger = get_logger(__name__)


class ActionQueueService:
    """Builds ranked action queues and health reports per client."""

    def __init__(
        self,
        submissions: Optional[SubmissionRepository] = None,
        negotiations: Optional[NegotiationRepository] = None,
        veil: Optional[IdentityVeil] = None,
        engine: Optional[UrgencyEngine] = None,
        settings: Optional[UrgencySettings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._settings = settings or get_settings().urgency
        self._submissions = submissions or get_submission_repository()
        self._negotiations = negotiations or get_negotiation_repository()
        self._veil = veil or get_identity_veil()
        self._engine = engine or UrgencyEngine(
            interview_priority=self._settings.interview_priority
        )
        self._clock = clock

    # -------------------------------------------------------------------------
    # Queue
    # -------------------------------------------------------------------------

    def build_queue(self, client_id: str, now: Optional[datetime] = None) -> ActionQueue:
        """Build the ranked action queue of a client."""
        now = now or self._clock()
        submissions = self._submissions.find_by_client(client_id, status=None)
        negotiations = self._negotiations.find_by_client(
            client_id, statuses=ACTIVE_NEGOTIATION_STATES
        )
        return self._assemble(client_id, submissions, negotiations, now)

    async def build_queue_async(
        self, client_id: str, now: Optional[datetime] = None
    ) -> ActionQueue:
        """Build the ranked action queue of a client with concurrent reads."""
        now = now or self._clock()
        submissions, negotiations = await asyncio.gather(
            self._submissions.find_by_client_async(client_id, status=None),
            self._negotiations.find_by_client_async(
                client_id, statuses=ACTIVE_NEGOTIATION_STATES
            ),
        )
        return self._assemble(client_id, submissions, negotiations, now)

    def _assemble(
        self,
        client_id: str,
        submissions: list[Submission],
        negotiations: list[InterviewNegotiation],
        now: datetime,
    ) -> ActionQueue:
        by_id = {str(s.id): s for s in submissions}
        # A submission with an interview in progress is no longer up for review
        negotiating = {str(n.submission_id) for n in negotiations}
        items: list[ActionItem] = []

        for submission in submissions:
            if submission.awaiting_decision and str(submission.id) not in negotiating:
                items.append(self._decision_item(submission, now))
            elif submission.stage == SubmissionStage.OFFER:
                items.append(self._offer_item(submission, now))

        for negotiation in negotiations:
            if negotiation.status not in AWAITING_SCHEDULING_STATES:
                continue
            items.append(
                self._interview_item(negotiation, by_id.get(str(negotiation.submission_id)), now)
            )

        queue = ActionQueue(
            client_id=client_id,
            generated_at=now,
            items=self._engine.rank(items),
        )
        logger.debug(
            f"Action queue for client {client_id}: {len(queue.items)} item(s), "
            f"{queue.critical_count} critical"
        )
        return queue

    def _decision_item(self, submission: Submission, now: datetime) -> ActionItem:
        label = self._veil.anonymize(submission).label
        return self._engine.build_item(
            item_id=f"decision-{submission.id}",
            action_type=ActionType.DECISION,
            created_at=submission.created_at,
            now=now,
            title=f"Review candidate {label}",
            submission_id=str(submission.id),
            candidate_label=label,
            job_title=submission.job_title,
        )

    def _offer_item(self, submission: Submission, now: datetime) -> ActionItem:
        label = self._veil.anonymize(submission).label
        return self._engine.build_item(
            item_id=f"offer-{submission.id}",
            action_type=ActionType.OFFER,
            created_at=submission.stage_entered_at,
            now=now,
            title=f"Send offer to {label}",
            submission_id=str(submission.id),
            candidate_label=label,
            job_title=submission.job_title,
        )

    def _interview_item(
        self,
        negotiation: InterviewNegotiation,
        submission: Optional[Submission],
        now: datetime,
    ) -> ActionItem:
        label = self._veil.anonymize(submission).label if submission else None
        return self._engine.build_item(
            item_id=f"interview-{negotiation.id}",
            action_type=ActionType.INTERVIEW,
            created_at=negotiation.status_changed_at,
            now=now,
            title=f"Schedule interview with {label or 'candidate'}",
            submission_id=str(negotiation.submission_id),
            negotiation_id=str(negotiation.id),
            candidate_label=label,
            job_title=negotiation.job_title,
        )

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    def collect_stats(
        self,
        client_id: str,
        active_jobs: int,
        queue: ActionQueue,
        now: datetime,
    ) -> QueueStats:
        """Gather the activity signals that feed the health score."""
        since = now - timedelta(days=self._settings.recent_window_days)
        return QueueStats(
            new_candidates_recent=self._submissions.count_created_since(client_id, since),
            pending_interviews=queue.pending_interviews,
            placements=self._submissions.count_at_stage(client_id, SubmissionStage.HIRED),
            active_jobs=active_jobs,
        )

    def health_report(
        self,
        client_id: str,
        active_jobs: int,
        now: Optional[datetime] = None,
        queue: Optional[ActionQueue] = None,
    ) -> HealthReport:
        """
        Score a client's queue health.

        Args:
            client_id: Client to score
            active_jobs: Number of open jobs, owned by the job subsystem
            now: Evaluation time
            queue: Previously built queue, rebuilt if omitted
        """
        now = now or self._clock()
        queue = queue or self.build_queue(client_id, now)
        stats = self.collect_stats(client_id, active_jobs, queue, now)
        return self._engine.health(queue.items, stats)


# Singleton instance
_action_queue_service: Optional[ActionQueueService] = None


def get_action_queue_service() -> ActionQueueService:
    """Get the action queue service singleton instance."""
    global _action_queue_service
    if _action_queue_service is None:
        _action_queue_service = ActionQueueService()
    return _action_queue_service

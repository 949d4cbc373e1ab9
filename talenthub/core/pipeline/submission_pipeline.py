"""
Submission pipeline.

Owns the ``stage`` field of a submission. Stages move along the linear
order submitted, interview_1, interview_2, offer, hired; rejected and
withdrawn are absorbing and reachable from any non-terminal stage.
Every move is a conditional update on the stage that was read, so the
downstream offer and placement hooks fire only for the request that
actually performed the move.
"""

from typing import Any, Optional

from talenthub.core.exceptions import InvalidTransition, NotFound
from talenthub.core.identity.identity_veil import anonymous_label
from talenthub.data.models import (
    Actor,
    ClientFeedback,
    RejectionInfo,
    Submission,
    SubmissionCreate,
)
from talenthub.data.repositories import SubmissionRepository, get_submission_repository
from talenthub.services.notification_fanout import (
    NotificationFanout,
    get_notification_fanout,
    transition_key,
)
from talenthub.services.pipeline_hooks import CollectionPipelineHooks, PipelineHooks
from talenthub.utils.clock import utcnow
from talenthub.utils.constants import (
    STAGE_ORDER,
    FeedbackRating,
    NotificationType,
    RecipientRole,
    RejectionCategory,
    SubmissionStage,
)
from talenthub.utils.logger import LoggerMixin, audit_log

# Stages an explicit override may not target; they have dedicated operations
_DEDICATED_TARGETS = frozenset({SubmissionStage.REJECTED, SubmissionStage.WITHDRAWN})


class SubmissionPipeline(LoggerMixin):
    """
    Moves submissions through the hiring stages.

    Usage:
        pipeline = SubmissionPipeline()
        submission = pipeline.submit(SubmissionCreate(...))
        submission = pipeline.advance(submission.id)
    """

    def __init__(
        self,
        submissions: Optional[SubmissionRepository] = None,
        hooks: Optional[PipelineHooks] = None,
        notifier: Optional[NotificationFanout] = None,
    ):
        self._submissions = submissions or get_submission_repository()
        self._hooks = hooks or CollectionPipelineHooks()
        self._notifier = notifier or get_notification_fanout()

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def submit(self, data: SubmissionCreate) -> Submission:
        """Record a recruiter's submission of a candidate to a job."""
        submission = self._submissions.create_from_schema(data)
        self.logger.info(
            f"Submission {submission.id} created for job {submission.job_id} "
            f"by recruiter {submission.recruiter_id}"
        )
        return submission

    # -------------------------------------------------------------------------
    # Stage Moves
    # -------------------------------------------------------------------------

    def advance(
        self,
        submission_id: Any,
        explicit_stage: Optional[SubmissionStage] = None,
        actor: Optional[Actor] = None,
    ) -> Submission:
        """
        Move a submission to the next stage, or to ``explicit_stage``.

        Args:
            submission_id: Submission to move
            explicit_stage: Override target chosen by an actor
            actor: Caller performing the move

        Returns:
            The updated submission

        Raises:
            NotFound: If the submission does not exist
            InvalidTransition: If the submission is terminal, the target is
                not reachable, or a concurrent request moved it first
        """
        submission = self._get(submission_id)
        current = SubmissionStage(submission.stage)

        if current.is_terminal:
            raise InvalidTransition("submission", current.value, "advance")

        if explicit_stage is None:
            try:
                target = current.next()
            except ValueError as e:
                raise InvalidTransition("submission", current.value, "advance", str(e)) from None
        else:
            target = SubmissionStage(explicit_stage)
            if target == current:
                return submission
            if target in _DEDICATED_TARGETS:
                raise InvalidTransition(
                    "submission",
                    current.value,
                    "advance",
                    f"use the dedicated operation to move to '{target.value}'",
                )
            if STAGE_ORDER.index(target) < STAGE_ORDER.index(current):
                raise InvalidTransition(
                    "submission",
                    current.value,
                    "advance",
                    f"stages only move forward, not back to '{target.value}'",
                )
            if STAGE_ORDER.index(target) > STAGE_ORDER.index(current) + 1:
                self.logger.warning(
                    f"Submission {submission.id} skips from {current.value} to {target.value}"
                )

        updated = self._submissions.move_stage(submission.id, current, target)
        if updated is None:
            latest = self._submissions.get_by_id(submission.id)
            raise InvalidTransition(
                "submission",
                latest.stage if latest else None,
                "advance",
                "stage changed concurrently",
            )

        self._run_hooks(updated, SubmissionStage(target))
        audit_log(
            "stage_changed",
            {
                "submission_id": str(updated.id),
                "from_stage": current.value,
                "to_stage": target.value,
                "actor": actor.actor_id if actor else "system",
            },
            audit_type="DECISION",
        )
        self._notify_recruiter(
            updated,
            NotificationType.CANDIDATE_MOVED,
            {"previous_stage": current.value, "new_stage": target.value},
        )
        return updated

    def advance_after_interview(self, submission_id: Any) -> Optional[Submission]:
        """
        Advance a submission after its interview completed.

        A submission that reached a terminal stage in the meantime is left
        alone, since the interview outcome no longer matters.
        """
        submission = self._get(submission_id)
        if submission.is_terminal:
            self.logger.warning(
                f"Interview completed for terminal submission {submission.id} "
                f"({submission.stage}); stage left unchanged"
            )
            return None
        return self.advance(submission.id)

    def reject(
        self,
        submission_id: Any,
        category: RejectionCategory,
        reason_text: Optional[str] = None,
        actor: Optional[Actor] = None,
    ) -> Submission:
        """
        Reject a submission. Rejecting an already rejected one is a no-op.

        Raises:
            NotFound: If the submission does not exist
            InvalidTransition: If the submission was hired or withdrawn
        """
        submission = self._get(submission_id)
        current = SubmissionStage(submission.stage)
        if current == SubmissionStage.REJECTED:
            return submission
        if current.is_terminal:
            raise InvalidTransition("submission", current.value, "reject")

        rejection = RejectionInfo(
            category=category,
            reason=reason_text,
            rejected_by=actor,
            rejected_at=utcnow(),
        )
        updated = self._submissions.move_stage(
            submission.id,
            current,
            SubmissionStage.REJECTED,
            {"rejection": rejection.model_dump()},
        )
        if updated is None:
            return self._resolve_race(submission.id, SubmissionStage.REJECTED, "reject")

        audit_log(
            "submission_rejected",
            {
                "submission_id": str(updated.id),
                "from_stage": current.value,
                "category": RejectionCategory(category).value,
                "actor": actor.actor_id if actor else "system",
            },
            audit_type="DECISION",
        )
        self._notify_recruiter(
            updated,
            NotificationType.CANDIDATE_REJECTED,
            {"category": RejectionCategory(category).value, "reason": reason_text},
        )
        return updated

    def withdraw(
        self,
        submission_id: Any,
        reason: Optional[str] = None,
        actor: Optional[Actor] = None,
    ) -> Submission:
        """Withdraw a submission. Withdrawing twice is a no-op."""
        submission = self._get(submission_id)
        current = SubmissionStage(submission.stage)
        if current == SubmissionStage.WITHDRAWN:
            return submission
        if current.is_terminal:
            raise InvalidTransition("submission", current.value, "withdraw")

        updated = self._submissions.move_stage(
            submission.id,
            current,
            SubmissionStage.WITHDRAWN,
            {"withdrawal_reason": reason},
        )
        if updated is None:
            return self._resolve_race(submission.id, SubmissionStage.WITHDRAWN, "withdraw")

        audit_log(
            "submission_withdrawn",
            {
                "submission_id": str(updated.id),
                "from_stage": current.value,
                "actor": actor.actor_id if actor else "system",
            },
            audit_type="DECISION",
        )
        return updated

    # -------------------------------------------------------------------------
    # Feedback
    # -------------------------------------------------------------------------

    def record_feedback(
        self,
        submission_id: Any,
        rating: FeedbackRating,
        note: Optional[str] = None,
        actor: Optional[Actor] = None,
    ) -> Submission:
        """Append client feedback without touching the stage."""
        feedback = ClientFeedback(rating=rating, note=note, given_by=actor, given_at=utcnow())
        updated = self._submissions.add_feedback(submission_id, feedback)
        if updated is None:
            raise NotFound("Submission", submission_id)
        self.logger.debug(f"Feedback '{feedback.rating}' recorded on submission {submission_id}")
        return updated

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get(self, submission_id: Any) -> Submission:
        submission = self._submissions.get_by_id(submission_id)
        if submission is None:
            raise NotFound("Submission", submission_id)
        return submission

    def _resolve_race(
        self, submission_id: Any, target: SubmissionStage, action: str
    ) -> Submission:
        """Settle a lost conditional update for an idempotent terminal move."""
        latest = self._get(submission_id)
        if latest.stage == target:
            return latest
        raise InvalidTransition("submission", latest.stage, action, "stage changed concurrently")

    def _run_hooks(self, submission: Submission, stage: SubmissionStage) -> None:
        if stage == SubmissionStage.OFFER:
            self._hooks.open_offer(submission)
        elif stage == SubmissionStage.HIRED:
            self._hooks.record_placement(submission)

    def _notify_recruiter(
        self,
        submission: Submission,
        notification_type: NotificationType,
        extra: dict[str, Any],
    ) -> None:
        payload = {
            "submission_id": str(submission.id),
            "candidate_label": anonymous_label(submission),
            "job_title": submission.job_title,
            **extra,
        }
        self._notifier.emit(
            submission.recruiter_id,
            RecipientRole.RECRUITER,
            notification_type,
            payload,
            transition_key(submission.id, submission.stage, recipient_role=RecipientRole.RECRUITER),
        )


# Singleton instance
_submission_pipeline: Optional[SubmissionPipeline] = None


def get_submission_pipeline() -> SubmissionPipeline:
    """Get the submission pipeline singleton instance."""
    global _submission_pipeline
    if _submission_pipeline is None:
        _submission_pipeline = SubmissionPipeline()
    return _submission_pipeline

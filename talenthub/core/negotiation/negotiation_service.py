"""
Interview negotiation state machine.

A client proposes interview slots for a submission, the candidate opts
in by picking one, and the interview is then completed, cancelled or
missed. Every transition is a conditional update on the state that was
read, and at most one negotiation per submission is active at a time.
Notifications go out only after the transition has been written.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Optional, TypeVar

from talenthub.core.exceptions import (
    InvalidTransition,
    NegotiationInProgress,
    NotFound,
    SlotInvalid,
)
from talenthub.core.identity.identity_veil import IdentityVeil, get_identity_veil
from talenthub.core.pipeline.submission_pipeline import (
    SubmissionPipeline,
    get_submission_pipeline,
)
from talenthub.data.models import Actor, CandidateContact, InterviewNegotiation
from talenthub.data.repositories import (
    NegotiationRepository,
    SubmissionRepository,
    get_negotiation_repository,
    get_submission_repository,
)
from talenthub.services.notification_fanout import (
    NotificationFanout,
    get_notification_fanout,
)
from talenthub.utils.clock import to_naive_utc, utcnow
from talenthub.utils.constants import (
    ACTIVE_NEGOTIATION_STATES,
    CancellationReason,
    NegotiationStatus,
    NoShowParty,
    NotificationType,
    RecipientRole,
)
from talenthub.utils.logger import LoggerMixin, audit_log

ENTITY = "interview_negotiation"

E = TypeVar("E", bound=Enum)


def normalize_slot(slot: datetime) -> datetime:
    """
    Normalize a slot to naive UTC at millisecond precision.

    MongoDB stores datetimes with millisecond precision, so slots are
    truncated up front to compare equal after a round trip.
    """
    slot = to_naive_utc(slot)
    return slot.replace(microsecond=(slot.microsecond // 1000) * 1000)


def validate_slots(slots: Iterable[datetime], now: datetime) -> list[datetime]:
    """
    Check a proposed slot set.

    Raises:
        SlotInvalid: If the set is empty, has duplicates or any slot is not in the future
    """
    normalized = [normalize_slot(s) for s in slots]
    if not normalized:
        raise SlotInvalid("At least one interview slot is required")
    if len(set(normalized)) != len(normalized):
        raise SlotInvalid("Interview slots must be unique")
    past = [s for s in normalized if s <= now]
    if past:
        raise SlotInvalid(f"Interview slots must lie in the future: {past[0].isoformat()}")
    return normalized


def _coerce(
    enum_cls: type[E], value: Any, negotiation: InterviewNegotiation, action: str
) -> E:
    """Parse a caller-supplied enum value, rejecting unknown ones as a bad transition."""
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidTransition(
            ENTITY, negotiation.status, action, f"unknown {enum_cls.__name__} '{value}'"
        ) from None


class InterviewNegotiationService(LoggerMixin):
    """
    Drives interview negotiations through their states.

    Usage:
        service = InterviewNegotiationService()
        negotiation = service.propose(submission_id, [slot_1, slot_2], "Hi!")
        negotiation = service.confirm_opt_in(negotiation.id, slot_1)
    """

    def __init__(
        self,
        negotiations: Optional[NegotiationRepository] = None,
        submissions: Optional[SubmissionRepository] = None,
        veil: Optional[IdentityVeil] = None,
        pipeline: Optional[SubmissionPipeline] = None,
        notifier: Optional[NotificationFanout] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._negotiations = negotiations or get_negotiation_repository()
        self._submissions = submissions or get_submission_repository()
        self._veil = veil or get_identity_veil()
        self._pipeline = pipeline or get_submission_pipeline()
        self._notifier = notifier or get_notification_fanout()
        self._clock = clock

    # -------------------------------------------------------------------------
    # Client Actions
    # -------------------------------------------------------------------------

    def propose(
        self,
        submission_id: Any,
        slots: Iterable[datetime],
        message: Optional[str] = None,
        actor: Optional[Actor] = None,
    ) -> InterviewNegotiation:
        """
        Open a negotiation by proposing interview slots.

        Args:
            submission_id: Submission the client wants to interview
            slots: Candidate interview times, all in the future
            message: Optional note to the candidate
            actor: Client performing the request

        Returns:
            The new negotiation in ``pending_opt_in``

        Raises:
            NotFound: If the submission does not exist
            InvalidTransition: If the submission is already terminal
            SlotInvalid: If the slot set is empty, duplicated or past
            NegotiationInProgress: If the submission already has an active negotiation
        """
        submission = self._submissions.get_by_id(submission_id)
        if submission is None:
            raise NotFound("Submission", submission_id)
        if submission.is_terminal:
            raise InvalidTransition("submission", submission.stage, "propose interview for")

        now = self._clock()
        proposed = validate_slots(slots, now)

        existing = self._negotiations.get_active_for_submission(submission.id)
        if existing is not None:
            raise NegotiationInProgress(submission.id, existing.id)

        negotiation = self._negotiations.create_active(
            InterviewNegotiation(
                submission_id=submission.id,
                client_id=submission.client_id,
                recruiter_id=submission.recruiter_id,
                candidate_id=submission.candidate_id,
                job_title=submission.job_title,
                status=NegotiationStatus.PENDING_OPT_IN,
                status_changed_at=now,
                proposed_slots=proposed,
                client_message=message,
                created_by=actor,
            )
        )
        self.logger.info(
            f"Interview negotiation {negotiation.id} opened for submission {submission.id} "
            f"with {len(proposed)} slot(s)"
        )

        anonymized = self._veil.anonymize(submission)
        self._notify(
            negotiation,
            NotificationType.INTERVIEW_REQUESTED,
            {RecipientRole.RECRUITER: negotiation.recruiter_id},
            candidate_label=anonymized.label,
            proposed_slots=[s.isoformat() for s in proposed],
            message=message,
        )
        return negotiation

    def cancel(
        self,
        negotiation_id: Any,
        reason: CancellationReason,
        notify: bool = True,
        note: Optional[str] = None,
        actor: Optional[Actor] = None,
    ) -> InterviewNegotiation:
        """
        Cancel a negotiation from any non-terminal state.

        A negotiation that is already terminal is returned unchanged and
        nobody is notified again.
        """
        negotiation = self._get(negotiation_id)
        reason = _coerce(CancellationReason, reason, negotiation, "cancel")
        if negotiation.is_terminal:
            return negotiation

        now = self._clock()
        updated = self._negotiations.update_if(
            negotiation.id,
            ACTIVE_NEGOTIATION_STATES,
            {
                "status": NegotiationStatus.CANCELLED.value,
                "active": False,
                "cancellation_reason": reason.value,
                "cancellation_note": note,
                "status_changed_at": now,
                "completed_at": now,
            },
        )
        if updated is None:
            latest = self._get(negotiation.id)
            if latest.is_terminal:
                return latest
            raise InvalidTransition(ENTITY, latest.status, "cancel", "state changed concurrently")

        self.logger.info(
            f"Interview negotiation {updated.id} cancelled "
            f"({reason.value}) by {actor.actor_id if actor else 'system'}"
        )
        if notify:
            recipients = {
                RecipientRole.RECRUITER: updated.recruiter_id,
                RecipientRole.CLIENT: updated.client_id,
            }
            if updated.candidate_consent:
                recipients[RecipientRole.CANDIDATE] = str(updated.candidate_id)
            self._notify(
                updated,
                NotificationType.INTERVIEW_CANCELLED,
                recipients,
                reason=reason.value,
                note=note,
            )
        return updated

    def propose_new_slots(
        self,
        negotiation_id: Any,
        slots: Iterable[datetime],
        message: Optional[str] = None,
    ) -> InterviewNegotiation:
        """
        Replace the slot set after a technical no-show or a rejected proposal.

        Moves the negotiation to ``pending_slot_selection``; consent stays
        granted and the booked slot is cleared.
        """
        negotiation = self._get(negotiation_id)
        allowed = (
            NegotiationStatus.RESCHEDULING_NEEDED,
            NegotiationStatus.PENDING_SLOT_SELECTION,
        )
        if negotiation.status not in allowed:
            raise InvalidTransition(ENTITY, negotiation.status, "propose new slots for")

        now = self._clock()
        proposed = validate_slots(slots, now)
        updated = self._negotiations.update_if(
            negotiation.id,
            allowed,
            {
                "status": NegotiationStatus.PENDING_SLOT_SELECTION.value,
                "proposed_slots": proposed,
                "selected_slot": None,
                "client_message": message,
                "revision": negotiation.revision + 1,
                "status_changed_at": now,
            },
            extra_filter={"revision": negotiation.revision},
        )
        if updated is None:
            latest = self._get(negotiation.id)
            raise InvalidTransition(
                ENTITY, latest.status, "propose new slots for", "state changed concurrently"
            )

        self._notify(
            updated,
            NotificationType.NEW_SLOTS_PROPOSED,
            {
                RecipientRole.RECRUITER: updated.recruiter_id,
                RecipientRole.CANDIDATE: str(updated.candidate_id),
            },
            proposed_slots=[s.isoformat() for s in proposed],
            message=message,
        )
        return updated

    def report_no_show(
        self,
        negotiation_id: Any,
        party: NoShowParty,
        actor: Optional[Actor] = None,
    ) -> InterviewNegotiation:
        """
        Report a missed interview.

        A technical failure sends the negotiation to ``rescheduling_needed``
        and keeps it active; a candidate or client no-show is terminal.
        """
        negotiation = self._get(negotiation_id)
        party = _coerce(NoShowParty, party, negotiation, "report no-show for")
        now = self._clock()
        self._require_finished_interview(negotiation, now, "report no-show for")

        if party == NoShowParty.TECHNICAL:
            target = NegotiationStatus.RESCHEDULING_NEEDED
            changes: dict[str, Any] = {"status": target.value}
            notification_type = NotificationType.RESCHEDULING_NEEDED
        else:
            target = NegotiationStatus.NO_SHOW
            changes = {"status": target.value, "active": False, "completed_at": now}
            notification_type = NotificationType.INTERVIEW_NO_SHOW
        changes.update({"no_show_party": party.value, "status_changed_at": now})

        updated = self._negotiations.update_if(
            negotiation.id, NegotiationStatus.SCHEDULED, changes
        )
        if updated is None:
            latest = self._get(negotiation.id)
            if latest.status == target and latest.no_show_party == party:
                return latest
            raise InvalidTransition(
                ENTITY, latest.status, "report no-show for", "state changed concurrently"
            )

        self.logger.info(
            f"No-show ({party.value}) reported on negotiation {updated.id} "
            f"by {actor.actor_id if actor else 'system'}"
        )
        self._notify(
            updated,
            notification_type,
            {
                RecipientRole.RECRUITER: updated.recruiter_id,
                RecipientRole.CLIENT: updated.client_id,
            },
            party=party.value,
        )
        return updated

    def complete(self, negotiation_id: Any) -> InterviewNegotiation:
        """
        Mark a held interview as completed and advance the submission.

        Only the request whose conditional update succeeds advances the
        submission, so a retried completion never moves it twice.
        """
        negotiation = self._get(negotiation_id)
        if negotiation.status == NegotiationStatus.COMPLETED:
            return negotiation

        now = self._clock()
        self._require_finished_interview(negotiation, now, "complete")

        updated = self._negotiations.update_if(
            negotiation.id,
            NegotiationStatus.SCHEDULED,
            {
                "status": NegotiationStatus.COMPLETED.value,
                "active": False,
                "completed_at": now,
                "status_changed_at": now,
            },
        )
        if updated is None:
            latest = self._get(negotiation.id)
            if latest.status == NegotiationStatus.COMPLETED:
                return latest
            raise InvalidTransition(ENTITY, latest.status, "complete", "state changed concurrently")

        self.logger.info(f"Interview negotiation {updated.id} completed")
        try:
            self._pipeline.advance_after_interview(updated.submission_id)
        except InvalidTransition as e:
            # The negotiation is already committed as completed
            self.logger.warning(
                f"Submission {updated.submission_id} not advanced after interview "
                f"{updated.id}: {e}"
            )
        self._notify(
            updated,
            NotificationType.INTERVIEW_COMPLETED,
            {
                RecipientRole.RECRUITER: updated.recruiter_id,
                RecipientRole.CLIENT: updated.client_id,
            },
        )
        return updated

    # -------------------------------------------------------------------------
    # Candidate Actions
    # -------------------------------------------------------------------------

    def confirm_opt_in(
        self,
        negotiation_id: Any,
        slot: datetime,
        actor: Optional[Actor] = None,
    ) -> InterviewNegotiation:
        """
        Record the candidate's consent and booked slot, then disclose identity.

        Calling again on a scheduled negotiation is a no-op.

        Raises:
            InvalidTransition: If the negotiation is not awaiting opt-in
            SlotInvalid: If the slot was not proposed or has passed
        """
        negotiation = self._get(negotiation_id)
        if negotiation.status == NegotiationStatus.SCHEDULED:
            self._announce_scheduled(negotiation, self._veil.reveal(negotiation))
            return negotiation
        if negotiation.status != NegotiationStatus.PENDING_OPT_IN:
            raise InvalidTransition(ENTITY, negotiation.status, "confirm opt-in for")

        now = self._clock()
        chosen = self._check_slot(negotiation, slot, now)

        updated = self._negotiations.update_if(
            negotiation.id,
            NegotiationStatus.PENDING_OPT_IN,
            {
                "status": NegotiationStatus.SCHEDULED.value,
                "candidate_consent": True,
                "selected_slot": chosen,
                "status_changed_at": now,
            },
        )
        if updated is None:
            latest = self._get(negotiation.id)
            if latest.status == NegotiationStatus.SCHEDULED:
                return latest
            raise InvalidTransition(
                ENTITY, latest.status, "confirm opt-in for", "state changed concurrently"
            )

        audit_log(
            "interview_consent_given",
            {
                "negotiation_id": str(updated.id),
                "submission_id": str(updated.submission_id),
                "selected_slot": chosen.isoformat(),
                "actor": actor.actor_id if actor else "candidate",
            },
            audit_type="CONSENT",
        )
        contact = self._veil.reveal(updated)
        self._announce_scheduled(updated, contact)
        return updated

    def select_slot(
        self,
        negotiation_id: Any,
        slot: datetime,
        actor: Optional[Actor] = None,
    ) -> InterviewNegotiation:
        """Book one of the re-proposed slots. Idempotent on ``scheduled``."""
        negotiation = self._get(negotiation_id)
        if negotiation.status == NegotiationStatus.SCHEDULED:
            return negotiation
        if negotiation.status != NegotiationStatus.PENDING_SLOT_SELECTION:
            raise InvalidTransition(ENTITY, negotiation.status, "select a slot for")

        now = self._clock()
        chosen = self._check_slot(negotiation, slot, now)

        updated = self._negotiations.update_if(
            negotiation.id,
            NegotiationStatus.PENDING_SLOT_SELECTION,
            {
                "status": NegotiationStatus.SCHEDULED.value,
                "candidate_consent": True,
                "selected_slot": chosen,
                "status_changed_at": now,
            },
        )
        if updated is None:
            latest = self._get(negotiation.id)
            if latest.status == NegotiationStatus.SCHEDULED:
                return latest
            raise InvalidTransition(
                ENTITY, latest.status, "select a slot for", "state changed concurrently"
            )

        self.logger.info(
            f"Slot {chosen.isoformat()} booked on negotiation {updated.id} "
            f"by {actor.actor_id if actor else 'candidate'}"
        )
        self._announce_scheduled(updated, self._veil.reveal(updated))
        return updated

    def decline(
        self,
        negotiation_id: Any,
        reason: Optional[str] = None,
    ) -> InterviewNegotiation:
        """
        Candidate declines the interview before opting in.

        The identity is never revealed. Declining twice is a no-op.
        """
        negotiation = self._get(negotiation_id)
        if (
            negotiation.status == NegotiationStatus.CANCELLED
            and negotiation.cancellation_reason == CancellationReason.CANDIDATE_DECLINED
        ):
            return negotiation
        if negotiation.status != NegotiationStatus.PENDING_OPT_IN:
            raise InvalidTransition(ENTITY, negotiation.status, "decline")

        now = self._clock()
        updated = self._negotiations.update_if(
            negotiation.id,
            NegotiationStatus.PENDING_OPT_IN,
            {
                "status": NegotiationStatus.CANCELLED.value,
                "active": False,
                "cancellation_reason": CancellationReason.CANDIDATE_DECLINED.value,
                "decline_reason": reason,
                "status_changed_at": now,
                "completed_at": now,
            },
        )
        if updated is None:
            latest = self._get(negotiation.id)
            if latest.cancellation_reason == CancellationReason.CANDIDATE_DECLINED:
                return latest
            raise InvalidTransition(ENTITY, latest.status, "decline", "state changed concurrently")

        self.logger.info(f"Candidate declined interview negotiation {updated.id}")
        self._notify(
            updated,
            NotificationType.INTERVIEW_DECLINED,
            {
                RecipientRole.RECRUITER: updated.recruiter_id,
                RecipientRole.CLIENT: updated.client_id,
            },
            reason=reason,
        )
        return updated

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get(self, negotiation_id: Any) -> InterviewNegotiation:
        negotiation = self._negotiations.get_by_id(negotiation_id)
        if negotiation is None:
            raise NotFound("InterviewNegotiation", negotiation_id)
        return negotiation

    @staticmethod
    def _check_slot(
        negotiation: InterviewNegotiation, slot: datetime, now: datetime
    ) -> datetime:
        chosen = normalize_slot(slot)
        proposed = {normalize_slot(s) for s in negotiation.proposed_slots}
        if chosen not in proposed:
            raise SlotInvalid(f"Slot {chosen.isoformat()} was not proposed")
        if chosen <= now:
            raise SlotInvalid(f"Slot {chosen.isoformat()} has already passed")
        return chosen

    @staticmethod
    def _require_finished_interview(
        negotiation: InterviewNegotiation, now: datetime, action: str
    ) -> None:
        if negotiation.status != NegotiationStatus.SCHEDULED:
            raise InvalidTransition(ENTITY, negotiation.status, action)
        if not negotiation.slot_has_passed(now):
            raise InvalidTransition(
                ENTITY, negotiation.status, action, "the interview slot has not passed yet"
            )

    def _announce_scheduled(
        self, negotiation: InterviewNegotiation, contact: CandidateContact
    ) -> None:
        """Tell the client who the candidate is and confirm the time to everyone."""
        slot = negotiation.selected_slot.isoformat() if negotiation.selected_slot else None
        self._notify(
            negotiation,
            NotificationType.OPT_IN_CONFIRMED,
            {RecipientRole.CLIENT: negotiation.client_id},
            selected_slot=slot,
            contact=contact.model_dump(),
        )
        self._notify(
            negotiation,
            NotificationType.INTERVIEW_CONFIRMED,
            {
                RecipientRole.RECRUITER: negotiation.recruiter_id,
                RecipientRole.CANDIDATE: str(negotiation.candidate_id),
            },
            selected_slot=slot,
        )

    def _notify(
        self,
        negotiation: InterviewNegotiation,
        notification_type: NotificationType,
        recipients: dict[RecipientRole, Optional[str]],
        **extra: Any,
    ) -> None:
        payload = {
            "negotiation_id": str(negotiation.id),
            "submission_id": str(negotiation.submission_id),
            "job_title": negotiation.job_title,
            "status": negotiation.status,
            **extra,
        }
        self._notifier.emit_transition(
            negotiation,
            negotiation.status,
            recipients,
            notification_type,
            payload,
        )


# Singleton instance
_negotiation_service: Optional[InterviewNegotiationService] = None


def get_negotiation_service() -> InterviewNegotiationService:
    """Get the interview negotiation service singleton instance."""
    global _negotiation_service
    if _negotiation_service is None:
        _negotiation_service = InterviewNegotiationService()
    return _negotiation_service

"""
Tests for Pydantic data models in talenthub.data.models.
"""

from datetime import datetime, timedelta

import pytest
from bson import ObjectId
from pydantic import ValidationError

from talenthub.data.models import (
    ActionItem,
    ActionQueue,
    Actor,
    CandidateProfile,
    InterviewNegotiation,
    NotificationEvent,
    Submission,
    SubmissionCreate,
)
from talenthub.data.models.base import PyObjectId
from talenthub.utils.constants import (
    ActionType,
    ActorRole,
    DeliveryState,
    NegotiationStatus,
    NotificationType,
    RecipientRole,
    SubmissionStage,
    SubmissionStatus,
    UrgencyTier,
)


def _negotiation(**overrides) -> InterviewNegotiation:
    data = {
        "submission_id": ObjectId(),
        "client_id": "client-1",
        "recruiter_id": "recruiter-1",
        "candidate_id": ObjectId(),
        "proposed_slots": [datetime(2026, 3, 4, 10, 0)],
    }
    data.update(overrides)
    return InterviewNegotiation(**data)


# ═══════════════════════════════════════════════════════════════════════════
#  base.py
# ═══════════════════════════════════════════════════════════════════════════


class TestPyObjectId:
    def test_validate_valid_string(self):
        oid = ObjectId()
        assert PyObjectId.validate(str(oid)) == oid

    def test_validate_object_id_passthrough(self):
        oid = ObjectId()
        assert PyObjectId.validate(oid) is oid

    def test_validate_invalid_string(self):
        with pytest.raises(ValueError):
            PyObjectId.validate("not-an-id")


class TestActor:
    def test_system_actor(self):
        actor = Actor.system()
        assert actor.actor_id == "system"
        assert actor.role == ActorRole.SYSTEM.value

    def test_role_stored_as_value(self):
        assert Actor(actor_id="u1", role=ActorRole.CLIENT).role == "client"


# ═══════════════════════════════════════════════════════════════════════════
#  submission.py
# ═══════════════════════════════════════════════════════════════════════════


class TestSubmission:
    def test_defaults(self):
        submission = Submission(
            job_id=ObjectId(),
            candidate_id=ObjectId(),
            recruiter_id="r1",
            client_id="c1",
        )
        assert submission.stage == SubmissionStage.SUBMITTED.value
        assert submission.status == SubmissionStatus.ACTIVE.value
        assert submission.identity_revealed is False
        assert submission.revealed_contact is None
        assert submission.awaiting_decision
        assert not submission.is_terminal

    def test_match_score_bounds(self):
        with pytest.raises(ValidationError):
            Submission(
                job_id=ObjectId(),
                candidate_id=ObjectId(),
                recruiter_id="r1",
                client_id="c1",
                match_score=101,
            )

    def test_terminal_stage(self):
        submission = Submission(
            job_id=ObjectId(),
            candidate_id=ObjectId(),
            recruiter_id="r1",
            client_id="c1",
            stage=SubmissionStage.HIRED,
        )
        assert submission.is_terminal
        assert not submission.awaiting_decision

    def test_mongo_dump_keeps_object_ids(self):
        job_id = ObjectId()
        submission = Submission(
            job_id=job_id,
            candidate_id=ObjectId(),
            recruiter_id="r1",
            client_id="c1",
        )
        document = submission.model_dump_mongo()
        assert "_id" not in document
        assert document["job_id"] == job_id
        assert isinstance(document["job_id"], ObjectId)

    def test_create_schema_accepts_string_ids(self):
        data = SubmissionCreate(
            job_id=str(ObjectId()),
            candidate_id=str(ObjectId()),
            recruiter_id="r1",
            client_id="c1",
            profile=CandidateProfile(skills=["go"]),
        )
        assert data.profile.skills == ["go"]


# ═══════════════════════════════════════════════════════════════════════════
#  negotiation.py
# ═══════════════════════════════════════════════════════════════════════════


class TestInterviewNegotiation:
    def test_defaults(self):
        negotiation = _negotiation()
        assert negotiation.status == NegotiationStatus.PENDING_OPT_IN.value
        assert negotiation.active is True
        assert negotiation.revision == 1
        assert negotiation.candidate_consent is False
        assert negotiation.is_active
        assert not negotiation.is_terminal

    def test_selected_slot_requires_consent(self):
        with pytest.raises(ValidationError):
            _negotiation(selected_slot=datetime(2026, 3, 4, 10, 0))

    def test_scheduled_requires_selected_slot(self):
        with pytest.raises(ValidationError):
            _negotiation(status=NegotiationStatus.SCHEDULED, candidate_consent=True)

    def test_scheduled_with_consent_and_slot(self):
        slot = datetime(2026, 3, 4, 10, 0)
        negotiation = _negotiation(
            status=NegotiationStatus.SCHEDULED,
            candidate_consent=True,
            selected_slot=slot,
        )
        assert negotiation.selected_slot == slot

    def test_slot_has_passed(self):
        slot = datetime(2026, 3, 4, 10, 0)
        negotiation = _negotiation(
            status=NegotiationStatus.SCHEDULED,
            candidate_consent=True,
            selected_slot=slot,
        )
        assert not negotiation.slot_has_passed(slot - timedelta(minutes=1))
        assert negotiation.slot_has_passed(slot)
        assert negotiation.slot_has_passed(slot + timedelta(hours=1))

    def test_slot_has_passed_without_slot(self):
        assert not _negotiation().slot_has_passed(datetime(2030, 1, 1))


# ═══════════════════════════════════════════════════════════════════════════
#  notification.py / views.py
# ═══════════════════════════════════════════════════════════════════════════


class TestNotificationEvent:
    def test_defaults(self):
        event = NotificationEvent(
            idempotency_key="n1:scheduled:r1:client",
            recipient_id="client-1",
            recipient_role=RecipientRole.CLIENT,
            notification_type=NotificationType.OPT_IN_CONFIRMED,
        )
        assert event.delivery_state == DeliveryState.PENDING.value
        assert event.payload == {}


class TestActionQueue:
    def test_counts(self):
        now = datetime(2026, 3, 2, 9, 0)

        def item(action_type, urgency):
            return ActionItem(
                item_id=f"{action_type.value}-{urgency.value}",
                action_type=action_type,
                urgency=urgency,
                waiting_hours=1,
                created_at=now,
                title="t",
            )

        queue = ActionQueue(
            client_id="c1",
            generated_at=now,
            items=[
                item(ActionType.DECISION, UrgencyTier.CRITICAL),
                item(ActionType.DECISION, UrgencyTier.NORMAL),
                item(ActionType.INTERVIEW, UrgencyTier.WARNING),
                item(ActionType.OFFER, UrgencyTier.CRITICAL),
            ],
        )
        assert queue.pending_decisions == 2
        assert queue.pending_interviews == 1
        assert queue.pending_offers == 1
        assert queue.critical_count == 2

"""
Tests for the MongoDB repositories and collection-backed services.

Collections are MagicMocks, so these tests check the queries and
updates that would be sent to MongoDB rather than their results.
"""

import asyncio
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from talenthub.core.exceptions import NegotiationInProgress, NotificationFailure
from talenthub.data.database import DatabaseManager, _index_args
from talenthub.data.models import (
    CandidateContact,
    InterviewNegotiation,
    NotificationEvent,
    Submission,
)
from talenthub.data.repositories import (
    CandidateDirectory,
    NegotiationRepository,
    NotificationRepository,
    SubmissionRepository,
)
from talenthub.services.notification_transport import InAppNotificationTransport
from talenthub.services.pipeline_hooks import CollectionPipelineHooks
from talenthub.utils.constants import (
    AWAITING_SCHEDULING_STATES,
    NegotiationStatus,
    NotificationType,
    RecipientRole,
    SubmissionStage,
)


@pytest.fixture
def collection():
    return MagicMock()


@pytest.fixture
def db_manager(collection):
    manager = MagicMock()
    manager.get_sync_collection.return_value = collection
    return manager


def _negotiation(**kwargs) -> InterviewNegotiation:
    defaults = dict(
        submission_id=ObjectId(),
        client_id="client-1",
        recruiter_id="recruiter-1",
        candidate_id=ObjectId(),
        proposed_slots=[datetime(2026, 3, 4, 10, 0)],
    )
    defaults.update(kwargs)
    return InterviewNegotiation(**defaults)


# ── Conditional updates ─────────────────────────────────────────────────────


class TestUpdateIf:
    def test_filter_includes_expected_state(self, db_manager, collection):
        repo = NegotiationRepository(db_manager=db_manager)
        oid = ObjectId()
        collection.find_one_and_update.return_value = None

        result = repo.update_if(oid, NegotiationStatus.PENDING_OPT_IN, {"candidate_consent": True})

        assert result is None
        query, update = collection.find_one_and_update.call_args[0]
        assert query == {"_id": oid, "status": {"$in": ["pending_opt_in"]}}
        assert update["$set"]["candidate_consent"] is True
        assert "updated_at" in update["$set"]

    def test_several_states_and_extra_filter(self, db_manager, collection):
        repo = NegotiationRepository(db_manager=db_manager)
        oid = ObjectId()
        collection.find_one_and_update.return_value = None

        repo.update_if(
            str(oid),
            [NegotiationStatus.RESCHEDULING_NEEDED, NegotiationStatus.PENDING_SLOT_SELECTION],
            {"revision": 2},
            extra_filter={"revision": 1},
        )

        query = collection.find_one_and_update.call_args[0][0]
        assert query["_id"] == oid
        assert query["status"] == {"$in": ["rescheduling_needed", "pending_slot_selection"]}
        assert query["revision"] == 1

    def test_returns_updated_model(self, db_manager, collection):
        repo = NegotiationRepository(db_manager=db_manager)
        negotiation = _negotiation(id=ObjectId(), status=NegotiationStatus.CANCELLED, active=False)
        collection.find_one_and_update.return_value = negotiation.model_dump(by_alias=True)

        result = repo.transition(negotiation.id, NegotiationStatus.PENDING_OPT_IN, NegotiationStatus.CANCELLED)

        assert result.id == negotiation.id
        assert result.status == NegotiationStatus.CANCELLED.value
        assert collection.find_one_and_update.call_args[0][1]["$set"]["status"] == "cancelled"

    def test_submission_state_field_is_stage(self, db_manager, collection):
        repo = SubmissionRepository(db_manager=db_manager)
        oid = ObjectId()
        collection.find_one_and_update.return_value = None

        repo.move_stage(oid, SubmissionStage.OFFER, SubmissionStage.HIRED)

        query, update = collection.find_one_and_update.call_args[0]
        assert query == {"_id": oid, "stage": {"$in": ["offer"]}}
        assert update["$set"]["stage"] == "hired"
        assert update["$set"]["status"] == "closed"
        assert "stage_entered_at" in update["$set"]


# ── Negotiations ────────────────────────────────────────────────────────────


class TestNegotiationRepository:
    def test_create_active(self, db_manager, collection):
        repo = NegotiationRepository(db_manager=db_manager)
        new_id = ObjectId()
        collection.insert_one.return_value.inserted_id = new_id

        created = repo.create_active(_negotiation())

        assert created.id == new_id
        document = collection.insert_one.call_args[0][0]
        assert document["active"] is True
        assert "_id" not in document

    def test_duplicate_active_raises(self, db_manager, collection):
        repo = NegotiationRepository(db_manager=db_manager)
        existing = _negotiation(id=ObjectId())
        collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")
        collection.find_one.return_value = existing.model_dump(by_alias=True)

        with pytest.raises(NegotiationInProgress) as exc_info:
            repo.create_active(_negotiation(submission_id=existing.submission_id))

        assert exc_info.value.negotiation_id == str(existing.id)
        assert collection.find_one.call_args[0][0] == {
            "submission_id": existing.submission_id,
            "active": True,
        }

    def test_find_by_client_status_filter(self, db_manager, collection):
        repo = NegotiationRepository(db_manager=db_manager)

        repo.find_by_client("client-1", statuses=AWAITING_SCHEDULING_STATES)

        query = collection.find.call_args[0][0]
        assert query["client_id"] == "client-1"
        assert sorted(query["status"]["$in"]) == sorted(s.value for s in AWAITING_SCHEDULING_STATES)


# ── Submissions ─────────────────────────────────────────────────────────────


class TestSubmissionRepository:
    def test_reveal_only_matches_hidden_identity(self, db_manager, collection):
        repo = SubmissionRepository(db_manager=db_manager)
        oid = ObjectId()
        contact = CandidateContact(full_name="Jane Smith", email="jane@example.com")
        revealed_at = datetime(2026, 3, 2, 9, 0)
        collection.find_one_and_update.return_value = None

        assert repo.reveal_identity(oid, contact, revealed_at) is None

        query, update = collection.find_one_and_update.call_args[0]
        assert query == {"_id": oid, "identity_revealed": False}
        assert update["$set"]["identity_revealed"] is True
        assert update["$set"]["revealed_at"] == revealed_at
        assert update["$set"]["revealed_contact"]["email"] == "jane@example.com"

    def test_count_at_stage(self, db_manager, collection):
        repo = SubmissionRepository(db_manager=db_manager)
        collection.count_documents.return_value = 3

        assert repo.count_at_stage("client-1", SubmissionStage.HIRED) == 3
        assert collection.count_documents.call_args[0][0] == {"client_id": "client-1", "stage": "hired"}

    def test_find_by_client_includes_closed_when_status_none(self, db_manager, collection):
        repo = SubmissionRepository(db_manager=db_manager)

        repo.find_by_client("client-1", status=None)

        assert collection.find.call_args[0][0] == {"client_id": "client-1"}

    def test_create_keeps_object_ids(self, db_manager, collection):
        repo = SubmissionRepository(db_manager=db_manager)
        submission = Submission(
            job_id=ObjectId(),
            candidate_id=ObjectId(),
            recruiter_id="recruiter-1",
            client_id="client-1",
        )
        collection.insert_one.return_value.inserted_id = ObjectId()

        repo.create(submission)

        document = collection.insert_one.call_args[0][0]
        assert isinstance(document["job_id"], ObjectId)
        assert document["stage"] == "submitted"


# ── Notification events ─────────────────────────────────────────────────────


class TestNotificationRepository:
    def _event(self) -> NotificationEvent:
        return NotificationEvent(
            idempotency_key="n1:scheduled:r1:client",
            recipient_id="client-1",
            recipient_role=RecipientRole.CLIENT,
            notification_type=NotificationType.OPT_IN_CONFIRMED,
        )

    def test_claim(self, db_manager, collection):
        repo = NotificationRepository(db_manager=db_manager)
        collection.insert_one.return_value.inserted_id = ObjectId()
        assert repo.claim(self._event()) is True

    def test_claim_taken_key(self, db_manager, collection):
        repo = NotificationRepository(db_manager=db_manager)
        collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")
        assert repo.claim(self._event()) is False

    def test_mark_failed_truncates_error(self, db_manager, collection):
        repo = NotificationRepository(db_manager=db_manager)

        repo.mark_failed("k", "x" * 2000)

        query, update = collection.update_one.call_args[0]
        assert query == {"idempotency_key": "k"}
        assert update["$set"]["delivery_state"] == "failed"
        assert len(update["$set"]["last_error"]) == 500


# ── Candidate directory ─────────────────────────────────────────────────────


class TestCandidateDirectory:
    def test_flat_layout(self, db_manager, collection):
        collection.find_one.return_value = {
            "_id": ObjectId(),
            "full_name": "Jane Smith",
            "email": "jane@example.com",
            "phone": "+49 170 1234567",
        }
        contact = CandidateDirectory(db_manager=db_manager).get_contact(ObjectId())
        assert contact == CandidateContact(
            full_name="Jane Smith", email="jane@example.com", phone="+49 170 1234567"
        )

    def test_nested_layout_with_split_name(self, db_manager, collection):
        collection.find_one.return_value = {
            "_id": ObjectId(),
            "first_name": "Jane",
            "last_name": "Smith",
            "contact": {"email": "jane@example.com"},
        }
        contact = CandidateDirectory(db_manager=db_manager).get_contact(str(ObjectId()))
        assert contact.full_name == "Jane Smith"
        assert contact.email == "jane@example.com"
        assert contact.phone is None

    def test_unknown_candidate(self, db_manager, collection):
        collection.find_one.return_value = None
        assert CandidateDirectory(db_manager=db_manager).get_contact(ObjectId()) is None


# ── Collection-backed services ──────────────────────────────────────────────


class TestInAppNotificationTransport:
    def test_writes_notification(self, db_manager, collection):
        transport = InAppNotificationTransport(db_manager=db_manager)

        sent = transport.send(
            "client-1",
            NotificationType.OPT_IN_CONFIRMED.value,
            {"job_title": "Backend Engineer"},
            2.0,
        )

        assert sent is True
        db_manager.get_sync_collection.assert_called_with("notifications")
        document = collection.insert_one.call_args[0][0]
        assert document["user_id"] == "client-1"
        assert document["read"] is False
        assert "Backend Engineer" in document["message"]

    def test_missing_recipient_skipped(self, db_manager, collection):
        transport = InAppNotificationTransport(db_manager=db_manager)
        assert transport.send(None, NotificationType.INTERVIEW_CANCELLED.value, {}, 2.0) is False
        collection.insert_one.assert_not_called()

    def test_mongo_error_becomes_notification_failure(self, db_manager, collection):
        collection.insert_one.side_effect = PyMongoError("write concern")
        transport = InAppNotificationTransport(db_manager=db_manager)

        with pytest.raises(NotificationFailure):
            transport.send("client-1", NotificationType.INTERVIEW_CANCELLED.value, {}, 2.0)


class TestCollectionPipelineHooks:
    def _submission(self) -> Submission:
        return Submission(
            id=ObjectId(),
            job_id=ObjectId(),
            candidate_id=ObjectId(),
            recruiter_id="recruiter-1",
            client_id="client-1",
            stage=SubmissionStage.OFFER,
        )

    def test_open_offer(self, db_manager, collection):
        submission = self._submission()
        CollectionPipelineHooks(db_manager=db_manager).open_offer(submission)

        db_manager.get_sync_collection.assert_called_with("offers")
        document = collection.insert_one.call_args[0][0]
        assert document["status"] == "draft"
        assert document["submission_id"] == submission.id

    def test_record_placement(self, db_manager, collection):
        submission = self._submission()
        CollectionPipelineHooks(db_manager=db_manager).record_placement(submission)

        db_manager.get_sync_collection.assert_called_with("placements")
        document = collection.insert_one.call_args[0][0]
        assert document["status"] == "pending"
        assert document["hired_at"] == submission.stage_entered_at


# ── Index plan ──────────────────────────────────────────────────────────────


class TestIndexPlan:
    def _options(self, collection_name, field):
        plan = DatabaseManager().index_plan()
        for spec in plan[collection_name]:
            keys, options = _index_args(spec)
            if keys == field:
                return options
        raise AssertionError(f"no index on {collection_name}.{field}")

    def test_one_active_negotiation_per_submission(self):
        options = self._options("interview_negotiations", "submission_id")
        assert options["unique"] is True
        assert options["partialFilterExpression"] == {"active": True}

    def test_unique_idempotency_key(self):
        assert self._options("notification_events", "idempotency_key") == {"unique": True}

    def test_plain_and_compound_specs(self):
        assert _index_args("created_at") == ("created_at", {})
        assert _index_args([("client_id", 1), ("stage", 1)]) == ([("client_id", 1), ("stage", 1)], {})

    def test_ensure_indexes(self, monkeypatch):
        created = []

        class FakeCollection:
            def __init__(self, name):
                self.name = name

            async def create_index(self, keys, **options):
                created.append((self.name, keys, options))

        manager = DatabaseManager()
        monkeypatch.setattr(manager, "get_async_collection", FakeCollection)

        asyncio.run(manager.ensure_indexes())

        names = {name for name, _, _ in created}
        assert names == {"submissions", "interview_negotiations", "notification_events", "notifications"}
        assert ("notification_events", "idempotency_key", {"unique": True}) in created

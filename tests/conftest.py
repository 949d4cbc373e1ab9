"""
Shared test fixtures for the TalentHub test suite.

Sets environment variables before any talenthub imports to prevent config
failures, then provides in-memory repository doubles that honour the
conditional-update and uniqueness rules of the MongoDB repositories, a
recording notification transport and a controllable clock.
"""

import os

# === Set environment BEFORE any talenthub imports ===
os.environ.setdefault("APP_ENVIRONMENT", "testing")
os.environ.setdefault("DB_NAME", "talenthub_test")
os.environ.setdefault("NOTIFY_DISPATCH_MODE", "inline")
os.environ.setdefault("LOG_FILE_OUTPUT", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Iterable, Optional

import pytest
from bson import ObjectId

from talenthub.core.exceptions import NegotiationInProgress
from talenthub.core.identity import IdentityVeil
from talenthub.core.negotiation import InterviewNegotiationService
from talenthub.core.pipeline import SubmissionPipeline
from talenthub.core.urgency import ActionQueueService, UrgencyEngine
from talenthub.data.models import (
    CandidateContact,
    CandidateProfile,
    ClientFeedback,
    InterviewNegotiation,
    NotificationEvent,
    Submission,
    SubmissionCreate,
)
from talenthub.services.notification_fanout import NotificationFanout
from talenthub.services.notification_transport import NotificationTransport
from talenthub.services.pipeline_hooks import PipelineHooks
from talenthub.utils.clock import utcnow
from talenthub.utils.config import NotificationSettings, UrgencySettings
from talenthub.utils.constants import (
    DeliveryState,
    SubmissionStage,
    SubmissionStatus,
)


NOW = datetime(2026, 3, 2, 9, 0, 0)


def _values(expected: Any) -> set[str]:
    if isinstance(expected, (str, Enum)):
        expected = [expected]
    return {e.value if isinstance(e, Enum) else e for e in expected}


def _oid(value: Any) -> ObjectId:
    return value if isinstance(value, ObjectId) else ObjectId(str(value))


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ---------------------------------------------------------------------------
# In-memory repositories
# ---------------------------------------------------------------------------


class InMemoryRepository:
    """Dict-backed stand-in for ``BaseRepository`` with the same update_if contract."""

    model_class: type = None
    state_field = "status"

    def __init__(self):
        self.documents: dict[ObjectId, Any] = {}
        self.update_calls = 0

    def seed(self, model):
        """Store a model as-is, keeping its timestamps."""
        if model.id is None:
            model.id = ObjectId()
        self.documents[model.id] = model.model_copy(deep=True)
        return model

    def create(self, model):
        now = utcnow()
        model.created_at = now
        model.updated_at = now
        return self.seed(model)

    def get_by_id(self, id_value):
        model = self.documents.get(_oid(id_value))
        return model.model_copy(deep=True) if model is not None else None

    def all(self) -> list:
        return [m.model_copy(deep=True) for m in self.documents.values()]

    def update_if(self, id_value, expected, changes, extra_filter=None):
        self.update_calls += 1
        current = self.documents.get(_oid(id_value))
        if current is None:
            return None
        data = current.model_dump(by_alias=True)
        if data.get(self.state_field) not in _values(expected):
            return None
        for key, value in (extra_filter or {}).items():
            if data.get(key) != value:
                return None
        data.update(changes)
        data["updated_at"] = utcnow()
        updated = self.model_class.model_validate(data)
        self.documents[updated.id] = updated
        return updated.model_copy(deep=True)

    def transition(self, id_value, expected, new_state, changes=None):
        new_value = new_state.value if isinstance(new_state, Enum) else new_state
        return self.update_if(id_value, expected, {**(changes or {}), self.state_field: new_value})


class InMemorySubmissionRepository(InMemoryRepository):
    model_class = Submission
    state_field = "stage"

    def create_from_schema(self, data: SubmissionCreate) -> Submission:
        submission = Submission(
            job_id=data.job_id,
            candidate_id=data.candidate_id,
            recruiter_id=data.recruiter_id,
            client_id=data.client_id,
            job_title=data.job_title,
            match_score=data.match_score,
        )
        if data.profile is not None:
            submission.profile = data.profile
        return self.create(submission)

    def find_by_client(self, client_id, stage=None, status=SubmissionStatus.ACTIVE, limit=500):
        found = [
            s for s in self.all()
            if s.client_id == client_id
            and (stage is None or s.stage == stage)
            and (status is None or s.status == status)
        ]
        return sorted(found, key=lambda s: s.created_at)[:limit]

    async def find_by_client_async(self, client_id, stage=None, status=SubmissionStatus.ACTIVE, limit=500):
        return self.find_by_client(client_id, stage, status, limit)

    def count_created_since(self, client_id, since):
        return sum(1 for s in self.all() if s.client_id == client_id and s.created_at >= since)

    def count_at_stage(self, client_id, stage):
        return sum(1 for s in self.all() if s.client_id == client_id and s.stage == stage)

    def move_stage(self, submission_id, expected, new_stage, changes=None):
        update = {"stage_entered_at": utcnow(), **(changes or {})}
        if new_stage.is_terminal:
            update["status"] = SubmissionStatus.CLOSED.value
        return self.transition(submission_id, expected, new_stage, update)

    def reveal_identity(self, submission_id, contact, revealed_at):
        current = self.documents.get(_oid(submission_id))
        if current is None or current.identity_revealed:
            return None
        data = current.model_dump(by_alias=True)
        data.update(
            identity_revealed=True,
            revealed_at=revealed_at,
            revealed_contact=contact.model_dump(),
        )
        updated = Submission.model_validate(data)
        self.documents[updated.id] = updated
        return updated.model_copy(deep=True)

    def add_feedback(self, submission_id, feedback: ClientFeedback):
        current = self.documents.get(_oid(submission_id))
        if current is None:
            return None
        current.feedback.append(feedback)
        return current.model_copy(deep=True)


class InMemoryNegotiationRepository(InMemoryRepository):
    model_class = InterviewNegotiation

    def create_active(self, negotiation):
        existing = self.get_active_for_submission(negotiation.submission_id)
        if existing is not None:
            raise NegotiationInProgress(negotiation.submission_id, existing.id)
        return self.create(negotiation)

    def get_active_for_submission(self, submission_id):
        for n in self.all():
            if n.submission_id == _oid(submission_id) and n.active:
                return n
        return None

    def get_by_submission(self, submission_id, limit=50):
        return [n for n in self.all() if n.submission_id == _oid(submission_id)][:limit]

    def find_by_client(self, client_id, statuses: Optional[Iterable] = None, limit=500):
        allowed = _values(statuses) if statuses is not None else None
        found = [
            n for n in self.all()
            if n.client_id == client_id and (allowed is None or n.status in allowed)
        ]
        return sorted(found, key=lambda n: n.created_at)[:limit]

    async def find_by_client_async(self, client_id, statuses=None, limit=500):
        return self.find_by_client(client_id, statuses, limit)


class InMemoryNotificationRepository:
    """Idempotency-key store with delivery bookkeeping."""

    def __init__(self):
        self.events: dict[str, NotificationEvent] = {}

    def claim(self, event: NotificationEvent) -> bool:
        if event.idempotency_key in self.events:
            return False
        self.events[event.idempotency_key] = event
        return True

    def get_by_key(self, key):
        return self.events.get(key)

    def mark_delivered(self, key):
        self.events[key].delivery_state = DeliveryState.DELIVERED.value

    def mark_failed(self, key, error):
        self.events[key].delivery_state = DeliveryState.FAILED.value
        self.events[key].last_error = error


class InMemoryCandidateDirectory:
    def __init__(self):
        self.contacts: dict[ObjectId, CandidateContact] = {}
        self.lookups = 0

    def add(self, candidate_id, contact: CandidateContact):
        self.contacts[_oid(candidate_id)] = contact

    def get_contact(self, candidate_id):
        self.lookups += 1
        contact = self.contacts.get(_oid(candidate_id))
        return contact.model_copy() if contact is not None else None


# ---------------------------------------------------------------------------
# Recording collaborators
# ---------------------------------------------------------------------------


class RecordingTransport(NotificationTransport):
    """Keeps every delivered notification; can be told to fail."""

    def __init__(self):
        self.sent: list[dict[str, Any]] = []
        self.error: Optional[Exception] = None

    def send(self, recipient_id, template_key, data, timeout):
        if self.error is not None:
            raise self.error
        if not recipient_id:
            return False
        self.sent.append({"recipient_id": recipient_id, "type": template_key, "data": data})
        return True

    def of_type(self, notification_type) -> list[dict[str, Any]]:
        value = getattr(notification_type, "value", notification_type)
        return [n for n in self.sent if n["type"] == value]


class RecordingHooks(PipelineHooks):
    def __init__(self):
        self.offers: list[ObjectId] = []
        self.placements: list[ObjectId] = []

    def open_offer(self, submission):
        self.offers.append(submission.id)

    def record_placement(self, submission):
        self.placements.append(submission.id)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def submission_repo():
    return InMemorySubmissionRepository()


@pytest.fixture
def negotiation_repo():
    return InMemoryNegotiationRepository()


@pytest.fixture
def notification_repo():
    return InMemoryNotificationRepository()


@pytest.fixture
def directory():
    return InMemoryCandidateDirectory()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def hooks():
    return RecordingHooks()


@pytest.fixture
def fanout(transport, notification_repo):
    return NotificationFanout(
        transport=transport,
        repository=notification_repo,
        settings=NotificationSettings(enabled=True, dispatch_mode="inline"),
    )


@pytest.fixture
def veil(submission_repo, directory, clock):
    return IdentityVeil(submissions=submission_repo, directory=directory, clock=clock)


@pytest.fixture
def pipeline(submission_repo, hooks, fanout):
    return SubmissionPipeline(submissions=submission_repo, hooks=hooks, notifier=fanout)


@pytest.fixture
def negotiation_service(negotiation_repo, submission_repo, veil, pipeline, fanout, clock):
    return InterviewNegotiationService(
        negotiations=negotiation_repo,
        submissions=submission_repo,
        veil=veil,
        pipeline=pipeline,
        notifier=fanout,
        clock=clock,
    )


@pytest.fixture
def action_queue_service(submission_repo, negotiation_repo, veil, clock):
    return ActionQueueService(
        submissions=submission_repo,
        negotiations=negotiation_repo,
        veil=veil,
        engine=UrgencyEngine(),
        settings=UrgencySettings(interview_priority=False, recent_window_days=7),
        clock=clock,
    )


@pytest.fixture
def candidate_contact():
    return CandidateContact(
        full_name="Jane Smith",
        email="jane.smith@example.com",
        phone="+49 170 1234567",
    )


@pytest.fixture
def make_submission(submission_repo, directory, candidate_contact):
    """Factory that stores a submission and registers its candidate contact."""

    def _factory(
        stage: SubmissionStage = SubmissionStage.SUBMITTED,
        client_id: str = "client-1",
        recruiter_id: str = "recruiter-1",
        job_title: str = "Backend Engineer",
        created_at: datetime = NOW,
        stage_entered_at: Optional[datetime] = None,
        with_contact: bool = True,
        **kwargs,
    ) -> Submission:
        match_score = kwargs.pop("match_score", 82.5)
        profile = kwargs.pop(
            "profile",
            CandidateProfile(
                skills=["python", "mongodb"],
                experience_years=6,
                expected_salary=74000,
                city="Munich",
                availability="immediately",
            ),
        )
        submission = Submission(
            job_id=ObjectId(),
            candidate_id=ObjectId(),
            recruiter_id=recruiter_id,
            client_id=client_id,
            job_title=job_title,
            stage=stage,
            status=SubmissionStatus.CLOSED if stage.is_terminal else SubmissionStatus.ACTIVE,
            stage_entered_at=stage_entered_at or created_at,
            match_score=match_score,
            profile=profile,
            created_at=created_at,
            updated_at=created_at,
            **kwargs,
        )
        submission_repo.seed(submission)
        if with_contact:
            directory.add(submission.candidate_id, candidate_contact)
        return submission

    return _factory


@pytest.fixture
def slots(clock):
    """Two future interview slots."""
    return [clock.now + timedelta(days=2), clock.now + timedelta(days=3)]


@pytest.fixture
def scheduled_negotiation(negotiation_service, make_submission, slots):
    """Negotiation the candidate opted in to, booked on the first slot."""
    submission = make_submission(stage=SubmissionStage.INTERVIEW_1)
    negotiation = negotiation_service.propose(submission.id, slots, "Looking forward to it")
    return negotiation_service.confirm_opt_in(negotiation.id, slots[0])


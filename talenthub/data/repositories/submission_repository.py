"""
Submission repository for TalentHub.

Provides data access operations for submission documents, including
the conditional stage moves used by the submission pipeline and the
one-time identity reveal used by the identity veil.
"""

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from talenthub.data.models.submission import (
    CandidateContact,
    ClientFeedback,
    Submission,
    SubmissionCreate,
)
from talenthub.utils.clock import utcnow
from talenthub.utils.constants import SubmissionStage, SubmissionStatus
from talenthub.utils.logger import get_logger

from .base import BaseRepository, StateSpec

logger = get_logger(__name__)


class SubmissionRepository(BaseRepository[Submission]):
    """Repository for submission document operations."""

    state_field = "stage"

    @property
    def collection_name(self) -> str:
        return "submissions"

    @property
    def model_class(self) -> type[Submission]:
        return Submission

    # -------------------------------------------------------------------------
    # Create Operations
    # -------------------------------------------------------------------------

    def create_from_schema(self, data: SubmissionCreate) -> Submission:
        """Create a submission from a create schema."""
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

    # -------------------------------------------------------------------------
    # Query Operations
    # -------------------------------------------------------------------------

    def find_by_client(
        self,
        client_id: str,
        stage: Optional[SubmissionStage] = None,
        status: Optional[SubmissionStatus] = SubmissionStatus.ACTIVE,
        limit: int = 500,
    ) -> list[Submission]:
        """Get a client's submissions, optionally narrowed by stage and status."""
        query: dict[str, Any] = {"client_id": client_id}
        if stage is not None:
            query["stage"] = stage.value
        if status is not None:
            query["status"] = status.value
        return self.find(query, limit=limit, sort_by="created_at", sort_order=1)

    async def find_by_client_async(
        self,
        client_id: str,
        stage: Optional[SubmissionStage] = None,
        status: Optional[SubmissionStatus] = SubmissionStatus.ACTIVE,
        limit: int = 500,
    ) -> list[Submission]:
        """Get a client's submissions asynchronously."""
        query: dict[str, Any] = {"client_id": client_id}
        if stage is not None:
            query["stage"] = stage.value
        if status is not None:
            query["status"] = status.value
        return await self.find_async(query, limit=limit, sort_by="created_at", sort_order=1)

    def count_created_since(self, client_id: str, since: datetime) -> int:
        """Count submissions a client received since a point in time."""
        return self.count({"client_id": client_id, "created_at": {"$gte": since}})

    def count_at_stage(self, client_id: str, stage: SubmissionStage) -> int:
        """Count a client's submissions currently at a stage."""
        return self.count({"client_id": client_id, "stage": stage.value})

    # -------------------------------------------------------------------------
    # Stage Moves
    # -------------------------------------------------------------------------

    def move_stage(
        self,
        submission_id: str | ObjectId,
        expected: StateSpec,
        new_stage: SubmissionStage,
        changes: Optional[dict[str, Any]] = None,
    ) -> Optional[Submission]:
        """Move a submission to a new stage if it is still at ``expected``."""
        update = {"stage_entered_at": utcnow(), **(changes or {})}
        if new_stage.is_terminal:
            update["status"] = SubmissionStatus.CLOSED.value
        return self.transition(submission_id, expected, new_stage, update)

    # -------------------------------------------------------------------------
    # Disclosure
    # -------------------------------------------------------------------------

    def reveal_identity(
        self,
        submission_id: str | ObjectId,
        contact: CandidateContact,
        revealed_at: datetime,
    ) -> Optional[Submission]:
        """
        Flip ``identity_revealed`` and store the client-visible contact.

        Only matches while the identity is still hidden, so the flag moves
        false to true at most once and ``revealed_at`` is never rewritten.

        Returns:
            The updated submission, or None if it was already revealed
        """
        collection = self._get_sync_collection()
        document = collection.find_one_and_update(
            {"_id": self._to_object_id(submission_id), "identity_revealed": False},
            {
                "$set": {
                    "identity_revealed": True,
                    "revealed_at": revealed_at,
                    "revealed_contact": contact.model_dump(),
                    "updated_at": utcnow(),
                }
            },
            return_document=ReturnDocument.AFTER,
        )
        if document is not None:
            logger.debug(f"Identity revealed on submission {submission_id}")
        return self._to_model(document)

    # -------------------------------------------------------------------------
    # Feedback
    # -------------------------------------------------------------------------

    def add_feedback(
        self,
        submission_id: str | ObjectId,
        feedback: ClientFeedback,
    ) -> Optional[Submission]:
        """Append client feedback to a submission."""
        collection = self._get_sync_collection()
        document = collection.find_one_and_update(
            {"_id": self._to_object_id(submission_id)},
            {
                "$push": {"feedback": feedback.model_dump()},
                "$set": {"updated_at": utcnow()},
            },
            return_document=ReturnDocument.AFTER,
        )
        return self._to_model(document)


# Singleton instance
_submission_repository: Optional[SubmissionRepository] = None


def get_submission_repository() -> SubmissionRepository:
    """Get the submission repository singleton instance."""
    global _submission_repository
    if _submission_repository is None:
        _submission_repository = SubmissionRepository()
    return _submission_repository

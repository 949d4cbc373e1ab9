"""
Interview negotiation repository for TalentHub.

Creation relies on the unique partial index over ``submission_id``
for active negotiations; a duplicate key means another request
already opened one for the same submission.
"""

from typing import Any, Iterable, Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from talenthub.core.exceptions import NegotiationInProgress
from talenthub.data.models.negotiation import InterviewNegotiation
from talenthub.utils.constants import NegotiationStatus
from talenthub.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class NegotiationRepository(BaseRepository[InterviewNegotiation]):
    """Repository for interview negotiation document operations."""

    @property
    def collection_name(self) -> str:
        return "interview_negotiations"

    @property
    def model_class(self) -> type[InterviewNegotiation]:
        return InterviewNegotiation

    # -------------------------------------------------------------------------
    # Create Operations
    # -------------------------------------------------------------------------

    def create_active(self, negotiation: InterviewNegotiation) -> InterviewNegotiation:
        """
        Insert a new active negotiation.

        Raises:
            NegotiationInProgress: If the submission already has an active one
        """
        try:
            return self.create(negotiation)
        except DuplicateKeyError:
            existing = self.get_active_for_submission(negotiation.submission_id)
            logger.info(
                f"Rejected second active negotiation for submission {negotiation.submission_id}"
            )
            raise NegotiationInProgress(
                negotiation.submission_id,
                existing.id if existing else None,
            ) from None

    # -------------------------------------------------------------------------
    # Query Operations
    # -------------------------------------------------------------------------

    def get_active_for_submission(
        self, submission_id: str | ObjectId
    ) -> Optional[InterviewNegotiation]:
        """Get the active negotiation of a submission, if any."""
        return self.find_one(
            {"submission_id": self._to_object_id(submission_id), "active": True}
        )

    def get_by_submission(
        self, submission_id: str | ObjectId, limit: int = 50
    ) -> list[InterviewNegotiation]:
        """Get every negotiation of a submission, newest first."""
        return self.find(
            {"submission_id": self._to_object_id(submission_id)},
            limit=limit,
        )

    def find_by_client(
        self,
        client_id: str,
        statuses: Optional[Iterable[NegotiationStatus]] = None,
        limit: int = 500,
    ) -> list[InterviewNegotiation]:
        """Get a client's negotiations, optionally narrowed to some states."""
        query: dict[str, Any] = {"client_id": client_id}
        if statuses is not None:
            query["status"] = {"$in": [s.value for s in statuses]}
        return self.find(query, limit=limit, sort_by="created_at", sort_order=1)

    async def find_by_client_async(
        self,
        client_id: str,
        statuses: Optional[Iterable[NegotiationStatus]] = None,
        limit: int = 500,
    ) -> list[InterviewNegotiation]:
        """Get a client's negotiations asynchronously."""
        query: dict[str, Any] = {"client_id": client_id}
        if statuses is not None:
            query["status"] = {"$in": [s.value for s in statuses]}
        return await self.find_async(query, limit=limit, sort_by="created_at", sort_order=1)


# Singleton instance
_negotiation_repository: Optional[NegotiationRepository] = None


def get_negotiation_repository() -> NegotiationRepository:
    """Get the negotiation repository singleton instance."""
    global _negotiation_repository
    if _negotiation_repository is None:
        _negotiation_repository = NegotiationRepository()
    return _negotiation_repository

"""
Downstream hooks fired by the submission pipeline.

Reaching the offer stage opens a draft offer and reaching hired
records a pending placement. The offer and placement workflows own
those records afterwards; the pipeline only seeds them.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from talenthub.data.database import DatabaseManager, get_database_manager
from talenthub.data.models.submission import Submission
from talenthub.utils.clock import utcnow
from talenthub.utils.logger import get_logger

logger = get_logger(__name__)


class PipelineHooks(ABC):
    """Side effects attached to pipeline stages."""

    @abstractmethod
    def open_offer(self, submission: Submission) -> Any:
        """Create the draft offer for a submission entering the offer stage."""

    @abstractmethod
    def record_placement(self, submission: Submission) -> Any:
        """Create the pending placement for a hired submission."""


class CollectionPipelineHooks(PipelineHooks):
    """Seeds the ``offers`` and ``placements`` collections."""

    def __init__(self, db_manager: Optional[DatabaseManager] = None) -> None:
        self._db_manager = db_manager or get_database_manager()

    def _base_document(self, submission: Submission) -> dict[str, Any]:
        now = utcnow()
        return {
            "submission_id": submission.id,
            "job_id": submission.job_id,
            "candidate_id": submission.candidate_id,
            "client_id": submission.client_id,
            "recruiter_id": submission.recruiter_id,
            "created_at": now,
            "updated_at": now,
        }

    def open_offer(self, submission: Submission) -> Any:
        document = {**self._base_document(submission), "status": "draft"}
        result = self._db_manager.get_sync_collection("offers").insert_one(document)
        logger.info(f"Draft offer {result.inserted_id} opened for submission {submission.id}")
        return result.inserted_id

    def record_placement(self, submission: Submission) -> Any:
        document = {
            **self._base_document(submission),
            "status": "pending",
            "hired_at": submission.stage_entered_at,
        }
        result = self._db_manager.get_sync_collection("placements").insert_one(document)
        logger.info(f"Placement {result.inserted_id} recorded for submission {submission.id}")
        return result.inserted_id

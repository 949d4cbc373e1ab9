"""
Candidate directory for TalentHub.

Candidate records are owned by the candidate-management subsystem.
This module only reads the contact fields the identity veil needs
at disclosure time.
"""

from typing import Any, Optional

from bson import ObjectId

from talenthub.data.database import DatabaseManager, get_database_manager
from talenthub.data.models.submission import CandidateContact
from talenthub.utils.logger import get_logger

logger = get_logger(__name__)

_CONTACT_PROJECTION = {
    "full_name": 1,
    "first_name": 1,
    "last_name": 1,
    "email": 1,
    "phone": 1,
    "contact.email": 1,
    "contact.phone": 1,
}


class CandidateDirectory:
    """Read-only access to candidate contact data."""

    collection_name = "candidates"

    def __init__(self, db_manager: Optional[DatabaseManager] = None) -> None:
        self._db_manager = db_manager or get_database_manager()

    def get_contact(self, candidate_id: str | ObjectId) -> Optional[CandidateContact]:
        """Load the contact details of a candidate, or None if unknown."""
        collection = self._db_manager.get_sync_collection(self.collection_name)
        oid = candidate_id if isinstance(candidate_id, ObjectId) else ObjectId(candidate_id)
        document = collection.find_one({"_id": oid}, _CONTACT_PROJECTION)
        if document is None:
            logger.warning(f"Candidate {candidate_id} not found in directory")
            return None
        return self._to_contact(document)

    @staticmethod
    def _to_contact(document: dict[str, Any]) -> CandidateContact:
        """Accept both flat and nested contact layouts."""
        nested = document.get("contact") or {}
        full_name = document.get("full_name") or " ".join(
            part for part in (document.get("first_name"), document.get("last_name")) if part
        )
        return CandidateContact(
            full_name=full_name or "Unknown",
            email=document.get("email") or nested.get("email") or "",
            phone=document.get("phone") or nested.get("phone"),
        )


# Singleton instance
_candidate_directory: Optional[CandidateDirectory] = None


def get_candidate_directory() -> CandidateDirectory:
    """Get the candidate directory singleton instance."""
    global _candidate_directory
    if _candidate_directory is None:
        _candidate_directory = CandidateDirectory()
    return _candidate_directory

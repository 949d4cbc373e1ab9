"""
Base repository class providing common CRUD operations.

All entity-specific repositories inherit from this base class. State
changes go through ``update_if`` so that concurrent workers never
overwrite a newer state with a stale read.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Generic, Iterable, Optional, TypeVar, Union

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.results import InsertOneResult

from talenthub.data.database import DatabaseManager, get_database_manager
from talenthub.data.models.base import BaseDocument
from talenthub.utils.clock import utcnow
from talenthub.utils.logger import get_logger

logger = get_logger(__name__)

# Type variable for document models
T = TypeVar("T", bound=BaseDocument)

StateSpec = Union[str, Enum, Iterable[Union[str, Enum]]]


def _state_values(expected: StateSpec) -> list[str]:
    """Normalize one or many expected states to their stored values."""
    if isinstance(expected, (str, Enum)):
        expected = [expected]
    return [s.value if isinstance(s, Enum) else s for s in expected]


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository providing common database operations.

    Subclasses must define the collection name and model class, and
    may override ``state_field`` when their state machine is not
    stored under ``status``.
    """

    state_field: str = "status"

    @property
    @abstractmethod
    def collection_name(self) -> str:
        """Name of the MongoDB collection."""
        pass

    @property
    @abstractmethod
    def model_class(self) -> type[T]:
        """Pydantic model class for this repository."""
        pass

    def __init__(self, db_manager: Optional[DatabaseManager] = None) -> None:
        """Initialize repository with database connection."""
        self._db_manager = db_manager or get_database_manager()

    # -------------------------------------------------------------------------
    # Collection Access
    # -------------------------------------------------------------------------

    def _get_sync_collection(self) -> Collection:
        """Get synchronous collection instance."""
        return self._db_manager.get_sync_collection(self.collection_name)

    def _get_async_collection(self) -> AsyncIOMotorCollection:
        """Get asynchronous collection instance."""
        return self._db_manager.get_async_collection(self.collection_name)

    # -------------------------------------------------------------------------
    # Document Conversion
    # -------------------------------------------------------------------------

    def _to_model(self, document: Optional[dict[str, Any]]) -> Optional[T]:
        """Convert MongoDB document to Pydantic model."""
        if document is None:
            return None
        return self.model_class.model_validate(document)

    def _to_models(self, documents: list[dict[str, Any]]) -> list[T]:
        """Convert list of MongoDB documents to Pydantic models."""
        return [self._to_model(doc) for doc in documents if doc is not None]

    def _to_document(self, model: T) -> dict[str, Any]:
        """Convert Pydantic model to MongoDB document."""
        return model.model_dump_mongo()

    @staticmethod
    def _to_object_id(id_value: str | ObjectId) -> ObjectId:
        """Convert string to ObjectId if needed."""
        if isinstance(id_value, ObjectId):
            return id_value
        return ObjectId(id_value)

    # -------------------------------------------------------------------------
    # Reads and Inserts
    # -------------------------------------------------------------------------

    @staticmethod
    def _sorted_page(
        cursor: Any,
        skip: int,
        limit: int,
        sort_by: Optional[str],
        sort_order: int,
    ) -> Any:
        """Apply paging and ordering; newest first unless told otherwise."""
        return cursor.sort(sort_by or "created_at", sort_order).skip(skip).limit(limit)

    def create(self, model: T) -> T:
        """Insert a new document and stamp its id and timestamps onto ``model``."""
        model.created_at = model.updated_at = utcnow()
        result: InsertOneResult = self._get_sync_collection().insert_one(
            self._to_document(model)
        )
        model.id = result.inserted_id
        logger.debug(f"Inserted {self.collection_name}/{result.inserted_id}")
        return model

    def get_by_id(self, id_value: str | ObjectId) -> Optional[T]:
        """Get a document by its ID."""
        return self.find_one({"_id": self._to_object_id(id_value)})

    def find(
        self,
        query: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort_by: Optional[str] = None,
        sort_order: int = -1,
    ) -> list[T]:
        """Find documents matching a query."""
        cursor = self._sorted_page(
            self._get_sync_collection().find(query), skip, limit, sort_by, sort_order
        )
        return self._to_models(list(cursor))

    def find_one(self, query: dict[str, Any]) -> Optional[T]:
        """Find a single document matching a query."""
        return self._to_model(self._get_sync_collection().find_one(query))

    def count(self, query: Optional[dict[str, Any]] = None) -> int:
        """Count documents matching a query."""
        return self._get_sync_collection().count_documents(query or {})

    # -------------------------------------------------------------------------
    # Conditional Updates
    # -------------------------------------------------------------------------

    def update_if(
        self,
        id_value: str | ObjectId,
        expected: StateSpec,
        changes: dict[str, Any],
        extra_filter: Optional[dict[str, Any]] = None,
    ) -> Optional[T]:
        """
        Apply ``changes`` only if the document is currently in ``expected`` state.

        Args:
            id_value: Document ID
            expected: One state or several acceptable states
            changes: Fields to set
            extra_filter: Additional precondition fields

        Returns:
            The updated document, or None if the precondition did not hold
        """
        collection = self._get_sync_collection()
        query: dict[str, Any] = {
            "_id": self._to_object_id(id_value),
            self.state_field: {"$in": _state_values(expected)},
        }
        if extra_filter:
            query.update(extra_filter)

        update = {**changes, "updated_at": utcnow()}
        document = collection.find_one_and_update(
            query,
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
        if document is None:
            logger.debug(
                f"Conditional update on {self.collection_name} {id_value} skipped: "
                f"{self.state_field} not in {_state_values(expected)}"
            )
        return self._to_model(document)

    def transition(
        self,
        id_value: str | ObjectId,
        expected: StateSpec,
        new_state: str | Enum,
        changes: Optional[dict[str, Any]] = None,
    ) -> Optional[T]:
        """Move the document to ``new_state`` if it is still in ``expected``."""
        new_value = new_state.value if isinstance(new_state, Enum) else new_state
        return self.update_if(id_value, expected, {**(changes or {}), self.state_field: new_value})

    # -------------------------------------------------------------------------
    # Asynchronous Reads
    # -------------------------------------------------------------------------

    async def find_async(
        self,
        query: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort_by: Optional[str] = None,
        sort_order: int = -1,
    ) -> list[T]:
        """Find documents matching a query through the Motor client."""
        cursor = self._sorted_page(
            self._get_async_collection().find(query), skip, limit, sort_by, sort_order
        )
        return self._to_models(await cursor.to_list(length=limit))

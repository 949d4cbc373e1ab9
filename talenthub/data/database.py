"""
Database connection manager for TalentHub.

Holds one synchronous (PyMongo) client for request handling and one
asynchronous (Motor) client for the concurrent dashboard reads, and
creates the indexes the negotiation and notification rules rely on.
"""

from typing import Any, Optional, Union

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from talenthub.utils.config import DatabaseSettings, get_settings
from talenthub.utils.logger import get_logger

logger = get_logger(__name__)

IndexSpec = Union[str, list, tuple]

# Collections owned by other subsystems that still need an index here
EXTRA_INDEXES: dict[str, list[IndexSpec]] = {
    "notifications": [[("user_id", ASCENDING), ("created_at", ASCENDING)]],
}


def _index_args(spec: IndexSpec) -> tuple[Any, dict[str, Any]]:
    """
    Split a model index declaration into ``create_index`` arguments.

    Accepts a field name, a list of ``(field, direction)`` pairs, or a
    ``(keys, options)`` tuple.
    """
    if isinstance(spec, tuple) and len(spec) == 2 and isinstance(spec[1], dict):
        return spec[0], spec[1]
    return spec, {}


class DatabaseManager:
    """
    Owns the MongoDB clients for the process.

    A single instance is shared, so every repository reuses the
    same connection pools.
    """

    _instance: Optional["DatabaseManager"] = None
    _sync_client: Optional[MongoClient] = None
    _async_client: Optional[AsyncIOMotorClient] = None

    def __new__(cls) -> "DatabaseManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self._db_settings: DatabaseSettings = get_settings().database
        self._db_name = self._db_settings.name
        self._initialized = True

    def _client_options(self) -> dict[str, Any]:
        s = self._db_settings
        return {
            "serverSelectionTimeoutMS": s.timeout_ms,
            "connectTimeoutMS": s.timeout_ms,
            "maxPoolSize": s.max_pool_size,
            "minPoolSize": s.min_pool_size,
            "tz_aware": False,
        }

    @property
    def display_uri(self) -> str:
        """Connection URI with the password masked."""
        return self._db_settings.uri(redact=True)

    # -------------------------------------------------------------------------
    # Synchronous Client
    # -------------------------------------------------------------------------

    def get_sync_client(self) -> MongoClient:
        """Get or create the synchronous client."""
        if self._sync_client is None:
            logger.info(f"Connecting to MongoDB at {self.display_uri}")
            self._sync_client = MongoClient(self._db_settings.uri(), **self._client_options())
        return self._sync_client

    def get_sync_database(self) -> Database:
        return self.get_sync_client()[self._db_name]

    def get_sync_collection(self, collection_name: str) -> Any:
        """Get a synchronous collection by name."""
        return self.get_sync_database()[collection_name]

    def check_sync_connection(self) -> bool:
        """Ping the server; drops the client so the next call reconnects."""
        try:
            self.get_sync_client().admin.command("ping")
            return True
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(f"MongoDB ping failed: {e}")
            self.close_all()
            return False

    # -------------------------------------------------------------------------
    # Asynchronous Client
    # -------------------------------------------------------------------------

    def get_async_client(self) -> AsyncIOMotorClient:
        """Get or create the asynchronous client."""
        if self._async_client is None:
            logger.info(f"Connecting Motor client to {self.display_uri}")
            self._async_client = AsyncIOMotorClient(
                self._db_settings.uri(), **self._client_options()
            )
        return self._async_client

    def get_async_database(self) -> AsyncIOMotorDatabase:
        return self.get_async_client()[self._db_name]

    def get_async_collection(self, collection_name: str) -> Any:
        """Get an asynchronous collection by name."""
        return self.get_async_database()[collection_name]

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close_all(self) -> None:
        """Close both clients."""
        for attr in ("_sync_client", "_async_client"):
            client = getattr(self, attr)
            if client is not None:
                client.close()
                setattr(self, attr, None)

    # -------------------------------------------------------------------------
    # Index Management
    # -------------------------------------------------------------------------

    def index_plan(self) -> dict[str, list[IndexSpec]]:
        """Indexes per collection, taken from each document model's settings."""
        from talenthub.data.models import (
            InterviewNegotiation,
            NotificationEvent,
            Submission,
        )

        plan = {
            model.Settings.name: list(model.Settings.indexes)
            for model in (Submission, InterviewNegotiation, NotificationEvent)
        }
        plan.update(EXTRA_INDEXES)
        return plan

    async def ensure_indexes(self) -> None:
        """Create every planned index. Safe to run repeatedly."""
        for collection_name, specs in self.index_plan().items():
            collection = self.get_async_collection(collection_name)
            for spec in specs:
                keys, options = _index_args(spec)
                await collection.create_index(keys, **options)
            logger.info(f"Indexes ensured on {collection_name} ({len(specs)})")


# Global database manager instance
_db_manager: Optional[DatabaseManager] = None


def get_database_manager() -> DatabaseManager:
    """Get the global database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager

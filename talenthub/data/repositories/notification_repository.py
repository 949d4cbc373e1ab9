"""
Notification event repository for TalentHub.

The unique index on ``idempotency_key`` turns ``claim`` into an
at-most-once gate for retried transitions.
"""

from typing import Optional

from pymongo.errors import DuplicateKeyError

from talenthub.data.models.notification import NotificationEvent
from talenthub.utils.clock import utcnow
from talenthub.utils.constants import DeliveryState
from talenthub.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class NotificationRepository(BaseRepository[NotificationEvent]):
    """Repository for notification event documents."""

    state_field = "delivery_state"

    @property
    def collection_name(self) -> str:
        return "notification_events"

    @property
    def model_class(self) -> type[NotificationEvent]:
        return NotificationEvent

    def claim(self, event: NotificationEvent) -> bool:
        """
        Record an event unless one with the same idempotency key exists.

        Returns:
            True if this call claimed the key, False if it was already taken
        """
        try:
            self.create(event)
            return True
        except DuplicateKeyError:
            logger.debug(f"Notification {event.idempotency_key} already emitted")
            return False

    def get_by_key(self, idempotency_key: str) -> Optional[NotificationEvent]:
        """Get an event by its idempotency key."""
        return self.find_one({"idempotency_key": idempotency_key})

    def mark_delivered(self, idempotency_key: str) -> None:
        """Flag an event as delivered."""
        self._get_sync_collection().update_one(
            {"idempotency_key": idempotency_key},
            {
                "$set": {
                    "delivery_state": DeliveryState.DELIVERED.value,
                    "delivered_at": utcnow(),
                    "updated_at": utcnow(),
                }
            },
        )

    def mark_failed(self, idempotency_key: str, error: str) -> None:
        """Flag an event as failed and keep the last error."""
        self._get_sync_collection().update_one(
            {"idempotency_key": idempotency_key},
            {
                "$set": {
                    "delivery_state": DeliveryState.FAILED.value,
                    "last_error": error[:500],
                    "updated_at": utcnow(),
                }
            },
        )


# Singleton instance
_notification_repository: Optional[NotificationRepository] = None


def get_notification_repository() -> NotificationRepository:
    """Get the notification repository singleton instance."""
    global _notification_repository
    if _notification_repository is None:
        _notification_repository = NotificationRepository()
    return _notification_repository

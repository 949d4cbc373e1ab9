"""
Notification event models for TalentHub.

Events are fire-and-forget records. The idempotency key makes a
retried transition claim the same event instead of emitting twice.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from talenthub.utils.clock import utcnow
from talenthub.utils.constants import DeliveryState, NotificationType, RecipientRole

from .base import BaseDocument


class NotificationEvent(BaseDocument):
    """A single notification addressed to one party."""

    idempotency_key: str
    recipient_id: Optional[str] = None
    recipient_role: RecipientRole
    notification_type: NotificationType
    payload: dict[str, Any] = Field(default_factory=dict)
    emitted_at: datetime = Field(default_factory=utcnow)

    # Delivery tracking
    delivery_state: DeliveryState = DeliveryState.PENDING
    delivered_at: Optional[datetime] = None
    last_error: Optional[str] = None

    class Settings:
        """MongoDB collection settings."""

        name = "notification_events"
        indexes = [
            ("idempotency_key", {"unique": True}),
            "recipient_id",
            "delivery_state",
            "emitted_at",
        ]

"""
Notification fanout for TalentHub.

Emits best-effort notifications after a state transition has been
committed. Each event is claimed under an idempotency key derived
from the negotiation and the state it moved to, so a retried request
never notifies twice. Delivery runs on a thread pool and every error
is logged here instead of reaching the caller.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

from bson import ObjectId

from talenthub.data.models.negotiation import InterviewNegotiation
from talenthub.data.models.notification import NotificationEvent
from talenthub.data.repositories.notification_repository import NotificationRepository
from talenthub.utils.config import NotificationSettings, get_settings
from talenthub.utils.constants import NotificationType, RecipientRole
from talenthub.utils.logger import LoggerMixin

from .notification_transport import InAppNotificationTransport, NotificationTransport


def transition_key(
    entity_id: Any,
    target_state: str,
    revision: int = 1,
    recipient_role: Optional[RecipientRole] = None,
) -> str:
    """
    Build the idempotency token for a transition notification.

    Args:
        entity_id: Negotiation (or submission) ID
        target_state: State the entity moved to
        revision: Slot revision, so a rescheduled interview can notify again
        recipient_role: Party the event is addressed to

    Returns:
        A stable key such as ``"65f...:scheduled:r1:client"``
    """
    key = f"{entity_id}:{target_state}:r{revision}"
    if recipient_role is not None:
        key = f"{key}:{RecipientRole(recipient_role).value}"
    return key


def _jsonable(value: Any) -> Any:
    """Stringify ObjectIds so payloads stay transport-neutral."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class NotificationFanout(LoggerMixin):
    """
    Best-effort, idempotent notification dispatcher.

    Usage:
        fanout = NotificationFanout()
        fanout.emit_transition(
            negotiation,
            "scheduled",
            {RecipientRole.CLIENT: negotiation.client_id},
            NotificationType.OPT_IN_CONFIRMED,
            payload,
        )
    """

    def __init__(
        self,
        transport: Optional[NotificationTransport] = None,
        repository: Optional[NotificationRepository] = None,
        settings: Optional[NotificationSettings] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self._settings = settings or get_settings().notifications
        self._transport = transport or InAppNotificationTransport()
        self._repository = repository or NotificationRepository()
        self._executor = executor
        if self._executor is None and self._settings.dispatch_mode == "background":
            self._executor = ThreadPoolExecutor(
                max_workers=self._settings.max_workers,
                thread_name_prefix="notify",
            )

    # -------------------------------------------------------------------------
    # Emission
    # -------------------------------------------------------------------------

    def emit(
        self,
        recipient_id: Optional[str],
        recipient_role: RecipientRole,
        notification_type: NotificationType,
        payload: dict[str, Any],
        idempotency_key: str,
    ) -> None:
        """
        Emit one notification. Never raises.

        Args:
            recipient_id: User to notify; unknown recipients are logged and skipped
            recipient_role: Party the recipient plays in the transition
            notification_type: Template key for the transport
            payload: Template data
            idempotency_key: Token deduplicating retried transitions
        """
        if not self._settings.enabled:
            return

        try:
            event = NotificationEvent(
                idempotency_key=idempotency_key,
                recipient_id=str(recipient_id) if recipient_id is not None else None,
                recipient_role=recipient_role,
                notification_type=notification_type,
                payload=_jsonable(payload),
            )
            if not self._repository.claim(event):
                return
        except Exception as e:
            self.logger.error(f"Could not record notification {idempotency_key}: {e}")
            return

        if self._executor is None:
            self._deliver(event)
            return

        try:
            self._executor.submit(self._deliver, event)
        except RuntimeError as e:
            # Executor already shut down
            self.logger.error(f"Could not dispatch notification {idempotency_key}: {e}")

    def emit_transition(
        self,
        negotiation: InterviewNegotiation,
        target_state: str,
        recipients: dict[RecipientRole, Optional[str]],
        notification_type: NotificationType,
        payload: dict[str, Any],
    ) -> None:
        """Emit one event per party for a negotiation transition."""
        for role, recipient_id in recipients.items():
            self.emit(
                recipient_id,
                role,
                notification_type,
                payload,
                transition_key(negotiation.id, target_state, negotiation.revision, role),
            )

    # -------------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------------

    def _deliver(self, event: NotificationEvent) -> None:
        """Send through the transport and record the outcome."""
        key = event.idempotency_key
        try:
            delivered = self._transport.send(
                event.recipient_id,
                event.notification_type,
                event.payload,
                self._settings.timeout_seconds,
            )
        except Exception as e:
            self.logger.warning(f"Notification {key} failed: {e}")
            self._record(key, error=str(e) or e.__class__.__name__)
            return

        if delivered:
            self._record(key)
        else:
            self._record(key, error="recipient not found")

    def _record(self, key: str, error: Optional[str] = None) -> None:
        try:
            if error is None:
                self._repository.mark_delivered(key)
            else:
                self._repository.mark_failed(key, error)
        except Exception as e:
            self.logger.error(f"Could not update delivery state of {key}: {e}")

    def shutdown(self, wait: bool = True) -> None:
        """Stop the dispatch pool, optionally waiting for queued deliveries."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)


# Singleton instance
_notification_fanout: Optional[NotificationFanout] = None


def get_notification_fanout() -> NotificationFanout:
    """Get the notification fanout singleton instance."""
    global _notification_fanout
    if _notification_fanout is None:
        _notification_fanout = NotificationFanout()
    return _notification_fanout

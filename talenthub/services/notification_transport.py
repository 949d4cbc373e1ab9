"""
Notification transports for TalentHub.

A transport delivers one rendered notification to one recipient.
The default transport writes in-app notifications into MongoDB; other
channels (email, chat) plug in by subclassing ``NotificationTransport``.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import pymongo
from pymongo.errors import PyMongoError

from talenthub.core.exceptions import NotificationFailure
from talenthub.data.database import DatabaseManager, get_database_manager
from talenthub.utils.clock import utcnow
from talenthub.utils.constants import NotificationType
from talenthub.utils.logger import get_logger

logger = get_logger(__name__)


NOTIFICATION_TITLES: dict[str, str] = {
    NotificationType.INTERVIEW_REQUESTED.value: "Interview request from client",
    NotificationType.OPT_IN_CONFIRMED.value: "Candidate agreed to interview",
    NotificationType.INTERVIEW_CONFIRMED.value: "Interview confirmed",
    NotificationType.INTERVIEW_DECLINED.value: "Interview declined",
    NotificationType.INTERVIEW_CANCELLED.value: "Interview cancelled",
    NotificationType.INTERVIEW_NO_SHOW.value: "Interview no-show reported",
    NotificationType.RESCHEDULING_NEEDED.value: "Interview needs a new date",
    NotificationType.NEW_SLOTS_PROPOSED.value: "New interview slots proposed",
    NotificationType.INTERVIEW_COMPLETED.value: "Interview completed",
    NotificationType.CANDIDATE_MOVED.value: "Candidate moved",
    NotificationType.CANDIDATE_REJECTED.value: "Candidate rejected",
}


def render_message(template_key: str, data: dict[str, Any]) -> str:
    """Render a short in-app message from the template key and payload."""
    label = data.get("candidate_label") or "A candidate"
    job = data.get("job_title") or "the position"
    messages = {
        NotificationType.INTERVIEW_REQUESTED.value: f"A client wants to interview {label} for {job}.",
        NotificationType.OPT_IN_CONFIRMED.value: f"The candidate agreed to interview for {job}.",
        NotificationType.INTERVIEW_CONFIRMED.value: f"The interview for {job} is confirmed.",
        NotificationType.INTERVIEW_DECLINED.value: f"{label} declined the interview for {job}.",
        NotificationType.INTERVIEW_CANCELLED.value: f"The interview for {job} was cancelled.",
        NotificationType.INTERVIEW_NO_SHOW.value: f"A no-show was reported for the interview for {job}.",
        NotificationType.RESCHEDULING_NEEDED.value: f"The interview for {job} needs a new date.",
        NotificationType.NEW_SLOTS_PROPOSED.value: f"New interview slots were proposed for {job}.",
        NotificationType.INTERVIEW_COMPLETED.value: f"The interview for {job} took place.",
        NotificationType.CANDIDATE_MOVED.value: f"{label} was moved to {data.get('new_stage', 'a new stage')} for {job}.",
        NotificationType.CANDIDATE_REJECTED.value: f"{label} was not selected for {job}.",
    }
    return messages.get(template_key, NOTIFICATION_TITLES.get(template_key, template_key))


class NotificationTransport(ABC):
    """Delivery channel contract."""

    @abstractmethod
    def send(
        self,
        recipient_id: Optional[str],
        template_key: str,
        data: dict[str, Any],
        timeout: float,
    ) -> bool:
        """
        Deliver a notification.

        Returns:
            False if the recipient is unknown and delivery was skipped

        Raises:
            NotificationFailure: If the channel failed
        """


class InAppNotificationTransport(NotificationTransport):
    """Writes notifications into the ``notifications`` collection read by the app."""

    collection_name = "notifications"

    def __init__(self, db_manager: Optional[DatabaseManager] = None) -> None:
        self._db_manager = db_manager or get_database_manager()

    def send(
        self,
        recipient_id: Optional[str],
        template_key: str,
        data: dict[str, Any],
        timeout: float,
    ) -> bool:
        if not recipient_id:
            logger.warning(f"No recipient for '{template_key}' notification, skipping")
            return False

        document = {
            "user_id": recipient_id,
            "type": template_key,
            "title": NOTIFICATION_TITLES.get(template_key, template_key),
            "message": render_message(template_key, data),
            "metadata": data,
            "read": False,
            "created_at": utcnow(),
        }
        try:
            with pymongo.timeout(timeout):
                self._db_manager.get_sync_collection(self.collection_name).insert_one(document)
        except PyMongoError as e:
            raise NotificationFailure(f"In-app notification to {recipient_id} failed: {e}") from e
        return True

"""
Business services for TalentHub.

This module contains the outward-facing collaborators the core
components call after committing a state change: notification
delivery and pipeline stage hooks.
"""

from talenthub.services.notification_fanout import (
    NotificationFanout,
    get_notification_fanout,
    transition_key,
)
from talenthub.services.notification_transport import (
    InAppNotificationTransport,
    NotificationTransport,
)
from talenthub.services.pipeline_hooks import CollectionPipelineHooks, PipelineHooks

__all__ = [
    "NotificationFanout",
    "get_notification_fanout",
    "transition_key",
    "InAppNotificationTransport",
    "NotificationTransport",
    "CollectionPipelineHooks",
    "PipelineHooks",
]

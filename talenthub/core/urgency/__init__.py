"""Action queue urgency and health scoring module."""

from .action_queue import ActionQueueService, get_action_queue_service
from .urgency_engine import UrgencyEngine, waiting_hours

__all__ = [
    "ActionQueueService",
    "get_action_queue_service",
    "UrgencyEngine",
    "waiting_hours",
]

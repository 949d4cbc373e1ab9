"""Interview negotiation state machine module."""

from .negotiation_service import (
    InterviewNegotiationService,
    get_negotiation_service,
    normalize_slot,
    validate_slots,
)

__all__ = [
    "InterviewNegotiationService",
    "get_negotiation_service",
    "normalize_slot",
    "validate_slots",
]

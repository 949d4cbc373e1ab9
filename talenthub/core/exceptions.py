"""
Domain exceptions for TalentHub.

Every failure a caller has to react to has its own type so the
calling layer can branch on the class instead of the message.
"""

from typing import Any, Optional


class TalentHubError(Exception):
    """Base class for all TalentHub domain errors."""


class NotFound(TalentHubError):
    """A submission, negotiation or candidate does not exist."""

    def __init__(self, entity: str, entity_id: Any) -> None:
        self.entity = entity
        self.entity_id = str(entity_id)
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidTransition(TalentHubError):
    """The current state does not allow the requested move."""

    def __init__(
        self,
        entity: str,
        current_state: Optional[str],
        action: str,
        detail: Optional[str] = None,
    ) -> None:
        self.entity = entity
        self.current_state = current_state
        self.action = action
        message = f"Cannot {action} {entity} in state '{current_state}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ConsentRequired(TalentHubError):
    """Disclosure was attempted before the candidate opted in."""

    def __init__(self, negotiation_id: Any) -> None:
        self.negotiation_id = str(negotiation_id)
        super().__init__(f"Candidate consent required for negotiation {negotiation_id}")


class NegotiationInProgress(TalentHubError):
    """A submission already owns an active negotiation."""

    def __init__(self, submission_id: Any, negotiation_id: Any = None) -> None:
        self.submission_id = str(submission_id)
        self.negotiation_id = str(negotiation_id) if negotiation_id is not None else None
        super().__init__(f"Submission {submission_id} already has an active interview negotiation")


class SlotInvalid(TalentHubError):
    """A proposed or selected slot set is empty, duplicated, past or unknown."""


class AuthorizationDenied(TalentHubError):
    """Raised by the session collaborator; passed through untouched."""


class NotificationFailure(TalentHubError):
    """A notification could not be delivered. Never escapes the fanout."""

"""Exceptions raised by the approval engine."""

from typing import Optional


class ApprovalError(Exception):
    """Base class for approval engine errors."""


class ConfigurationError(ApprovalError):
    """Raised when the templates of a topic cannot produce a chain."""

    def __init__(self, message: str, topic: Optional[str] = None):
        super().__init__(message)
        self.topic = topic


class AuthorizationError(ApprovalError):
    """Raised when someone other than the assignee acts on a step."""

    def __init__(self, actor: str, assignee: str, action: str):
        super().__init__(f"User {actor} is not authorized to {action} at this level")
        self.actor = actor
        self.assignee = assignee
        self.action = action


class ValidationError(ApprovalError):
    """Raised on malformed input: empty rejection reason, bad context."""


class ConflictError(ApprovalError):
    """Raised when a step is no longer in a status that allows the action."""

    def __init__(self, message: str, current_status: Optional[str] = None):
        super().__init__(message)
        self.current_status = current_status


class StepNotFoundError(ApprovalError, LookupError):
    """Raised when a step id does not exist."""

    def __init__(self, step_id):
        super().__init__(f"Chain step {step_id} not found")
        self.step_id = step_id

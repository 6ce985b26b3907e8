"""Approval workflow module for the back-office platform.

Builds linear approval chains from templates and drives their steps
through approval, rejection and cascade cancellation.
"""

from .states import StepStatus, StepAction, TERMINAL_STATUSES
from .errors import (
    ApprovalError,
    ConfigurationError,
    AuthorizationError,
    ValidationError,
    ConflictError,
    StepNotFoundError,
)
from .registry import (
    TemplateStore,
    SqlTemplateStore,
    InMemoryTemplateStore,
    HierarchyRegistry,
    context_matches,
)
from .builder import ChainBuilder
from .navigator import ChainNavigator
from .events import TransitionEvent, EventSink, LoggingEventSink, CallbackEventSink
from .identity import IdentityResolver, MappingIdentityResolver
from .resolver import StateResolver, overall_status, is_complete, can_advance
from .queries import QueryService
from .service import ApprovalService

__all__ = [
    "StepStatus",
    "StepAction",
    "TERMINAL_STATUSES",
    "ApprovalError",
    "ConfigurationError",
    "AuthorizationError",
    "ValidationError",
    "ConflictError",
    "StepNotFoundError",
    "TemplateStore",
    "SqlTemplateStore",
    "InMemoryTemplateStore",
    "HierarchyRegistry",
    "context_matches",
    "ChainBuilder",
    "ChainNavigator",
    "TransitionEvent",
    "EventSink",
    "LoggingEventSink",
    "CallbackEventSink",
    "IdentityResolver",
    "MappingIdentityResolver",
    "StateResolver",
    "overall_status",
    "is_complete",
    "can_advance",
    "QueryService",
    "ApprovalService",
]

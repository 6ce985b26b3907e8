"""Approval step statuses and transitions.

Step Lifecycle:

    ┌───────────┐
    │ INITIATED │  (initiator step only, never transitions)
    └───────────┘

    ┌──────────┐  approve   ┌──────────┐
    │ PENDING  │───────────►│ APPROVED │
    └────┬─────┘            └────┬─────┘
         │ reject                │ upstream reject
    ┌────▼─────┐            ┌────▼──────┐
    │ REJECTED │            │ CANCELLED │◄── pending, upstream reject
    └──────────┘            └───────────┘

REJECTED and CANCELLED are terminal. A rejection cancels every step
downstream of the rejected one, whatever its status.
"""

from enum import Enum
from typing import Dict, NamedTuple, Optional, Set, Tuple


INITIATOR_ROLE = "initiator"
APPROVER_ROLE_PREFIX = "approver@"


class StepStatus(str, Enum):
    """Statuses a chain step can be in."""

    INITIATED = "initiated"   # Initiator step
    PENDING = "pending"       # Awaiting the assigned approver
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"   # Upstream step was rejected


class StepAction(str, Enum):
    """Actions that trigger step transitions."""

    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"         # System-triggered by an upstream rejection


class TransitionRule(NamedTuple):
    """Defines a valid step transition."""
    from_status: StepStatus
    to_status: StepStatus
    action: StepAction
    requires_reason: bool = False


TRANSITION_RULES: list[TransitionRule] = [
    TransitionRule(StepStatus.PENDING, StepStatus.APPROVED, StepAction.APPROVE),
    TransitionRule(StepStatus.PENDING, StepStatus.REJECTED, StepAction.REJECT,
                   requires_reason=True),
    TransitionRule(StepStatus.PENDING, StepStatus.CANCELLED, StepAction.CANCEL),
    TransitionRule(StepStatus.APPROVED, StepStatus.CANCELLED, StepAction.CANCEL),
]

TRANSITION_TARGETS: Dict[Tuple[StepStatus, StepAction], TransitionRule] = {
    (rule.from_status, rule.action): rule for rule in TRANSITION_RULES
}

TERMINAL_STATUSES: Set[StepStatus] = {
    StepStatus.REJECTED,
    StepStatus.CANCELLED,
}


def approver_role(level: int) -> str:
    return f"{APPROVER_ROLE_PREFIX}{level}"


def is_approver_role(role: str) -> bool:
    return role.startswith(APPROVER_ROLE_PREFIX)


def can_transition(from_status: StepStatus, action: StepAction) -> bool:
    """Check if an action is valid from the given status."""
    return (StepStatus(from_status), action) in TRANSITION_TARGETS


def get_transition_rule(from_status: StepStatus, action: StepAction) -> Optional[TransitionRule]:
    """Get the transition rule for a status/action combination."""
    return TRANSITION_TARGETS.get((StepStatus(from_status), action))


def get_target_status(from_status: StepStatus, action: StepAction) -> Optional[StepStatus]:
    """Get the target status for an action."""
    rule = get_transition_rule(from_status, action)
    return rule.to_status if rule else None

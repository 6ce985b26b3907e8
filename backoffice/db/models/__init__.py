"""Database models for the back-office platform."""

from backoffice.db.models.approval import (
    ApprovalTemplate,
    ApprovalChain,
    ChainStep,
    ChainLink,
    StepTransition,
)

__all__ = [
    "ApprovalTemplate",
    "ApprovalChain",
    "ChainStep",
    "ChainLink",
    "StepTransition",
]

"""Read-only queries across approval chains."""

from typing import List, Set

from sqlalchemy import and_
from sqlalchemy.orm import Session

from backoffice.db.models import ChainStep, StepTransition

from .registry import HierarchyRegistry
from .states import APPROVER_ROLE_PREFIX, StepStatus


class QueryService:
    """Dashboards and listings; never mutates anything."""

    def __init__(self, db: Session, registry: HierarchyRegistry):
        self.db = db
        self.registry = registry

    def pending_for(self, user: str) -> List[ChainStep]:
        """Approver steps assigned to ``user`` that still await a decision, oldest first."""
        return self.db.query(ChainStep).filter(
            and_(
                ChainStep.assignee_id == user,
                ChainStep.role.like(f"{APPROVER_ROLE_PREFIX}%"),
                ChainStep.status == StepStatus.PENDING.value,
            )
        ).order_by(ChainStep.created_at.asc(), ChainStep.position.asc()).all()

    def history_for(self, topic: str) -> List[ChainStep]:
        """Steps of ``topic`` that someone acted on, newest first."""
        return self.db.query(ChainStep).filter(
            and_(
                ChainStep.topic == topic,
                ChainStep.acted_at.isnot(None),
            )
        ).order_by(ChainStep.acted_at.desc(), ChainStep.position.desc()).all()

    def approvers_at(self, topic: str, level: int) -> Set[str]:
        """Distinct approvers configured at ``(topic, level)``."""
        return self.registry.approvers_at(topic, level)

    def transitions_for(self, step: ChainStep) -> List[StepTransition]:
        """Audit trail of one step, oldest first."""
        return self.db.query(StepTransition).filter(
            StepTransition.step_id == step.id
        ).order_by(StepTransition.created_at.asc()).all()

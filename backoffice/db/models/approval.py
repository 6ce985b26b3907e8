"""Approval workflow database models.

Stores approval templates, the chains instantiated from them and the
step transition history.
"""

import uuid
from sqlalchemy import (
    Column, String, DateTime, JSON, ForeignKey, Text, Integer, Boolean, Index, Uuid,
)
from sqlalchemy.orm import relationship

from backoffice.db.base import Base, utcnow


class ApprovalTemplate(Base):
    """
    Static approval configuration.

    Each active template contributes one approver level to the chains built
    for its topic, provided its context filter matches the document.
    """
    __tablename__ = "approval_templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    topic = Column(String(100), nullable=False)
    level = Column(Integer, nullable=False)
    approver_id = Column(String(64), nullable=False, index=True)

    # e.g. {"dept": "sales", "brand_id": 1}; empty matches any context
    context_filter = Column(JSON, nullable=True, default=dict)
    # e.g. {"discount_max": 5000}
    authority = Column(JSON, nullable=True, default=dict)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_approval_templates_topic_level", "topic", "level"),
    )

    def __repr__(self) -> str:
        return f"<ApprovalTemplate {self.topic}@{self.level} -> {self.approver_id}>"


class ApprovalChain(Base):
    """One approval chain, created for a single document."""
    __tablename__ = "approval_chains"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    topic = Column(String(100), nullable=False, index=True)
    initiator_id = Column(String(64), nullable=False)
    context = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=utcnow, index=True)

    steps = relationship("ChainStep", back_populates="chain", order_by="ChainStep.position")
    links = relationship("ChainLink", back_populates="chain")

    def __repr__(self) -> str:
        return f"<ApprovalChain {self.topic} by {self.initiator_id}>"


class ChainStep(Base):
    """
    A node in an approval chain: the initiator or one approver level.

    Only status and audit columns change after the chain is built.
    """
    __tablename__ = "chain_steps"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chain_id = Column(Uuid, ForeignKey("approval_chains.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    assignee_id = Column(String(64), nullable=False, index=True)
    role = Column(String(50), nullable=False)  # initiator | approver@<level>
    level = Column(Integer, nullable=True)
    topic = Column(String(100), nullable=False, index=True)
    context_snapshot = Column(JSON, nullable=False, default=dict)

    status = Column(String(20), nullable=False, default="pending", index=True)

    # Audit
    acted_by = Column(String(64), nullable=True)
    acted_at = Column(DateTime, nullable=True, index=True)
    note = Column(Text, nullable=True)
    reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    chain = relationship("ApprovalChain", back_populates="steps")
    outgoing_link = relationship(
        "ChainLink", foreign_keys="ChainLink.from_step_id", uselist=False, back_populates="from_step",
    )
    incoming_link = relationship(
        "ChainLink", foreign_keys="ChainLink.to_step_id", uselist=False, back_populates="to_step",
    )
    transitions = relationship("StepTransition", back_populates="step", order_by="StepTransition.created_at")

    @property
    def is_initiator(self) -> bool:
        return self.role == "initiator"

    def __repr__(self) -> str:
        return f"<ChainStep {self.role} {self.assignee_id} [{self.status}]>"


class ChainLink(Base):
    """
    Directed edge between consecutive steps.

    Carries the authority granted at the target level, copied from the
    template when the chain was built.
    """
    __tablename__ = "chain_links"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chain_id = Column(Uuid, ForeignKey("approval_chains.id", ondelete="CASCADE"), nullable=False, index=True)
    # Unique on both ends: a step has at most one successor and one predecessor
    from_step_id = Column(Uuid, ForeignKey("chain_steps.id", ondelete="CASCADE"), nullable=False, unique=True)
    to_step_id = Column(Uuid, ForeignKey("chain_steps.id", ondelete="CASCADE"), nullable=False, unique=True)
    level = Column(Integer, nullable=False)
    authority_snapshot = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=utcnow)

    chain = relationship("ApprovalChain", back_populates="links")
    from_step = relationship("ChainStep", foreign_keys=[from_step_id], back_populates="outgoing_link")
    to_step = relationship("ChainStep", foreign_keys=[to_step_id], back_populates="incoming_link")

    def __repr__(self) -> str:
        return f"<ChainLink level {self.level}>"


class StepTransition(Base):
    """
    Records all status changes of chain steps.

    Provides a complete audit trail of the approval workflow.
    """
    __tablename__ = "step_transitions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    step_id = Column(Uuid, ForeignKey("chain_steps.id", ondelete="CASCADE"), nullable=False, index=True)

    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    actor_id = Column(String(64), nullable=True)

    # Approval note or rejection reason
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)

    step = relationship("ChainStep", back_populates="transitions")

    def __repr__(self) -> str:
        return f"<StepTransition {self.from_status} -> {self.to_status}>"

"""Add approval templates, chains and transition history

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Tables added:
- approval_templates: Per-topic approver levels with context filters
- approval_chains: One row per document sent for approval
- chain_steps: Initiator and approver steps of each chain
- chain_links: Directed edges between consecutive steps
- step_transitions: Status change audit trail
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create approval workflow tables."""

    # --- approval_templates ---
    op.create_table(
        "approval_templates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("topic", sa.String(100), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("approver_id", sa.String(64), nullable=False),
        sa.Column("context_filter", sa.JSON(), nullable=True),
        sa.Column("authority", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.current_timestamp()),
        sa.PrimaryKeyConstraint("id", name="pk_approval_templates"),
    )
    op.create_index("ix_approval_templates_topic_level", "approval_templates", ["topic", "level"])
    op.create_index("ix_approval_templates_approver_id", "approval_templates", ["approver_id"])

    # --- approval_chains ---
    op.create_table(
        "approval_chains",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("topic", sa.String(100), nullable=False),
        sa.Column("initiator_id", sa.String(64), nullable=False),
        sa.Column("context", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.current_timestamp()),
        sa.PrimaryKeyConstraint("id", name="pk_approval_chains"),
    )
    op.create_index("ix_approval_chains_topic", "approval_chains", ["topic"])
    op.create_index("ix_approval_chains_created_at", "approval_chains", ["created_at"])

    # --- chain_steps ---
    op.create_table(
        "chain_steps",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("chain_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("assignee_id", sa.String(64), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("level", sa.Integer(), nullable=True),
        sa.Column("topic", sa.String(100), nullable=False),
        sa.Column("context_snapshot", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("acted_by", sa.String(64), nullable=True),
        sa.Column("acted_at", sa.DateTime(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.current_timestamp()),
        sa.PrimaryKeyConstraint("id", name="pk_chain_steps"),
        sa.ForeignKeyConstraint(["chain_id"], ["approval_chains.id"], name="fk_chain_steps_chain_id", ondelete="CASCADE"),
    )
    op.create_index("ix_chain_steps_chain_id", "chain_steps", ["chain_id"])
    op.create_index("ix_chain_steps_assignee_id", "chain_steps", ["assignee_id"])
    op.create_index("ix_chain_steps_topic", "chain_steps", ["topic"])
    op.create_index("ix_chain_steps_status", "chain_steps", ["status"])
    op.create_index("ix_chain_steps_acted_at", "chain_steps", ["acted_at"])

    # --- chain_links ---
    op.create_table(
        "chain_links",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("chain_id", sa.Uuid(), nullable=False),
        sa.Column("from_step_id", sa.Uuid(), nullable=False),
        sa.Column("to_step_id", sa.Uuid(), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("authority_snapshot", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.current_timestamp()),
        sa.PrimaryKeyConstraint("id", name="pk_chain_links"),
        sa.ForeignKeyConstraint(["chain_id"], ["approval_chains.id"], name="fk_chain_links_chain_id", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["from_step_id"], ["chain_steps.id"], name="fk_chain_links_from_step_id", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["to_step_id"], ["chain_steps.id"], name="fk_chain_links_to_step_id", ondelete="CASCADE"),
        sa.UniqueConstraint("from_step_id", name="uq_chain_links_from_step_id"),
        sa.UniqueConstraint("to_step_id", name="uq_chain_links_to_step_id"),
    )
    op.create_index("ix_chain_links_chain_id", "chain_links", ["chain_id"])

    # --- step_transitions ---
    op.create_table(
        "step_transitions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("step_id", sa.Uuid(), nullable=False),
        sa.Column("from_status", sa.String(20), nullable=False),
        sa.Column("to_status", sa.String(20), nullable=False),
        sa.Column("actor_id", sa.String(64), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.current_timestamp()),
        sa.PrimaryKeyConstraint("id", name="pk_step_transitions"),
        sa.ForeignKeyConstraint(["step_id"], ["chain_steps.id"], name="fk_step_transitions_step_id", ondelete="CASCADE"),
    )
    op.create_index("ix_step_transitions_step_id", "step_transitions", ["step_id"])
    op.create_index("ix_step_transitions_created_at", "step_transitions", ["created_at"])


def downgrade() -> None:
    """Drop approval workflow tables."""
    op.drop_table("step_transitions")
    op.drop_table("chain_links")
    op.drop_table("chain_steps")
    op.drop_table("approval_chains")
    op.drop_table("approval_templates")

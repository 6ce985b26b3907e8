"""Approval chain construction.

A chain is built once per document from the active templates of its
topic: an initiator step followed by one pending approver step per
matching template, linked in ascending level order. Levels whose filter
does not match the document's context are left out of the chain.
"""

import copy
import uuid
from collections import Counter
from typing import Any, List, Mapping

from sqlalchemy.orm import Session

from backoffice.core.logging import get_logger
from backoffice.db.models import ApprovalChain, ApprovalTemplate, ChainLink, ChainStep

from .errors import ConfigurationError, ValidationError
from .registry import HierarchyRegistry
from .states import INITIATOR_ROLE, StepStatus, approver_role

logger = get_logger(__name__)

SCALAR_TYPES = (str, int, float, bool, type(None))


def validate_context(context: Any) -> None:
    """Reject contexts that are not a flat mapping of names to scalars."""
    if not isinstance(context, Mapping):
        raise ValidationError(f"Context must be a mapping, got {type(context).__name__}")
    for key, value in context.items():
        if not isinstance(key, str) or not key:
            raise ValidationError(f"Context keys must be non-empty strings, got {key!r}")
        if not isinstance(value, SCALAR_TYPES):
            raise ValidationError(
                f"Context value for {key!r} must be a scalar, got {type(value).__name__}"
            )


class ChainBuilder:
    """Instantiates approval chains from the template registry."""

    def __init__(
        self,
        db: Session,
        registry: HierarchyRegistry,
        *,
        strict_level_matching: bool = False,
    ):
        """
        Initialize the builder.

        Args:
            db: Database session the chain is written to
            registry: Source of approval templates
            strict_level_matching: Raise when several templates match the
                same context at one level instead of chaining all of them
        """
        self.db = db
        self.registry = registry
        self.strict_level_matching = strict_level_matching

    def build(self, topic: str, context: Mapping[str, Any], initiator: str) -> ChainStep:
        """
        Build the approval chain for one document.

        Args:
            topic: Document type (e.g. "expense", "booking")
            context: Document attributes the template filters are tested against
            initiator: Identity of the user starting the approval

        Returns:
            The root (initiator) step of the new chain

        Raises:
            ValidationError: If topic, initiator or context is malformed
            ConfigurationError: If the topic has no active template, or
                (strict mode) two templates match at the same level
        """
        if not topic or not topic.strip():
            raise ValidationError("Topic is required")
        if not initiator:
            raise ValidationError("Initiator is required")
        validate_context(context)

        if not self.registry.has_templates(topic):
            raise ConfigurationError(f"No approval hierarchy found for topic: {topic}", topic)

        matched = self.registry.matching_templates(topic, context)
        self._check_ambiguous_levels(topic, matched)

        snapshot = dict(context)

        with self.db.begin_nested():
            chain = ApprovalChain(
                id=uuid.uuid4(),
                topic=topic,
                initiator_id=initiator,
                context=snapshot,
            )
            root = ChainStep(
                id=uuid.uuid4(),
                chain_id=chain.id,
                position=0,
                assignee_id=initiator,
                role=INITIATOR_ROLE,
                level=None,
                topic=topic,
                context_snapshot=dict(snapshot),
                status=StepStatus.INITIATED.value,
            )
            self.db.add(chain)
            self.db.add(root)

            previous = root
            for position, template in enumerate(matched, start=1):
                step = self._approver_step(chain, template, position, snapshot)
                link = self._link(chain, previous, step, template)
                self.db.add_all([step, link])
                previous = step

            self.db.flush()

        logger.info(
            "Built %s approval chain %s for %s with %d approver step(s)",
            topic, chain.id, initiator, len(matched),
        )
        return root

    def _approver_step(
        self,
        chain: ApprovalChain,
        template: ApprovalTemplate,
        position: int,
        snapshot: Mapping[str, Any],
    ) -> ChainStep:
        return ChainStep(
            id=uuid.uuid4(),
            chain_id=chain.id,
            position=position,
            assignee_id=template.approver_id,
            role=approver_role(template.level),
            level=template.level,
            topic=chain.topic,
            context_snapshot=dict(snapshot),
            status=StepStatus.PENDING.value,
        )

    def _link(
        self,
        chain: ApprovalChain,
        previous: ChainStep,
        step: ChainStep,
        template: ApprovalTemplate,
    ) -> ChainLink:
        # Later template edits must not reach in-flight chains
        return ChainLink(
            id=uuid.uuid4(),
            chain_id=chain.id,
            from_step_id=previous.id,
            to_step_id=step.id,
            level=template.level,
            authority_snapshot=copy.deepcopy(template.authority or {}),
        )

    def _check_ambiguous_levels(self, topic: str, matched: List[ApprovalTemplate]) -> None:
        counts = Counter(t.level for t in matched)
        ambiguous = sorted(level for level, n in counts.items() if n > 1)
        if not ambiguous:
            return

        if self.strict_level_matching:
            raise ConfigurationError(
                f"Several templates of topic {topic} match the context at level(s) {ambiguous}",
                topic,
            )
        logger.warning(
            "Several templates of topic %s match the context at level(s) %s; chaining all of them",
            topic, ambiguous,
        )

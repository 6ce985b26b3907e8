"""Read-only access to approval templates.

The engine never talks to the template table directly: it goes through a
``TemplateStore`` so chains can be built against in-memory fixtures as well
as the database.
"""

from typing import Any, Iterable, List, Mapping, Optional, Protocol, Set

from sqlalchemy import and_
from sqlalchemy.orm import Session

from backoffice.db.models import ApprovalTemplate


class TemplateStore(Protocol):
    """Source of active approval templates."""

    def active_templates(self, topic: str) -> List[ApprovalTemplate]:
        """Active templates of ``topic`` ordered by level, then id."""
        ...

    def active_templates_at(self, topic: str, level: int) -> List[ApprovalTemplate]:
        """Active templates of ``topic`` at a single level."""
        ...


class SqlTemplateStore:
    """Template store backed by the ``approval_templates`` table."""

    def __init__(self, db: Session):
        self.db = db

    def active_templates(self, topic: str) -> List[ApprovalTemplate]:
        return self.db.query(ApprovalTemplate).filter(
            and_(
                ApprovalTemplate.topic == topic,
                ApprovalTemplate.is_active.is_(True),
            )
        ).order_by(ApprovalTemplate.level.asc(), ApprovalTemplate.id.asc()).all()

    def active_templates_at(self, topic: str, level: int) -> List[ApprovalTemplate]:
        return self.db.query(ApprovalTemplate).filter(
            and_(
                ApprovalTemplate.topic == topic,
                ApprovalTemplate.level == level,
                ApprovalTemplate.is_active.is_(True),
            )
        ).order_by(ApprovalTemplate.id.asc()).all()


class InMemoryTemplateStore:
    """Template store over a fixed list of (possibly unsaved) templates."""

    def __init__(self, templates: Iterable[ApprovalTemplate] = ()):
        # Insertion order stands in for the id when templates are transient
        self._templates = list(templates)

    def active_templates(self, topic: str) -> List[ApprovalTemplate]:
        matching = [t for t in self._templates if t.topic == topic and t.is_active]
        return sorted(matching, key=lambda t: t.level)

    def active_templates_at(self, topic: str, level: int) -> List[ApprovalTemplate]:
        return [t for t in self.active_templates(topic) if t.level == level]


def context_matches(context: Mapping[str, Any], context_filter: Optional[Mapping[str, Any]]) -> bool:
    """Check whether a document context satisfies a template's filter.

    Every key the filter declares must be present in the context with an
    equal value. Extra context keys are ignored, and an empty or missing
    filter matches any context.
    """
    if not context_filter:
        return True

    for key, value in context_filter.items():
        if key not in context or context[key] != value:
            return False

    return True


class HierarchyRegistry:
    """Queries over the static approval configuration."""

    def __init__(self, store: TemplateStore):
        self.store = store

    def templates_for(self, topic: str) -> List[ApprovalTemplate]:
        """All active templates of a topic in execution order."""
        return self.store.active_templates(topic)

    def has_templates(self, topic: str) -> bool:
        return bool(self.store.active_templates(topic))

    def matching_templates(self, topic: str, context: Mapping[str, Any]) -> List[ApprovalTemplate]:
        """Active templates whose filter matches ``context``, in execution order."""
        return [
            t for t in self.store.active_templates(topic)
            if context_matches(context, t.context_filter)
        ]

    def approvers_at(self, topic: str, level: int) -> Set[str]:
        """Distinct approvers configured at ``(topic, level)``."""
        return {t.approver_id for t in self.store.active_templates_at(topic, level)}

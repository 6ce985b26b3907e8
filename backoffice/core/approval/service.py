"""Approval service for managing document approval workflows.

Provides the high-level API used by the HTTP layer: it wires the chain
builder, navigator, resolver and queries to one database session and
works with step ids instead of loaded rows. It never commits; the caller
owns the transaction.
"""

from typing import Any, Dict, List, Mapping, Optional, Set, Union
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice.core.config import Settings, get_settings
from backoffice.db.models import ChainStep

from .builder import ChainBuilder
from .errors import StepNotFoundError, ValidationError
from .events import EventSink
from .identity import IdentityResolver
from .navigator import ChainNavigator
from .queries import QueryService
from .registry import HierarchyRegistry, SqlTemplateStore, TemplateStore
from .resolver import StateResolver, is_complete, overall_status


class ApprovalService:
    """
    High-level service for managing approval chains.

    Handles:
    - Starting a chain for a document
    - Approving and rejecting steps by id
    - Chain status and completion
    - Pending work and history listings
    """

    def __init__(
        self,
        db: Session,
        *,
        template_store: Optional[TemplateStore] = None,
        event_sink: Optional[EventSink] = None,
        identity_resolver: Optional[IdentityResolver] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the approval service.

        Args:
            db: Database session
            template_store: Template source; defaults to the database
            event_sink: Receives an event per step transition
            identity_resolver: Maps identity keys to display names
            settings: Application settings; defaults to the cached ones
        """
        self.db = db
        settings = settings or get_settings()

        self.registry = HierarchyRegistry(template_store or SqlTemplateStore(db))
        self.navigator = ChainNavigator()
        self.builder = ChainBuilder(
            db,
            self.registry,
            strict_level_matching=settings.strict_level_matching,
        )
        self.resolver = StateResolver(
            db,
            self.navigator,
            event_sink=event_sink,
            identity_resolver=identity_resolver,
        )
        self.queries = QueryService(db, self.registry)

    def start(self, topic: str, context: Mapping[str, Any], initiator_id: str) -> ChainStep:
        """Build the chain for a document and return its root step."""
        return self.builder.build(topic, context, initiator_id)

    def get_step(self, step_id: Union[UUID, str]) -> ChainStep:
        """Load a step by id, raising StepNotFoundError if it does not exist."""
        try:
            key = step_id if isinstance(step_id, UUID) else UUID(str(step_id))
        except ValueError:
            raise StepNotFoundError(step_id)

        step = self.db.get(ChainStep, key)
        if step is None:
            raise StepNotFoundError(step_id)
        return step

    def approve(self, step_id: Union[UUID, str], actor_id: str, note: Optional[str] = None) -> ChainStep:
        return self.resolver.approve(self.get_step(step_id), actor_id, note)

    def reject(self, step_id: Union[UUID, str], actor_id: str, reason: str) -> ChainStep:
        return self.resolver.reject(self.get_step(step_id), actor_id, reason)

    def next_step(self, step_id: Union[UUID, str]) -> Optional[ChainStep]:
        return self.navigator.next(self.get_step(step_id))

    def chain(self, root_id: Union[UUID, str]) -> List[ChainStep]:
        return self.navigator.full_chain(self.get_step(root_id))

    def overall_status(self, root_id: Union[UUID, str]) -> str:
        return overall_status(self.chain(root_id)).value

    def is_complete(self, root_id: Union[UUID, str]) -> bool:
        return is_complete(self.chain(root_id))

    def status_view(self, root_id: Union[UUID, str]) -> Dict[str, Any]:
        root = self.get_step(root_id)
        if not root.is_initiator:
            raise ValidationError(f"Step {root_id} is not the root of a chain")
        return self.resolver.status_view(root)

    def pending_for(self, user_id: str) -> List[ChainStep]:
        return self.queries.pending_for(user_id)

    def history_for(self, topic: str) -> List[ChainStep]:
        return self.queries.history_for(topic)

    def approvers_at(self, topic: str, level: int) -> Set[str]:
        return self.queries.approvers_at(topic, level)


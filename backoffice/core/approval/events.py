"""Transition events emitted by the approval engine.

The engine only reports what changed; delivering notifications to the
next approver is left to whoever subscribes to the sink.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol
from uuid import UUID

from backoffice.core.logging import get_logger
from backoffice.db.base import utcnow

from .states import StepStatus

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransitionEvent:
    """A step reached a new status."""
    step_id: UUID
    topic: str
    new_status: StepStatus
    actor: Optional[str]
    occurred_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_id": str(self.step_id),
            "topic": self.topic,
            "new_status": self.new_status.value,
            "actor": self.actor,
            "occurred_at": self.occurred_at.isoformat(),
        }


class EventSink(Protocol):
    def emit(self, event: TransitionEvent) -> None:
        ...


class LoggingEventSink:
    """Default sink: writes each event to the log."""

    def emit(self, event: TransitionEvent) -> None:
        logger.info(
            "Step %s (%s) is now %s, actor=%s",
            event.step_id, event.topic, event.new_status.value, event.actor,
        )


class CallbackEventSink:
    """
    Dispatches events to callbacks registered per status.

    A failing callback is logged and does not stop the others.
    """

    def __init__(self):
        self._callbacks: Dict[StepStatus, List[Callable[[TransitionEvent], None]]] = {}

    def register_callback(
        self,
        status: StepStatus,
        callback: Callable[[TransitionEvent], None],
    ) -> None:
        """
        Register a callback to be executed when a step reaches ``status``.

        Args:
            status: The status to hook
            callback: Function to call with the event
        """
        self._callbacks.setdefault(status, []).append(callback)

    def emit(self, event: TransitionEvent) -> None:
        for callback in self._callbacks.get(event.new_status, []):
            try:
                callback(event)
            except Exception:
                logger.exception("Callback error for %s on step %s", event.new_status.value, event.step_id)

"""Step transitions and chain status.

Handles approve/reject with assignee checks, cascade cancellation and the
derivation of a chain's overall status.

Transitions are compare-and-set updates: the row only changes if it still
holds the status the transition starts from, so a duplicate submission
loses with a ConflictError instead of overwriting the first decision.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import and_, update
from sqlalchemy.orm import Session

from backoffice.core.logging import get_logger
from backoffice.db.base import utcnow
from backoffice.db.models import ChainStep, StepTransition

from .errors import AuthorizationError, ConflictError, ValidationError
from .events import EventSink, LoggingEventSink, TransitionEvent
from .identity import IdentityResolver, MappingIdentityResolver
from .navigator import ChainNavigator
from .states import (
    TERMINAL_STATUSES,
    StepAction,
    StepStatus,
    TransitionRule,
    get_transition_rule,
    is_approver_role,
)

logger = get_logger(__name__)


def _approver_steps(chain: Sequence[ChainStep]) -> List[ChainStep]:
    return [step for step in chain if is_approver_role(step.role)]


def overall_status(chain: Sequence[ChainStep]) -> StepStatus:
    """
    Derive a chain's status from the statuses of its approver steps.

    Precedence: any rejected, then all approved, then any pending.
    Everything else, including a chain without approvers, reads as
    initiated.
    """
    statuses = {StepStatus(step.status) for step in _approver_steps(chain)}

    if StepStatus.REJECTED in statuses:
        return StepStatus.REJECTED
    if statuses == {StepStatus.APPROVED}:
        return StepStatus.APPROVED
    if StepStatus.PENDING in statuses:
        return StepStatus.PENDING
    return StepStatus.INITIATED


def is_complete(chain: Sequence[ChainStep]) -> bool:
    """True when every approver step is approved (vacuously for none)."""
    return all(step.status == StepStatus.APPROVED.value for step in _approver_steps(chain))


def can_advance(step: ChainStep) -> bool:
    """Whether the document may move on past ``step``."""
    return step.status == StepStatus.APPROVED.value


class StateResolver:
    """
    Applies approver decisions to chain steps.

    Every successful transition is written to the step, recorded as a
    StepTransition row and emitted to the event sink.
    """

    def __init__(
        self,
        db: Session,
        navigator: Optional[ChainNavigator] = None,
        *,
        event_sink: Optional[EventSink] = None,
        identity_resolver: Optional[IdentityResolver] = None,
    ):
        self.db = db
        self.navigator = navigator or ChainNavigator()
        self.event_sink = event_sink or LoggingEventSink()
        self.identity_resolver = identity_resolver or MappingIdentityResolver()

    # Derived status helpers, exposed on the resolver for callers holding one
    overall_status = staticmethod(overall_status)
    is_complete = staticmethod(is_complete)
    can_advance = staticmethod(can_advance)

    def approve(self, step: ChainStep, actor: str, note: Optional[str] = None) -> ChainStep:
        """
        Approve ``step`` on behalf of its assignee.

        Raises:
            AuthorizationError: If ``actor`` is not the step's assignee
            ConflictError: If the step is no longer pending
        """
        self._authorize(step, actor, StepAction.APPROVE)
        rule = self._rule_for(step, StepAction.APPROVE)

        now = utcnow()
        applied = self._apply(step, rule, acted_by=actor, acted_at=now, note=note or None)
        if not applied:
            raise self._conflict(step, StepAction.APPROVE)

        self._record(step, rule, actor, note)
        logger.info("Step %s approved by %s", step.id, actor)
        self._emit(step, rule.to_status, actor)
        return step

    def reject(self, step: ChainStep, actor: str, reason: str) -> ChainStep:
        """
        Reject ``step`` and cancel every step after it.

        Steps before ``step`` keep their status; the chain does not unwind.

        Raises:
            AuthorizationError: If ``actor`` is not the step's assignee
            ValidationError: If ``reason`` is empty or not a string
            ConflictError: If the step is no longer pending
        """
        self._authorize(step, actor, StepAction.REJECT)
        rule = self._rule_for(step, StepAction.REJECT)
        if rule.requires_reason and (not isinstance(reason, str) or not reason.strip()):
            raise ValidationError("A rejection reason is required")

        now = utcnow()
        applied = self._apply(step, rule, acted_by=actor, acted_at=now, reason=reason)
        if not applied:
            raise self._conflict(step, StepAction.REJECT)

        self._record(step, rule, actor, reason)
        logger.info("Step %s rejected by %s: %s", step.id, actor, reason)
        self._emit(step, rule.to_status, actor)

        self._cancel_downstream(step, actor, now)
        return step

    def status_view(self, root: ChainStep) -> Dict[str, Any]:
        """Read-only summary of a chain for callers and UIs."""
        chain = self.navigator.full_chain(root)
        resolve = self.identity_resolver.display_name

        steps = []
        for step in _approver_steps(chain):
            link = self.navigator.incoming_link(step)
            steps.append({
                "step_id": str(step.id),
                "assignee": step.assignee_id,
                "assignee_name": resolve(step.assignee_id),
                "level": step.level or 0,
                "status": step.status,
                "acted_at": _isoformat(step.acted_at),
                "note": step.note,
                "reason": step.reason,
                "authority": dict(link.authority_snapshot or {}) if link else {},
            })

        return {
            "root_step_id": str(root.id),
            "initiator": root.assignee_id,
            "initiator_name": resolve(root.assignee_id),
            "topic": root.topic,
            "initiated_at": _isoformat(root.created_at),
            "overall_status": overall_status(chain).value,
            "steps": steps,
        }

    def _cancel_downstream(self, step: ChainStep, actor: str, now: datetime) -> List[ChainStep]:
        cancelled = []
        for downstream in self.navigator.downstream_of(step):
            # Another session may have approved it since it was loaded
            self.db.refresh(downstream)
            rule = self._cancel_rule(downstream)
            while rule is not None:
                if self._apply(downstream, rule, cancelled_at=now):
                    self._record(downstream, rule, actor, None)
                    self._emit(downstream, rule.to_status, actor)
                    cancelled.append(downstream)
                    break
                # _apply reloaded the row; retry from its current status
                rule = self._cancel_rule(downstream)

        if cancelled:
            logger.info("Cancelled %d step(s) downstream of %s", len(cancelled), step.id)
        return cancelled

    def _cancel_rule(self, step: ChainStep) -> Optional[TransitionRule]:
        status = StepStatus(step.status)
        if status in TERMINAL_STATUSES:
            return None
        return get_transition_rule(status, StepAction.CANCEL)

    def _authorize(self, step: ChainStep, actor: str, action: StepAction) -> None:
        if step.assignee_id != actor:
            raise AuthorizationError(actor, step.assignee_id, action.value)

    def _rule_for(self, step: ChainStep, action: StepAction) -> TransitionRule:
        rule = get_transition_rule(StepStatus(step.status), action)
        if rule is None:
            raise self._conflict(step, action)
        return rule

    def _conflict(self, step: ChainStep, action: StepAction) -> ConflictError:
        return ConflictError(
            f"Cannot {action.value} step {step.id}: it is {step.status}",
            step.status,
        )

    def _apply(self, step: ChainStep, rule: TransitionRule, **values: Any) -> bool:
        """Move ``step`` along ``rule`` only if the row still holds the rule's source status."""
        result = self.db.execute(
            update(ChainStep)
            .where(
                and_(
                    ChainStep.id == step.id,
                    ChainStep.status == rule.from_status.value,
                )
            )
            .values(status=rule.to_status.value, updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(step)
        return result.rowcount == 1

    def _record(self, step: ChainStep, rule: TransitionRule, actor: Optional[str], comment: Optional[str]) -> None:
        self.db.add(StepTransition(
            step_id=step.id,
            from_status=rule.from_status.value,
            to_status=rule.to_status.value,
            actor_id=actor,
            comment=comment,
        ))
        self.db.flush()

    def _emit(self, step: ChainStep, status: StepStatus, actor: Optional[str]) -> None:
        event = TransitionEvent(step_id=step.id, topic=step.topic, new_status=status, actor=actor)
        try:
            self.event_sink.emit(event)
        except Exception:
            logger.exception("Event sink failed for step %s", step.id)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None

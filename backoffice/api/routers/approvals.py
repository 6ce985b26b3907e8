"""Approval workflow API endpoints."""

from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status, Query
from pydantic import BaseModel, Field
from starlette.status import HTTP_422_UNPROCESSABLE_CONTENT

from backoffice.api.deps import get_approval_service
from backoffice.core.approval import (
    ApprovalError,
    ApprovalService,
    AuthorizationError,
    ConflictError,
    StepNotFoundError,
)

router = APIRouter(prefix="/approvals", tags=["approvals"])


# Schemas
class StartApprovalRequest(BaseModel):
    topic: str
    context: Dict[str, Any] = Field(default_factory=dict)
    initiator_id: str


class StartApprovalResponse(BaseModel):
    root_step_id: UUID
    overall_status: str


class ApproveAction(BaseModel):
    actor_id: str
    note: Optional[str] = None


class RejectAction(BaseModel):
    actor_id: str
    reason: str


class TransitionResponse(BaseModel):
    step_id: UUID
    status: str


class ChainStepResponse(BaseModel):
    id: UUID
    chain_id: UUID
    position: int
    assignee_id: str
    role: str
    level: Optional[int]
    topic: str
    status: str
    acted_by: Optional[str]
    acted_at: Optional[datetime]
    note: Optional[str]
    reason: Optional[str]
    cancelled_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class StepStatusView(BaseModel):
    step_id: UUID
    assignee: str
    assignee_name: str
    level: int
    status: str
    acted_at: Optional[datetime]
    note: Optional[str]
    reason: Optional[str]
    authority: Dict[str, Any]


class ChainStatusResponse(BaseModel):
    root_step_id: UUID
    initiator: str
    initiator_name: str
    topic: str
    initiated_at: Optional[datetime]
    overall_status: str
    steps: List[StepStatusView]


class ApproversResponse(BaseModel):
    topic: str
    level: int
    approvers: List[str]


def _http_error(exc: ApprovalError) -> HTTPException:
    """Translate an engine error into the matching HTTP error."""
    if isinstance(exc, StepNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, AuthorizationError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, ConflictError):
        code = status.HTTP_409_CONFLICT
    else:
        # ValidationError, ConfigurationError
        code = HTTP_422_UNPROCESSABLE_CONTENT
    return HTTPException(status_code=code, detail=str(exc))


# Endpoints
@router.post("", response_model=StartApprovalResponse, status_code=status.HTTP_201_CREATED)
async def start_approval(
    request: StartApprovalRequest,
    service: ApprovalService = Depends(get_approval_service),
):
    """Build the approval chain for a document."""
    try:
        root = service.start(request.topic, request.context, request.initiator_id)
        overall = service.overall_status(root.id)
        service.db.commit()
    except ApprovalError as e:
        service.db.rollback()
        raise _http_error(e)

    return StartApprovalResponse(root_step_id=root.id, overall_status=overall)


@router.get("/pending", response_model=List[ChainStepResponse])
async def list_pending_approvals(
    user_id: str = Query(..., min_length=1),
    service: ApprovalService = Depends(get_approval_service),
):
    """List steps waiting for the given user's decision."""
    steps = service.pending_for(user_id)
    return [ChainStepResponse.model_validate(s) for s in steps]


@router.get("/history", response_model=List[ChainStepResponse])
async def list_approval_history(
    topic: str = Query(..., min_length=1),
    service: ApprovalService = Depends(get_approval_service),
):
    """List decided steps of a topic, newest first."""
    steps = service.history_for(topic)
    return [ChainStepResponse.model_validate(s) for s in steps]


@router.get("/approvers", response_model=ApproversResponse)
async def list_approvers(
    topic: str = Query(..., min_length=1),
    level: int = Query(..., ge=0),
    service: ApprovalService = Depends(get_approval_service),
):
    """List the approvers configured at a topic level."""
    approvers = service.approvers_at(topic, level)
    return ApproversResponse(topic=topic, level=level, approvers=sorted(approvers))


@router.get("/{root_step_id}", response_model=ChainStatusResponse)
async def get_approval_status(
    root_step_id: UUID,
    service: ApprovalService = Depends(get_approval_service),
):
    """Get the status view of a chain."""
    try:
        view = service.status_view(root_step_id)
    except ApprovalError as e:
        raise _http_error(e)

    return ChainStatusResponse(**view)


@router.post("/{step_id}/approve", response_model=TransitionResponse)
async def approve_step(
    step_id: UUID,
    action: ApproveAction,
    service: ApprovalService = Depends(get_approval_service),
):
    """Approve a pending step."""
    try:
        step = service.approve(step_id, action.actor_id, action.note)
        service.db.commit()
    except ApprovalError as e:
        service.db.rollback()
        raise _http_error(e)

    return TransitionResponse(step_id=step.id, status=step.status)


@router.post("/{step_id}/reject", response_model=TransitionResponse)
async def reject_step(
    step_id: UUID,
    action: RejectAction,
    service: ApprovalService = Depends(get_approval_service),
):
    """Reject a pending step and cancel the rest of its chain."""
    try:
        step = service.reject(step_id, action.actor_id, action.reason)
        service.db.commit()
    except ApprovalError as e:
        service.db.rollback()
        raise _http_error(e)

    return TransitionResponse(step_id=step.id, status=step.status)

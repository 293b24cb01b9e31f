"""Approval Routes - Approver decisions and resubmission"""
from typing import Any, Dict, List
from fastapi import APIRouter, Depends

from ..deps import approval_rate_limit_dep, get_current_user_id_dep, get_engine
from ...domain.models import ApprovalActionResult
from ...engine.engine import WorkflowEngine
from ...services.ticket_service import TicketService
from ...utils.logger import get_logger
from .schemas import ApprovalDecisionRequest, NeedMoreInfoRequest

logger = get_logger(__name__)
router = APIRouter()


@router.get("/pending", response_model=List[Dict[str, Any]])
async def get_my_pending_approvals(user_id: str = Depends(get_current_user_id_dep)):
    """Approval requests waiting on the caller"""
    return TicketService().get_pending_approvals(user_id)


@router.post("/{request_id}/approve", response_model=ApprovalActionResult)
async def approve(
    request_id: str,
    request: ApprovalDecisionRequest,
    user_id: str = Depends(approval_rate_limit_dep),
    engine: WorkflowEngine = Depends(get_engine)
):
    return engine.approve(request_id, user_id, request.comments)


@router.post("/{request_id}/reject", response_model=ApprovalActionResult)
async def reject(
    request_id: str,
    request: ApprovalDecisionRequest,
    user_id: str = Depends(approval_rate_limit_dep),
    engine: WorkflowEngine = Depends(get_engine)
):
    return engine.reject(request_id, user_id, request.comments)


@router.post("/{request_id}/need-more-info", response_model=ApprovalActionResult)
async def need_more_info(
    request_id: str,
    request: NeedMoreInfoRequest,
    user_id: str = Depends(approval_rate_limit_dep),
    engine: WorkflowEngine = Depends(get_engine)
):
    """Send the request back to the ticket creator with comments"""
    return engine.need_more_info(request_id, user_id, request.comments)


@router.post("/{request_id}/resubmit", response_model=ApprovalActionResult)
async def resubmit(
    request_id: str,
    user_id: str = Depends(approval_rate_limit_dep),
    engine: WorkflowEngine = Depends(get_engine)
):
    """Put a need-more-info request back in front of its approver"""
    return engine.resubmit(request_id, actor_id=user_id)

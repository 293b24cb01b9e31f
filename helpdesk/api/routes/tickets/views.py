"""
Ticket View Routes

History timeline and approval chain of a ticket.
"""

from typing import List
from fastapi import APIRouter, Depends

from ...deps import get_current_user_id_dep
from ....services.audit_service import AuditService
from ....services.ticket_service import TicketService
from .schemas import HistoryItem, TicketApprovalsResponse

router = APIRouter()


@router.get("/{ticket_id}/history", response_model=List[HistoryItem])
async def get_ticket_history(
    ticket_id: str,
    user_id: str = Depends(get_current_user_id_dep)
):
    """Ticket history, newest first"""
    return AuditService().get_ticket_history(ticket_id)


@router.get("/{ticket_id}/approvals", response_model=TicketApprovalsResponse)
async def get_ticket_approvals(
    ticket_id: str,
    user_id: str = Depends(get_current_user_id_dep)
):
    """Approval chain in stage order"""
    service = TicketService()
    ticket = service.get_ticket(ticket_id)
    return TicketApprovalsResponse.build(ticket, service.get_ticket_approvals(ticket_id))

"""
Ticket CRUD Routes

Create, read, list and assign tickets.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from ...deps import get_current_user_id_dep, get_engine
from ....domain.models import Ticket, TicketCreate
from ....domain.enums import TicketStatus
from ....engine.engine import WorkflowEngine
from ....services.ticket_service import TicketService
from ....utils.logger import get_logger
from .schemas import AssignTicketRequest, TicketListResponse

logger = get_logger(__name__)
router = APIRouter()


@router.post("/", response_model=Ticket, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    request: TicketCreate,
    user_id: str = Depends(get_current_user_id_dep),
    engine: WorkflowEngine = Depends(get_engine)
):
    """
    Create a new ticket

    Runs intake: matching assignment rule, auto-assignment, and the
    approval chain when the ticket's form has approval stages.
    """
    ticket = engine.create_ticket(request, actor_id=user_id)
    logger.info(
        f"Created ticket: {ticket.ticket_id}",
        extra={"ticket_id": ticket.ticket_id, "user_id": user_id}
    )
    return ticket


@router.get("/", response_model=TicketListResponse)
async def list_tickets(
    mine: bool = Query(False, description="Only tickets I created"),
    assigned_to_me: bool = Query(False, description="Only tickets assigned to me"),
    status: Optional[TicketStatus] = Query(None, description="Filter by status"),
    priority: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id_dep)
):
    """List tickets, newest first"""
    tickets, total = TicketService().list_tickets(
        status=status,
        priority=priority,
        category=category,
        created_by=user_id if mine else None,
        assigned_to=user_id if assigned_to_me else None,
        page=page,
        page_size=page_size
    )
    return TicketListResponse(items=tickets, page=page, page_size=page_size, total=total)


@router.get("/{ticket_id}", response_model=Ticket)
async def get_ticket(
    ticket_id: str,
    user_id: str = Depends(get_current_user_id_dep)
):
    return TicketService().get_ticket(ticket_id)


@router.post("/{ticket_id}/assign", response_model=Ticket)
async def assign_ticket(
    ticket_id: str,
    request: AssignTicketRequest,
    user_id: str = Depends(get_current_user_id_dep),
    engine: WorkflowEngine = Depends(get_engine)
):
    """Manually set or clear the assignee"""
    return engine.assign_ticket(ticket_id, request.assignee_id, actor_id=user_id)

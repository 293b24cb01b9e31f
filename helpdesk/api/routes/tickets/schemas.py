"""
Ticket Schemas

Request and response models for ticket API endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from ....domain.models import Ticket


# =============================================================================
# Ticket CRUD Schemas
# =============================================================================

class TicketListResponse(BaseModel):
    """Response for ticket list"""
    items: List[Ticket]
    page: int
    page_size: int
    total: int


class AssignTicketRequest(BaseModel):
    """Manual assignment; null clears the assignee"""
    assignee_id: Optional[str] = Field(None, max_length=100)


# =============================================================================
# History & Approval Views
# =============================================================================

class HistoryItem(BaseModel):
    history_id: str
    ticket_id: str
    user_id: str
    user_name: str
    user_email: str
    action: str
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    created_at: datetime


class TicketApprovalItem(BaseModel):
    approval_request_id: str
    ticket_id: str
    stage_id: str
    stage_name: Optional[str] = None
    stage_order: int
    is_required: bool
    approver_id: Optional[str] = None
    approver_name: Optional[str] = None
    status: str
    comments: Optional[str] = None
    requested_at: datetime
    responded_at: Optional[datetime] = None
    updated_at: datetime


class TicketApprovalsResponse(BaseModel):
    ticket_id: str
    approval_status: str
    items: List[TicketApprovalItem]

    @classmethod
    def build(cls, ticket: Ticket, items: List[Dict[str, Any]]) -> "TicketApprovalsResponse":
        return cls(ticket_id=ticket.ticket_id, approval_status=ticket.approval_status, items=items)

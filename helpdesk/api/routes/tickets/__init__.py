"""
Ticket Routes Module

- crud.py: create, list, get, assign
- views.py: history timeline and approval chain

All routes are combined into a single router for inclusion in the API.
"""

from fastapi import APIRouter

from .schemas import AssignTicketRequest, TicketListResponse, HistoryItem, TicketApprovalsResponse
from .crud import router as crud_router
from .views import router as views_router

router = APIRouter()
router.include_router(crud_router)
router.include_router(views_router)

__all__ = [
    "router",
    "AssignTicketRequest", "TicketListResponse", "HistoryItem", "TicketApprovalsResponse",
]

"""API Routes module"""
from fastapi import APIRouter

from .tickets import router as tickets_router
from .approvals import router as approvals_router
from .assignment_rules import router as assignment_rules_router
from .teams import router as teams_router
from .notifications import router as notifications_router
from .audit import router as audit_router

# Main API router
api_router = APIRouter()

api_router.include_router(tickets_router, prefix="/tickets", tags=["Tickets"])
api_router.include_router(approvals_router, prefix="/approvals", tags=["Approvals"])
api_router.include_router(assignment_rules_router, prefix="/assignment-rules", tags=["Assignment Rules"])
api_router.include_router(teams_router, prefix="/teams", tags=["Teams"])
api_router.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(audit_router, prefix="/audit", tags=["Audit"])

__all__ = ["api_router"]

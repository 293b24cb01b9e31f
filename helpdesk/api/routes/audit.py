"""Audit Routes - Activity feed and stats across tickets"""
from typing import Any, Dict, List
from fastapi import APIRouter, Depends, Query

from ..deps import get_current_user_id_dep
from ...services.audit_service import AuditService

router = APIRouter()


@router.get("/recent", response_model=List[Dict[str, Any]])
async def get_recent_activity(
    limit: int = Query(50, ge=1, le=500),
    user_id: str = Depends(get_current_user_id_dep)
):
    """Latest history entries across all tickets"""
    return AuditService().get_recent_activity(limit=limit)


@router.get("/stats")
async def get_audit_stats(
    days: int = Query(30, ge=1, le=365),
    user_id: str = Depends(get_current_user_id_dep)
):
    """Action counts and top users over the last `days` days"""
    return AuditService().get_stats(days=days)

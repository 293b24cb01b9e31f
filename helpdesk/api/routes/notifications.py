"""User Notifications API - In-app notification endpoints"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..deps import get_current_user_id_dep
from ...domain.models import Notification
from ...services.notification_service import NotificationService
from ...utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class NotificationListResponse(BaseModel):
    """Notifications with the caller's unread count"""
    items: List[Notification]
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class MarkReadResponse(BaseModel):
    """Response after marking notifications read"""
    success: bool
    marked_count: int


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=NotificationListResponse)
async def get_notifications(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    read: Optional[bool] = Query(None, description="Filter by read flag"),
    user_id: str = Depends(get_current_user_id_dep)
):
    """Notifications for the current user, newest first"""
    service = NotificationService()
    items = service.list_for_user(user_id, read=read, skip=skip, limit=limit)
    return NotificationListResponse(items=items, unread_count=service.unread_count(user_id))


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(user_id: str = Depends(get_current_user_id_dep)):
    return UnreadCountResponse(unread_count=NotificationService().unread_count(user_id))


@router.post("/{notification_id}/read", response_model=Notification)
async def mark_notification_read(
    notification_id: str,
    user_id: str = Depends(get_current_user_id_dep)
):
    """Mark one of the caller's notifications read"""
    return NotificationService().mark_read(notification_id, user_id)


@router.post("/read-all", response_model=MarkReadResponse)
async def mark_all_read(user_id: str = Depends(get_current_user_id_dep)):
    count = NotificationService().mark_all_read(user_id)
    return MarkReadResponse(success=True, marked_count=count)

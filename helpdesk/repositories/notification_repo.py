"""Notification Repository - Data access for in-app notifications"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import DESCENDING

from .mongo_client import get_collection
from ..domain.models import Notification
from ..domain.errors import NotificationNotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class NotificationRepository:
    """Repository for notification operations"""

    def __init__(self):
        self._notifications: Collection = get_collection("notifications")

    def create_notification(self, notification: Notification) -> Notification:
        doc = notification.model_dump()
        doc["_id"] = notification.notification_id

        self._notifications.insert_one(doc)
        logger.info(
            f"Created notification: {notification.type}",
            extra={"user_id": notification.user_id, "ticket_id": notification.ticket_id}
        )
        return notification

    def get_for_user(
        self,
        user_id: str,
        read: Optional[bool] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[Notification]:
        """Notifications for a user, newest first"""
        query: Dict[str, Any] = {"user_id": user_id}
        if read is not None:
            query["read"] = read

        cursor = self._notifications.find(query).sort("created_at", DESCENDING).skip(skip).limit(limit)

        notifications = []
        for doc in cursor:
            doc.pop("_id", None)
            notifications.append(Notification.model_validate(doc))

        return notifications

    def count_unread(self, user_id: str) -> int:
        return self._notifications.count_documents({"user_id": user_id, "read": False})

    def mark_read(self, notification_id: str, user_id: str) -> Notification:
        result = self._notifications.find_one_and_update(
            {"notification_id": notification_id, "user_id": user_id},
            {"$set": {"read": True}},
            return_document=True
        )
        if result is None:
            raise NotificationNotFoundError(
                f"Notification {notification_id} not found",
                details={"notification_id": notification_id}
            )
        result.pop("_id", None)
        return Notification.model_validate(result)

    def mark_all_read(self, user_id: str) -> int:
        result = self._notifications.update_many(
            {"user_id": user_id, "read": False},
            {"$set": {"read": True}}
        )
        return result.modified_count

"""Notification Service - In-app notifications for ticket and approval events

Delivery is best-effort: a failed write is logged and dropped so that it
never rolls back the state change that triggered it.
"""
from typing import List, Optional

from ..domain.models import Notification
from ..domain.enums import NotificationType
from ..repositories.notification_repo import NotificationRepository
from ..utils.idgen import generate_notification_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Service for creating and reading notifications"""

    def __init__(self, repo: Optional[NotificationRepository] = None):
        self.repo = repo or NotificationRepository()

    # =========================================================================
    # Delivery
    # =========================================================================

    def notify(
        self,
        user_id: Optional[str],
        notification_type: NotificationType,
        title: str,
        message: str,
        ticket_id: Optional[str] = None
    ) -> Optional[Notification]:
        """
        Create a notification for one user

        Returns the notification, or None when there is no recipient or
        the write failed.
        """
        if not user_id:
            return None

        try:
            notification = Notification(
                notification_id=generate_notification_id(),
                user_id=user_id,
                type=NotificationType(notification_type).value,
                title=title,
                message=message,
                read=False,
                ticket_id=ticket_id,
                created_at=utc_now()
            )
            return self.repo.create_notification(notification)
        except Exception as e:
            # Don't fail the calling operation if a notification fails
            logger.warning(
                f"Failed to create notification: {e}",
                extra={"user_id": user_id, "ticket_id": ticket_id}
            )
            return None

    def notify_ticket_assigned(
        self,
        assignee_id: str,
        ticket_id: str,
        ticket_title: str
    ) -> Optional[Notification]:
        return self.notify(
            assignee_id,
            NotificationType.TICKET_ASSIGNED,
            "Ticket Assigned",
            f'You have been assigned to ticket: "{ticket_title}"',
            ticket_id
        )

    def notify_approval_requested(
        self,
        approver_id: Optional[str],
        ticket_id: str,
        ticket_title: str,
        stage_name: str
    ) -> Optional[Notification]:
        """Ask an approver to act on a stage"""
        return self.notify(
            approver_id,
            NotificationType.APPROVAL_REQUESTED,
            "Approval Required",
            f'The ticket "{ticket_title}" requires your approval at stage: {stage_name}',
            ticket_id
        )

    def notify_approval_resubmitted(
        self,
        approver_id: Optional[str],
        ticket_id: str,
        ticket_title: str,
        stage_name: str
    ) -> Optional[Notification]:
        return self.notify(
            approver_id,
            NotificationType.APPROVAL_REQUESTED,
            "Approval Required",
            f'The ticket "{ticket_title}" has been resubmitted for approval at stage: {stage_name}',
            ticket_id
        )

    def notify_approved(
        self,
        creator_id: str,
        ticket_id: str,
        ticket_title: str,
        stage_name: str
    ) -> Optional[Notification]:
        return self.notify(
            creator_id,
            NotificationType.APPROVAL_APPROVED,
            "Approval Approved",
            f'Your ticket "{ticket_title}" has been approved at stage: {stage_name}',
            ticket_id
        )

    def notify_rejected(
        self,
        creator_id: str,
        ticket_id: str,
        ticket_title: str,
        stage_name: str,
        comments: Optional[str] = None
    ) -> Optional[Notification]:
        reason = f" - {comments}" if comments else ""
        return self.notify(
            creator_id,
            NotificationType.APPROVAL_REJECTED,
            "Approval Rejected",
            f'Your ticket "{ticket_title}" has been rejected at stage: {stage_name}{reason}',
            ticket_id
        )

    def notify_more_info_needed(
        self,
        creator_id: str,
        ticket_id: str,
        ticket_title: str,
        stage_name: str
    ) -> Optional[Notification]:
        return self.notify(
            creator_id,
            NotificationType.APPROVAL_MORE_INFO_NEEDED,
            "More Information Required",
            f'More information is needed for your ticket "{ticket_title}" at stage: {stage_name}. '
            "Please review the comments and provide additional details.",
            ticket_id
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def list_for_user(
        self,
        user_id: str,
        read: Optional[bool] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[Notification]:
        return self.repo.get_for_user(user_id, read=read, skip=skip, limit=limit)

    def unread_count(self, user_id: str) -> int:
        return self.repo.count_unread(user_id)

    def mark_read(self, notification_id: str, user_id: str) -> Notification:
        return self.repo.mark_read(notification_id, user_id)

    def mark_all_read(self, user_id: str) -> int:
        count = self.repo.mark_all_read(user_id)
        logger.info(f"Marked {count} notifications read", extra={"user_id": user_id})
        return count

"""Permission Guard - Authorization checks for approval actions"""
from typing import Optional

from ..domain.models import ApprovalRequest, Ticket
from ..domain.errors import PermissionDeniedError
from ..utils.logger import get_logger

logger = get_logger(__name__)


_ACTION_LABELS = {
    "approve": "approve",
    "reject": "reject",
    "need_more_info": "request more information for",
}


class PermissionGuard:
    """
    Permission enforcement for approval requests

    Rules:
    - Only the request's approver can approve, reject or ask for more info
    - A request can be resubmitted by the ticket creator or its approver
    - Internal callers (actor_id None) may resubmit
    """

    def can_decide(self, actor_id: str, request: ApprovalRequest) -> bool:
        """Check if actor is the designated approver"""
        return bool(request.approver_id) and request.approver_id == actor_id

    def can_resubmit(
        self,
        actor_id: Optional[str],
        request: ApprovalRequest,
        ticket: Ticket
    ) -> bool:
        if actor_id is None:
            return True
        return actor_id in (ticket.created_by, request.approver_id)

    def ensure_can_decide(self, actor_id: str, request: ApprovalRequest, action: str) -> None:
        """Raise PermissionDeniedError unless actor is the request's approver"""
        if self.can_decide(actor_id, request):
            return

        logger.warning(
            f"Denied {action} on approval request",
            extra={
                "approval_request_id": request.approval_request_id,
                "user_id": actor_id,
                "action": action,
            }
        )
        raise PermissionDeniedError(
            f"You are not authorized to {_ACTION_LABELS.get(action, action)} this request",
            details={"approval_request_id": request.approval_request_id}
        )

    def ensure_can_resubmit(
        self,
        actor_id: Optional[str],
        request: ApprovalRequest,
        ticket: Ticket
    ) -> None:
        if not self.can_resubmit(actor_id, request, ticket):
            raise PermissionDeniedError(
                "You are not authorized to resubmit this request",
                details={"approval_request_id": request.approval_request_id}
            )

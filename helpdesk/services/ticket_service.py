"""Ticket Service - Ticket and approval read models"""
from typing import Any, Dict, List, Optional, Tuple

from ..domain.models import Ticket, ApprovalRequest
from ..domain.enums import TicketStatus
from ..repositories.ticket_repo import TicketRepository
from ..repositories.approval_repo import ApprovalRepository
from ..repositories.user_repo import UserRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TicketService:
    """Service for ticket queries and approval views"""

    def __init__(
        self,
        ticket_repo: Optional[TicketRepository] = None,
        approval_repo: Optional[ApprovalRepository] = None,
        user_repo: Optional[UserRepository] = None
    ):
        self.ticket_repo = ticket_repo or TicketRepository()
        self.approval_repo = approval_repo or ApprovalRepository()
        self.user_repo = user_repo or UserRepository()

    def get_ticket(self, ticket_id: str) -> Ticket:
        return self.ticket_repo.get_ticket_or_raise(ticket_id)

    def list_tickets(
        self,
        status: Optional[TicketStatus] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        assigned_to: Optional[str] = None,
        created_by: Optional[str] = None,
        page: int = 1,
        page_size: int = 20
    ) -> Tuple[List[Ticket], int]:
        """Page of tickets (newest first) and the total matching count"""
        skip = (page - 1) * page_size
        tickets = self.ticket_repo.list_tickets(
            status=status,
            priority=priority,
            category=category,
            assigned_to=assigned_to,
            created_by=created_by,
            skip=skip,
            limit=page_size
        )
        total = self.ticket_repo.count_tickets(
            status=status,
            priority=priority,
            category=category,
            assigned_to=assigned_to,
            created_by=created_by
        )
        return tickets, total

    def get_ticket_approvals(self, ticket_id: str) -> List[Dict[str, Any]]:
        """
        A ticket's approval chain in stage order

        Each item is the request plus stage name/order/is_required and the
        approver's name.
        """
        self.ticket_repo.get_ticket_or_raise(ticket_id)
        requests = self.approval_repo.get_requests_for_ticket(ticket_id)
        items = self._with_stages(requests)
        items.sort(key=lambda item: (item["stage_order"], item["approval_request_id"]))
        return items

    def get_pending_approvals(self, approver_id: str) -> List[Dict[str, Any]]:
        """Pending requests waiting on one approver, with ticket titles"""
        requests = self.approval_repo.get_pending_for_approver(approver_id)
        items = self._with_stages(requests)

        for item in items:
            ticket = self.ticket_repo.get_ticket(item["ticket_id"])
            item["ticket_title"] = ticket.title if ticket else None
            item["ticket_priority"] = ticket.priority if ticket else None

        return items

    def _with_stages(self, requests: List[ApprovalRequest]) -> List[Dict[str, Any]]:
        stages = self.approval_repo.get_stages_by_ids([r.stage_id for r in requests])
        approvers = self.user_repo.get_users_by_ids(
            [r.approver_id for r in requests if r.approver_id]
        )

        items = []
        for request in requests:
            stage = stages.get(request.stage_id)
            approver = approvers.get(request.approver_id) if request.approver_id else None
            item = request.model_dump()
            item["stage_name"] = stage.name if stage else None
            item["stage_order"] = stage.order if stage else 0
            item["is_required"] = stage.is_required if stage else True
            item["approver_name"] = approver.name if approver else None
            items.append(item)
        return items

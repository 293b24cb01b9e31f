"""Ticket Repository - Data access for tickets"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import DESCENDING

from .mongo_client import get_collection
from ..domain.models import Ticket
from ..domain.enums import ApprovalStatus, TicketStatus, CLOSED_TICKET_STATUSES
from ..domain.errors import TicketNotFoundError
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TicketRepository:
    """Repository for ticket operations"""

    def __init__(self):
        self._tickets: Collection = get_collection("tickets")

    # =========================================================================
    # Ticket CRUD
    # =========================================================================

    def create_ticket(self, ticket: Ticket) -> Ticket:
        """Create a new ticket"""
        # Don't use mode="json" - it converts datetime to strings, breaking MongoDB sorting
        doc = ticket.model_dump()
        doc["_id"] = ticket.ticket_id

        self._tickets.insert_one(doc)
        logger.info(f"Created ticket: {ticket.ticket_id}", extra={"ticket_id": ticket.ticket_id})
        return ticket

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID"""
        doc = self._tickets.find_one({"ticket_id": ticket_id})
        if doc:
            doc.pop("_id", None)
            return Ticket.model_validate(doc)
        return None

    def get_ticket_or_raise(self, ticket_id: str) -> Ticket:
        """Get ticket by ID or raise error"""
        ticket = self.get_ticket(ticket_id)
        if not ticket:
            raise TicketNotFoundError(
                f"Ticket {ticket_id} not found",
                details={"ticket_id": ticket_id}
            )
        return ticket

    def update_ticket(self, ticket_id: str, updates: Dict[str, Any]) -> Ticket:
        """Atomically patch a ticket document"""
        updates.setdefault("updated_at", utc_now())

        result = self._tickets.find_one_and_update(
            {"ticket_id": ticket_id},
            {"$set": updates},
            return_document=True
        )

        if result is None:
            raise TicketNotFoundError(
                f"Ticket {ticket_id} not found",
                details={"ticket_id": ticket_id}
            )

        result.pop("_id", None)
        logger.info(f"Updated ticket: {ticket_id}", extra={"ticket_id": ticket_id})
        return Ticket.model_validate(result)

    def apply_approval_status(
        self,
        ticket_id: str,
        approval_status: ApprovalStatus,
        status: Optional[TicketStatus] = None
    ) -> Optional[Ticket]:
        """
        Set a ticket's aggregate approval status (and optionally its status)

        Only writes when the stored approval_status differs, so concurrent
        recomputes of the same aggregate apply once. Returns the ticket as
        it was BEFORE the write, or None when nothing changed.
        """
        updates: Dict[str, Any] = {
            "approval_status": ApprovalStatus(approval_status).value,
            "updated_at": utc_now(),
        }
        if status is not None:
            updates["status"] = TicketStatus(status).value

        before = self._tickets.find_one_and_update(
            {"ticket_id": ticket_id, "approval_status": {"$ne": updates["approval_status"]}},
            {"$set": updates},
            return_document=False
        )
        if before is None:
            return None

        before.pop("_id", None)
        logger.info(
            f"Ticket approval status -> {updates['approval_status']}",
            extra={"ticket_id": ticket_id, "status": updates.get("status")}
        )
        return Ticket.model_validate(before)

    def list_tickets(
        self,
        status: Optional[TicketStatus] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        assigned_to: Optional[str] = None,
        created_by: Optional[str] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[Ticket]:
        """List tickets with filters, newest first"""
        query = self._build_query(status, priority, category, assigned_to, created_by)

        cursor = self._tickets.find(query).sort("created_at", DESCENDING).skip(skip).limit(limit)

        tickets = []
        for doc in cursor:
            doc.pop("_id", None)
            tickets.append(Ticket.model_validate(doc))

        return tickets

    def count_tickets(
        self,
        status: Optional[TicketStatus] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        assigned_to: Optional[str] = None,
        created_by: Optional[str] = None
    ) -> int:
        """Count tickets with filters"""
        query = self._build_query(status, priority, category, assigned_to, created_by)
        return self._tickets.count_documents(query)

    def count_open_tickets_for_assignee(self, user_id: str) -> int:
        """Count tickets assigned to a user that are not resolved or closed"""
        return self._tickets.count_documents({
            "assigned_to": user_id,
            "status": {"$nin": [s.value for s in CLOSED_TICKET_STATUSES]}
        })

    def _build_query(
        self,
        status: Optional[TicketStatus],
        priority: Optional[str],
        category: Optional[str],
        assigned_to: Optional[str],
        created_by: Optional[str]
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if status:
            query["status"] = TicketStatus(status).value
        if priority:
            query["priority"] = priority
        if category:
            query["category"] = category
        if assigned_to:
            query["assigned_to"] = assigned_to
        if created_by:
            query["created_by"] = created_by
        return query

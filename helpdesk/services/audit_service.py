"""Audit Service - Read side of ticket history"""
from typing import Any, Dict, List, Optional

from ..domain.history import TicketHistoryEntry
from ..repositories.history_repo import HistoryRepository
from ..repositories.ticket_repo import TicketRepository
from ..repositories.user_repo import UserRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AuditService:
    """Ticket history, recent activity and activity stats"""

    def __init__(
        self,
        history_repo: Optional[HistoryRepository] = None,
        ticket_repo: Optional[TicketRepository] = None,
        user_repo: Optional[UserRepository] = None
    ):
        self.history_repo = history_repo or HistoryRepository()
        self.ticket_repo = ticket_repo or TicketRepository()
        self.user_repo = user_repo or UserRepository()

    def get_ticket_history(self, ticket_id: str) -> List[Dict[str, Any]]:
        """History of one ticket, newest first, with user names"""
        self.ticket_repo.get_ticket_or_raise(ticket_id)
        entries = self.history_repo.get_for_ticket(ticket_id)
        return self._with_users(entries)

    def get_recent_activity(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Latest entries across all tickets, with user names and ticket titles"""
        entries = self.history_repo.get_recent(limit=limit)
        items = self._with_users(entries)

        titles: Dict[str, str] = {}
        for item in items:
            ticket_id = item["ticket_id"]
            if ticket_id not in titles:
                ticket = self.ticket_repo.get_ticket(ticket_id)
                titles[ticket_id] = ticket.title if ticket else "Deleted Ticket"
            item["ticket_title"] = titles[ticket_id]

        return items

    def get_stats(self, days: int = 30) -> Dict[str, Any]:
        """Action counts and most active users over the last `days` days"""
        action_counts = self.history_repo.count_by_action(days=days)
        top = self.history_repo.top_users(days=days, limit=5)
        users = self.user_repo.get_users_by_ids([t["user_id"] for t in top])

        return {
            "total_actions": sum(action_counts.values()),
            "action_counts": action_counts,
            "top_users": [
                {
                    "user_id": t["user_id"],
                    "name": users[t["user_id"]].name if t["user_id"] in users else "Unknown User",
                    "count": t["count"],
                }
                for t in top
            ],
            "period_days": days,
        }

    def _with_users(self, entries: List[TicketHistoryEntry]) -> List[Dict[str, Any]]:
        users = self.user_repo.get_users_by_ids(list({e.user_id for e in entries}))

        items = []
        for entry in entries:
            user = users.get(entry.user_id)
            item = entry.to_document()
            item["user_name"] = user.name if user else "Unknown User"
            item["user_email"] = user.email if user else ""
            items.append(item)
        return items

"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection
from .ticket_repo import TicketRepository
from .approval_repo import ApprovalRepository
from .rule_repo import RuleRepository
from .team_repo import TeamRepository
from .user_repo import UserRepository
from .history_repo import HistoryRepository
from .notification_repo import NotificationRepository

__all__ = [
    "get_database",
    "get_collection",
    "TicketRepository",
    "ApprovalRepository",
    "RuleRepository",
    "TeamRepository",
    "UserRepository",
    "HistoryRepository",
    "NotificationRepository",
]

"""Service modules - Business logic layer"""
from .notification_service import NotificationService
from .ticket_service import TicketService
from .assignment_rule_service import AssignmentRuleService
from .team_service import TeamService
from .audit_service import AuditService
from .rate_limiter import RateLimiter

__all__ = [
    "NotificationService",
    "TicketService",
    "AssignmentRuleService",
    "TeamService",
    "AuditService",
    "RateLimiter",
]

"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class TicketStatus(str, Enum):
    """Ticket lifecycle status"""
    NEW = "new"
    NEED_APPROVAL = "need_approval"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    RESOLVED = "resolved"
    CLOSED = "closed"
    REJECTED = "rejected"


# Tickets in these statuses don't count towards an agent's workload
CLOSED_TICKET_STATUSES = (TicketStatus.RESOLVED, TicketStatus.CLOSED)


class TicketType(str, Enum):
    """Kind of ticket"""
    INCIDENT = "incident"
    SERVICE_REQUEST = "service_request"
    INQUIRY = "inquiry"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TicketUrgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ApprovalStatus(str, Enum):
    """Aggregate ticket approval status (derived from its approval requests)"""
    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalRequestStatus(str, Enum):
    """Status of a single per-stage approval request"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEED_MORE_INFO = "need_more_info"
    SKIPPED = "skipped"


class AssigneeType(str, Enum):
    """How the resolved assignee was picked (reported by rule previews)"""
    AGENT = "agent"
    TEAM_LEADER = "team_leader"
    TEAM_MEMBER = "team_member"
    ROUND_ROBIN = "round_robin"


class TeamRole(str, Enum):
    MEMBER = "member"
    LEADER = "leader"


class UserRole(str, Enum):
    USER = "user"
    AGENT = "agent"
    ADMIN = "admin"


class NotificationType(str, Enum):
    """Notification type identifiers"""
    TICKET_ASSIGNED = "ticket_assigned"
    APPROVAL_REQUESTED = "approval_requested"
    APPROVAL_APPROVED = "approval_approved"
    APPROVAL_REJECTED = "approval_rejected"
    APPROVAL_MORE_INFO_NEEDED = "approval_more_info_needed"

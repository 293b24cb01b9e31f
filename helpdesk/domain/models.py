"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field, EmailStr, ConfigDict

from .enums import (
    TicketStatus, TicketType, TicketPriority, TicketUrgency, ApprovalStatus,
    ApprovalRequestStatus, AssigneeType, TeamRole, UserRole
)


# ============================================================================
# Users & Teams
# ============================================================================

class User(BaseModel):
    """Helpdesk user (read-only to the engine)"""
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    user_id: str
    name: str
    email: EmailStr
    role: UserRole = Field(default=UserRole.USER)


class Team(BaseModel):
    """Support team"""
    model_config = ConfigDict(extra="ignore")

    team_id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    leader_id: Optional[str] = Field(None, description="User id of the current leader")
    created_at: datetime
    updated_at: datetime


class TeamMember(BaseModel):
    """Membership row linking a user to a team"""
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    member_id: str
    team_id: str
    user_id: str
    role: TeamRole = Field(default=TeamRole.MEMBER)
    joined_at: datetime


# ============================================================================
# Assignment Targets & Rules
# ============================================================================

class AgentTarget(BaseModel):
    """Assign directly to one agent"""
    model_config = ConfigDict(extra="forbid")

    type: Literal["agent"] = "agent"
    agent_id: str


class TeamTarget(BaseModel):
    """Assign to the team leader, or the earliest-joined member without one"""
    model_config = ConfigDict(extra="forbid")

    type: Literal["team"] = "team"
    team_id: str


class RoundRobinTarget(BaseModel):
    """Assign to the team member with the fewest open tickets"""
    model_config = ConfigDict(extra="forbid")

    type: Literal["round_robin"] = "round_robin"
    team_id: str


AssignTo = Annotated[
    Union[AgentTarget, TeamTarget, RoundRobinTarget],
    Field(discriminator="type")
]


class RuleConditions(BaseModel):
    """Match conditions - an empty list matches any value"""
    model_config = ConfigDict(extra="forbid")

    categories: List[str] = Field(default_factory=list)
    priorities: List[str] = Field(default_factory=list)
    types: List[str] = Field(default_factory=list)


class AssignmentRule(BaseModel):
    """Auto-assignment rule, evaluated in ascending priority order"""
    model_config = ConfigDict(extra="ignore")

    rule_id: str
    name: str
    description: Optional[str] = None
    is_active: bool = True
    priority: int = Field(..., description="Lower number = evaluated first")
    conditions: RuleConditions = Field(default_factory=RuleConditions)
    assign_to: AssignTo
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class RuleMatch(BaseModel):
    """Result of matching a ticket against the rule set"""
    rule_id: str
    rule_name: str
    assignee_id: Optional[str] = None
    assignee_type: Optional[AssigneeType] = None


# ============================================================================
# Tickets
# ============================================================================

class Ticket(BaseModel):
    """Ticket instance"""
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    ticket_id: str = Field(..., description="Unique ticket ID")
    title: str
    description: str = ""
    type: TicketType
    priority: TicketPriority
    urgency: TicketUrgency = Field(default=TicketUrgency.MEDIUM)
    category: str
    status: TicketStatus = Field(default=TicketStatus.NEW)
    approval_status: ApprovalStatus = Field(default=ApprovalStatus.NOT_REQUIRED)
    assigned_to: Optional[str] = None
    created_by: str
    form_id: Optional[str] = Field(None, description="Form the ticket was submitted through")
    form_data: Dict[str, Any] = Field(default_factory=dict)
    sla_deadline: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Approvals
# ============================================================================

class ApprovalStage(BaseModel):
    """One step of a form's approval sequence (template, not per ticket)"""
    model_config = ConfigDict(extra="ignore")

    stage_id: str
    form_id: str
    name: str
    order: int = Field(..., description="Sequence position, unique within the form")
    is_required: bool = True
    approver: Optional[AssignTo] = Field(None, description="Who approves this stage")
    created_at: datetime


class ApprovalRequest(BaseModel):
    """Per-ticket, per-stage approval decision"""
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    approval_request_id: str
    ticket_id: str
    stage_id: str
    approver_id: Optional[str] = None
    status: ApprovalRequestStatus = Field(default=ApprovalRequestStatus.PENDING)
    comments: Optional[str] = None
    requested_at: datetime
    responded_at: Optional[datetime] = None
    updated_at: datetime


# ============================================================================
# Notifications
# ============================================================================

class Notification(BaseModel):
    """In-app notification for one user"""
    model_config = ConfigDict(extra="ignore")

    notification_id: str
    user_id: str
    type: str
    title: str
    message: str
    read: bool = False
    ticket_id: Optional[str] = None
    created_at: datetime


# ============================================================================
# Engine Inputs & Results
# ============================================================================

class TicketCreate(BaseModel):
    """Fields a caller supplies when opening a ticket"""
    model_config = ConfigDict(extra="forbid", use_enum_values=True, str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    type: TicketType
    priority: TicketPriority
    urgency: TicketUrgency = Field(default=TicketUrgency.MEDIUM)
    category: str = Field(..., min_length=1)
    form_id: Optional[str] = None
    form_data: Dict[str, Any] = Field(default_factory=dict)
    sla_deadline: Optional[datetime] = None


class ApprovalActionResult(BaseModel):
    """Outcome of an approval action"""
    approval_request: ApprovalRequest
    ticket: Ticket
    approval_status: ApprovalStatus

"""
Shared API Schemas

Request models for approval, assignment rule, team and audit endpoints.
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from ...domain.models import AssignTo, RuleConditions
from ...domain.enums import TeamRole, TicketPriority, TicketType


# =============================================================================
# Approvals
# =============================================================================

class ApprovalDecisionRequest(BaseModel):
    """Request for approve/reject"""
    comments: Optional[str] = Field(None, max_length=2000)


class NeedMoreInfoRequest(BaseModel):
    """Comments are mandatory (blank is rejected by the engine)"""
    comments: str = Field(..., max_length=2000)


# =============================================================================
# Assignment Rules
# =============================================================================

class CreateRuleRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    is_active: bool = True
    priority: int = Field(..., ge=0)
    conditions: RuleConditions = Field(default_factory=RuleConditions)
    assign_to: AssignTo


class UpdateRuleRequest(BaseModel):
    """Partial update; only fields that are sent are changed"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    is_active: Optional[bool] = None
    priority: Optional[int] = Field(None, ge=0)
    conditions: Optional[RuleConditions] = None
    assign_to: Optional[AssignTo] = None


class ReorderRulesRequest(BaseModel):
    rule_ids: List[str] = Field(..., min_length=1)


class MatchRuleRequest(BaseModel):
    """Dry run input"""
    category: str
    priority: TicketPriority
    type: TicketType


class RuleStatsResponse(BaseModel):
    total: int
    active: int
    inactive: int


# =============================================================================
# Teams
# =============================================================================

class CreateTeamRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[str] = Field(None, max_length=20)


class AddMemberRequest(BaseModel):
    user_id: str
    role: TeamRole = TeamRole.MEMBER


class UpdateMemberRoleRequest(BaseModel):
    role: TeamRole

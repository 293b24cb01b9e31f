"""Assignment Rule Routes - Rule administration and dry-run matching"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Response, status

from ..deps import get_current_user_id_dep, get_engine
from ...domain.models import AssignmentRule, RuleMatch
from ...engine.engine import WorkflowEngine
from ...services.assignment_rule_service import AssignmentRuleService
from .schemas import (
    CreateRuleRequest, UpdateRuleRequest, ReorderRulesRequest, MatchRuleRequest, RuleStatsResponse
)

router = APIRouter()


# Static paths are registered before /{rule_id}

@router.get("", response_model=List[AssignmentRule])
async def list_rules(user_id: str = Depends(get_current_user_id_dep)):
    """All rules in evaluation order"""
    return AssignmentRuleService().list_rules()


@router.post("", response_model=AssignmentRule, status_code=status.HTTP_201_CREATED)
async def create_rule(
    request: CreateRuleRequest,
    user_id: str = Depends(get_current_user_id_dep)
):
    return AssignmentRuleService().create_rule(
        name=request.name,
        priority=request.priority,
        assign_to=request.assign_to,
        actor_id=user_id,
        conditions=request.conditions,
        description=request.description,
        is_active=request.is_active
    )


@router.get("/stats", response_model=RuleStatsResponse)
async def get_rule_stats(user_id: str = Depends(get_current_user_id_dep)):
    return AssignmentRuleService().get_stats()


@router.post("/reorder", response_model=List[AssignmentRule])
async def reorder_rules(
    request: ReorderRulesRequest,
    user_id: str = Depends(get_current_user_id_dep)
):
    """Priorities become list positions, starting at 1"""
    return AssignmentRuleService().reorder(request.rule_ids)


@router.post("/match", response_model=Optional[RuleMatch])
async def match_rule(
    request: MatchRuleRequest,
    user_id: str = Depends(get_current_user_id_dep),
    engine: WorkflowEngine = Depends(get_engine)
):
    """Which rule and assignee a ticket with these fields would get (no writes)"""
    return engine.find_matching_rule(request.category, request.priority.value, request.type.value)


@router.get("/{rule_id}", response_model=AssignmentRule)
async def get_rule(rule_id: str, user_id: str = Depends(get_current_user_id_dep)):
    return AssignmentRuleService().get_rule(rule_id)


@router.patch("/{rule_id}", response_model=AssignmentRule)
async def update_rule(
    rule_id: str,
    request: UpdateRuleRequest,
    user_id: str = Depends(get_current_user_id_dep)
):
    # Only description may be cleared with an explicit null
    updates = {
        key: value for key, value in request.model_dump(exclude_unset=True).items()
        if value is not None or key == "description"
    }
    return AssignmentRuleService().update_rule(rule_id, updates)


@router.post("/{rule_id}/toggle", response_model=AssignmentRule)
async def toggle_rule(rule_id: str, user_id: str = Depends(get_current_user_id_dep)):
    return AssignmentRuleService().toggle_active(rule_id)


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(rule_id: str, user_id: str = Depends(get_current_user_id_dep)):
    AssignmentRuleService().delete_rule(rule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

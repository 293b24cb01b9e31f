"""Team Routes - Support teams and membership"""
from typing import List
from fastapi import APIRouter, Depends, Response, status

from ..deps import get_current_user_id_dep
from ...domain.models import Team, TeamMember
from ...services.team_service import TeamService
from .schemas import CreateTeamRequest, AddMemberRequest, UpdateMemberRoleRequest

router = APIRouter()


@router.post("", response_model=Team, status_code=status.HTTP_201_CREATED)
async def create_team(request: CreateTeamRequest, user_id: str = Depends(get_current_user_id_dep)):
    return TeamService().create_team(request.name, request.description, request.color)


@router.get("/{team_id}", response_model=Team)
async def get_team(team_id: str, user_id: str = Depends(get_current_user_id_dep)):
    return TeamService().get_team(team_id)


@router.get("/{team_id}/members", response_model=List[TeamMember])
async def get_members(team_id: str, user_id: str = Depends(get_current_user_id_dep)):
    """Members, earliest joined first"""
    return TeamService().get_members(team_id)


@router.post("/{team_id}/members", response_model=TeamMember, status_code=status.HTTP_201_CREATED)
async def add_member(
    team_id: str,
    request: AddMemberRequest,
    user_id: str = Depends(get_current_user_id_dep)
):
    return TeamService().add_member(team_id, request.user_id, request.role)


@router.patch("/{team_id}/members/{member_user_id}", response_model=TeamMember)
async def update_member_role(
    team_id: str,
    member_user_id: str,
    request: UpdateMemberRoleRequest,
    user_id: str = Depends(get_current_user_id_dep)
):
    """Promoting to leader demotes the current leader"""
    return TeamService().update_member_role(team_id, member_user_id, request.role)


@router.delete("/{team_id}/members/{member_user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    team_id: str,
    member_user_id: str,
    user_id: str = Depends(get_current_user_id_dep)
):
    TeamService().remove_member(team_id, member_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

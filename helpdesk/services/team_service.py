"""Team Service - Teams, membership and the single-leader rule"""
from typing import List, Optional

from ..domain.models import Team, TeamMember
from ..domain.enums import TeamRole, UserRole
from ..domain.errors import AlreadyExistsError, NotFoundError, UserNotFoundError, ValidationError
from ..repositories.team_repo import TeamRepository
from ..repositories.user_repo import UserRepository
from ..utils.idgen import generate_team_id, generate_member_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TeamService:
    """
    Service for support teams

    A team has at most one leader. Promoting a member demotes the previous
    leader; removing or demoting the leader clears the team's leader_id.
    """

    def __init__(
        self,
        team_repo: Optional[TeamRepository] = None,
        user_repo: Optional[UserRepository] = None
    ):
        self.team_repo = team_repo or TeamRepository()
        self.user_repo = user_repo or UserRepository()

    def create_team(
        self,
        name: str,
        description: Optional[str] = None,
        color: Optional[str] = None
    ) -> Team:
        if self.team_repo.get_team_by_name(name):
            raise AlreadyExistsError(
                "A team with this name already exists",
                details={"name": name}
            )

        now = utc_now()
        team = Team(
            team_id=generate_team_id(),
            name=name,
            description=description,
            color=color,
            leader_id=None,
            created_at=now,
            updated_at=now
        )
        return self.team_repo.create_team(team)

    def get_team(self, team_id: str) -> Team:
        return self.team_repo.get_team_or_raise(team_id)

    def get_members(self, team_id: str) -> List[TeamMember]:
        self.team_repo.get_team_or_raise(team_id)
        return self.team_repo.get_members(team_id)

    def add_member(
        self,
        team_id: str,
        user_id: str,
        role: TeamRole = TeamRole.MEMBER
    ) -> TeamMember:
        """Add an agent to a team (as leader when role says so)"""
        self.team_repo.get_team_or_raise(team_id)

        if self.team_repo.get_member(team_id, user_id):
            raise AlreadyExistsError(
                "User is already a member of this team",
                details={"team_id": team_id, "user_id": user_id}
            )

        user = self.user_repo.get_user(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found", details={"user_id": user_id})
        if user.role != UserRole.AGENT.value:
            raise ValidationError(
                "Only agents can be added to support teams",
                details={"user_id": user_id, "role": user.role}
            )

        member = TeamMember(
            member_id=generate_member_id(),
            team_id=team_id,
            user_id=user_id,
            role=TeamRole.MEMBER,
            joined_at=utc_now()
        )
        self.team_repo.add_member(member)

        if TeamRole(role) == TeamRole.LEADER:
            return self.update_member_role(team_id, user_id, TeamRole.LEADER)
        return member

    def update_member_role(self, team_id: str, user_id: str, role: TeamRole) -> TeamMember:
        """Change a member's role, keeping a single leader per team"""
        team = self.team_repo.get_team_or_raise(team_id)
        role = TeamRole(role)

        self.team_repo.set_member_role(team_id, user_id, role)

        if role == TeamRole.LEADER:
            demoted = self.team_repo.demote_leaders(team_id, except_user_id=user_id)
            self.team_repo.set_leader(team_id, user_id)
            logger.info(
                f"Promoted team leader, demoted {demoted} previous leader(s)",
                extra={"user_id": user_id}
            )
        elif team.leader_id == user_id:
            self.team_repo.set_leader(team_id, None)

        return self.team_repo.get_member(team_id, user_id)

    def remove_member(self, team_id: str, user_id: str) -> None:
        team = self.team_repo.get_team_or_raise(team_id)
        if not self.team_repo.remove_member(team_id, user_id):
            raise NotFoundError(
                "User is not a member of this team",
                details={"team_id": team_id, "user_id": user_id}
            )

        if team.leader_id == user_id:
            self.team_repo.set_leader(team_id, None)
            logger.info("Removed team leader, team has no leader now", extra={"user_id": user_id})

"""Team Repository - Data access for teams and team membership"""
from typing import List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING

from .mongo_client import get_collection
from ..domain.models import Team, TeamMember
from ..domain.enums import TeamRole
from ..domain.errors import TeamNotFoundError, NotFoundError
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TeamRepository:
    """Repository for team operations"""

    def __init__(self):
        self._teams: Collection = get_collection("teams")
        self._members: Collection = get_collection("team_members")

    # =========================================================================
    # Teams
    # =========================================================================

    def create_team(self, team: Team) -> Team:
        doc = team.model_dump()
        doc["_id"] = team.team_id

        self._teams.insert_one(doc)
        logger.info(f"Created team: {team.name}")
        return team

    def get_team(self, team_id: str) -> Optional[Team]:
        doc = self._teams.find_one({"team_id": team_id})
        if doc:
            doc.pop("_id", None)
            return Team.model_validate(doc)
        return None

    def get_team_or_raise(self, team_id: str) -> Team:
        team = self.get_team(team_id)
        if not team:
            raise TeamNotFoundError(f"Team {team_id} not found", details={"team_id": team_id})
        return team

    def get_team_by_name(self, name: str) -> Optional[Team]:
        doc = self._teams.find_one({"name": name})
        if doc:
            doc.pop("_id", None)
            return Team.model_validate(doc)
        return None

    def set_leader(self, team_id: str, leader_id: Optional[str]) -> None:
        """Set (or clear) the team's leader back-reference"""
        result = self._teams.update_one(
            {"team_id": team_id},
            {"$set": {"leader_id": leader_id, "updated_at": utc_now()}}
        )
        if result.matched_count == 0:
            raise TeamNotFoundError(f"Team {team_id} not found", details={"team_id": team_id})

    # =========================================================================
    # Members
    # =========================================================================

    def add_member(self, member: TeamMember) -> TeamMember:
        doc = member.model_dump()
        doc["_id"] = member.member_id

        self._members.insert_one(doc)
        logger.info(
            f"Added member to team {member.team_id}",
            extra={"user_id": member.user_id}
        )
        return member

    def get_member(self, team_id: str, user_id: str) -> Optional[TeamMember]:
        doc = self._members.find_one({"team_id": team_id, "user_id": user_id})
        if doc:
            doc.pop("_id", None)
            return TeamMember.model_validate(doc)
        return None

    def get_members(self, team_id: str) -> List[TeamMember]:
        """Get team members, earliest joined first"""
        cursor = self._members.find({"team_id": team_id}).sort([
            ("joined_at", ASCENDING),
            ("member_id", ASCENDING),
        ])

        members = []
        for doc in cursor:
            doc.pop("_id", None)
            members.append(TeamMember.model_validate(doc))

        return members

    def set_member_role(self, team_id: str, user_id: str, role: TeamRole) -> None:
        result = self._members.update_one(
            {"team_id": team_id, "user_id": user_id},
            {"$set": {"role": TeamRole(role).value}}
        )
        if result.matched_count == 0:
            raise NotFoundError(
                "User is not a member of this team",
                details={"team_id": team_id, "user_id": user_id}
            )

    def demote_leaders(self, team_id: str, except_user_id: Optional[str] = None) -> int:
        """Reset every leader row of a team (but one) back to member"""
        query = {"team_id": team_id, "role": TeamRole.LEADER.value}
        if except_user_id:
            query["user_id"] = {"$ne": except_user_id}
        result = self._members.update_many(query, {"$set": {"role": TeamRole.MEMBER.value}})
        return result.modified_count

    def remove_member(self, team_id: str, user_id: str) -> bool:
        result = self._members.delete_one({"team_id": team_id, "user_id": user_id})
        return result.deleted_count > 0

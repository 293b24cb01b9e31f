"""Assignee Resolver - Turn an assignment target into a concrete user"""
from typing import List, NamedTuple, Optional, Sequence

from ..domain.models import AgentTarget, TeamTarget, RoundRobinTarget, AssignTo
from ..domain.enums import AssigneeType
from ..domain.errors import ValidationError
from ..repositories.team_repo import TeamRepository
from ..repositories.ticket_repo import TicketRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ResolvedAssignee(NamedTuple):
    user_id: Optional[str]
    assignee_type: AssigneeType


def least_loaded(member_ids: Sequence[str], open_counts: Sequence[int]) -> Optional[str]:
    """
    Pick the member with the fewest open tickets

    Ties go to the first member in the given order.
    """
    best_id = None
    best_count = None
    for member_id, count in zip(member_ids, open_counts):
        if best_count is None or count < best_count:
            best_id = member_id
            best_count = count
    return best_id


class AssigneeResolver:
    """
    Resolve assignment targets to user ids

    - agent: the configured agent
    - team: the team leader, else the earliest-joined member
    - round_robin: the member with the fewest open tickets

    Read-only: callers persist the assignment themselves.
    """

    def __init__(
        self,
        team_repo: Optional[TeamRepository] = None,
        ticket_repo: Optional[TicketRepository] = None
    ):
        self.team_repo = team_repo or TeamRepository()
        self.ticket_repo = ticket_repo or TicketRepository()

    def resolve(self, target: AssignTo) -> Optional[str]:
        """Resolve a target to a user id (None when nobody is available)"""
        return self.resolve_with_type(target).user_id

    def resolve_with_type(self, target: AssignTo) -> ResolvedAssignee:
        """Resolve a target, also reporting how the user was picked"""
        match target:
            case AgentTarget(agent_id=agent_id):
                return ResolvedAssignee(agent_id, AssigneeType.AGENT)
            case TeamTarget(team_id=team_id):
                return self._resolve_team(team_id)
            case RoundRobinTarget(team_id=team_id):
                return ResolvedAssignee(self._resolve_round_robin(team_id), AssigneeType.ROUND_ROBIN)
            case _:
                # Only validated target models are accepted
                raise ValidationError(
                    f"Unsupported assignment target: {type(target).__name__}",
                    details={"target": repr(target)}
                )

    def _resolve_team(self, team_id: str) -> ResolvedAssignee:
        team = self.team_repo.get_team(team_id)
        if team and team.leader_id:
            return ResolvedAssignee(team.leader_id, AssigneeType.TEAM_LEADER)

        members = self.team_repo.get_members(team_id)
        if not members:
            logger.warning(f"Team {team_id} has no leader and no members")
            return ResolvedAssignee(None, AssigneeType.TEAM_MEMBER)

        return ResolvedAssignee(members[0].user_id, AssigneeType.TEAM_MEMBER)

    def _resolve_round_robin(self, team_id: str) -> Optional[str]:
        members = self.team_repo.get_members(team_id)
        if not members:
            logger.warning(f"Round robin team {team_id} has no members")
            return None

        member_ids: List[str] = [m.user_id for m in members]
        counts = [self.ticket_repo.count_open_tickets_for_assignee(uid) for uid in member_ids]

        chosen = least_loaded(member_ids, counts)
        logger.debug(
            f"Round robin picked {chosen} from open counts {dict(zip(member_ids, counts))}",
            extra={"user_id": chosen}
        )
        return chosen

"""
Tests for resolving assignment targets to users.
"""

import pytest

from helpdesk.domain.enums import AssigneeType, TeamRole, TicketStatus
from helpdesk.domain.errors import ValidationError
from helpdesk.domain.models import AgentTarget, RoundRobinTarget, TeamTarget
from helpdesk.engine.assignee_resolver import AssigneeResolver, least_loaded


class TestLeastLoaded:
    """Tests for the round robin pick."""

    def test_first_minimum_wins(self):
        """Counts [3, 1, 1, 5] pick the second member, not the third."""
        assert least_loaded(["a", "b", "c", "d"], [3, 1, 1, 5]) == "b"

    def test_empty_team(self):
        assert least_loaded([], []) is None


class TestAgentTarget:
    def test_returns_configured_agent(self):
        resolved = AssigneeResolver().resolve_with_type(AgentTarget(agent_id="agent-7"))

        assert resolved.user_id == "agent-7"
        assert resolved.assignee_type == AssigneeType.AGENT


class TestTeamTarget:
    """Tests for team targets."""

    def test_leader_preferred(self, factory):
        team = factory.team(leader_id="agent-2")
        factory.member(team, "agent-1")
        factory.member(team, "agent-2", role=TeamRole.LEADER)

        resolved = AssigneeResolver().resolve_with_type(TeamTarget(team_id=team.team_id))

        assert resolved.user_id == "agent-2"
        assert resolved.assignee_type == AssigneeType.TEAM_LEADER

    def test_earliest_member_without_leader(self, factory):
        """Without a leader the earliest-joined member is picked."""
        team = factory.team()
        factory.member(team, "agent-3")
        factory.member(team, "agent-1")

        resolved = AssigneeResolver().resolve_with_type(TeamTarget(team_id=team.team_id))

        assert resolved.user_id == "agent-3"
        assert resolved.assignee_type == AssigneeType.TEAM_MEMBER

    def test_empty_team_resolves_nobody(self, factory):
        team = factory.team()

        assert AssigneeResolver().resolve(TeamTarget(team_id=team.team_id)) is None

    def test_unknown_team_resolves_nobody(self, factory):
        assert AssigneeResolver().resolve(TeamTarget(team_id="TEAM-missing")) is None


class TestRoundRobinTarget:
    """Tests for least-loaded assignment."""

    def test_picks_fewest_open_tickets(self, factory):
        """Open counts [3, 1, 1, 5] resolve to the second member."""
        team = factory.team()
        for user_id, open_count in [("a", 3), ("b", 1), ("c", 1), ("d", 5)]:
            factory.member(team, user_id)
            for _ in range(open_count):
                factory.ticket(assigned_to=user_id, status=TicketStatus.IN_PROGRESS)

        resolved = AssigneeResolver().resolve_with_type(RoundRobinTarget(team_id=team.team_id))

        assert resolved.user_id == "b"
        assert resolved.assignee_type == AssigneeType.ROUND_ROBIN

    def test_resolved_and_closed_tickets_do_not_count(self, factory):
        team = factory.team()
        factory.member(team, "busy")
        factory.member(team, "idle")
        factory.ticket(assigned_to="busy", status=TicketStatus.NEW)
        for _ in range(3):
            factory.ticket(assigned_to="idle", status=TicketStatus.CLOSED)
        factory.ticket(assigned_to="idle", status=TicketStatus.RESOLVED)

        assert AssigneeResolver().resolve(RoundRobinTarget(team_id=team.team_id)) == "idle"

    def test_empty_team_resolves_nobody(self, factory):
        team = factory.team()

        assert AssigneeResolver().resolve(RoundRobinTarget(team_id=team.team_id)) is None


class TestUnsupportedTarget:
    def test_unknown_target_type_raises(self):
        with pytest.raises(ValidationError):
            AssigneeResolver().resolve({"type": "agent", "agent_id": "x"})

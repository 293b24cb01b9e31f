"""
Pytest Configuration and Fixtures

Every test runs against a fresh in-memory MongoDB (mongomock) swapped into
the repository layer's client globals.
"""

import os
import tempfile
from datetime import timedelta
from typing import Any, Dict, List, Optional

# Must be set before helpdesk settings are first imported
os.environ.setdefault("LOGS_PATH", tempfile.mkdtemp(prefix="helpdesk-logs-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import mongomock
import pytest
from fastapi.testclient import TestClient

from helpdesk.config.settings import Settings
from helpdesk.domain.enums import TeamRole, TicketStatus, ApprovalStatus, UserRole
from helpdesk.domain.models import (
    AgentTarget, ApprovalStage, AssignmentRule, RuleConditions, Team, TeamMember, Ticket, User
)
from helpdesk.engine.engine import WorkflowEngine
from helpdesk.main import create_app
from helpdesk.repositories import mongo_client
from helpdesk.repositories.approval_repo import ApprovalRepository
from helpdesk.repositories.rule_repo import RuleRepository
from helpdesk.repositories.team_repo import TeamRepository
from helpdesk.repositories.ticket_repo import TicketRepository
from helpdesk.repositories.user_repo import UserRepository
from helpdesk.utils.idgen import generate_id
from helpdesk.utils.time import utc_now


@pytest.fixture(autouse=True)
def mongo_db(monkeypatch):
    """Fresh mongomock database for each test."""
    client = mongomock.MongoClient(tz_aware=True)
    database = client["helpdesk_test"]
    monkeypatch.setattr(mongo_client, "_client", client)
    monkeypatch.setattr(mongo_client, "_database", database)
    mongo_client.create_indexes()
    yield database


class Factory:
    """Builds and stores domain objects with sensible defaults."""

    def __init__(self):
        self.users = UserRepository()
        self.teams = TeamRepository()
        self.rules = RuleRepository()
        self.approvals = ApprovalRepository()
        self.tickets = TicketRepository()
        self._base = utc_now()
        self._tick = 0

    def _next_time(self):
        # Strictly increasing timestamps so ordering by time is deterministic
        self._tick += 1
        return self._base + timedelta(milliseconds=self._tick)

    def user(self, user_id: str, name: Optional[str] = None, role: UserRole = UserRole.AGENT) -> User:
        user = User(
            user_id=user_id,
            name=name or user_id.replace("-", " ").title(),
            email=f"{user_id.lower()}@example.com",
            role=role,
        )
        return self.users.create_user(user)

    def team(self, name: str = "Support", leader_id: Optional[str] = None) -> Team:
        now = self._next_time()
        team = Team(
            team_id=generate_id("TEAM"),
            name=name,
            leader_id=leader_id,
            created_at=now,
            updated_at=now,
        )
        return self.teams.create_team(team)

    def member(self, team: Team, user_id: str, role: TeamRole = TeamRole.MEMBER) -> TeamMember:
        member = TeamMember(
            member_id=generate_id("MEM"),
            team_id=team.team_id,
            user_id=user_id,
            role=role,
            joined_at=self._next_time(),
        )
        return self.teams.add_member(member)

    def rule(
        self,
        name: str,
        priority: int,
        assign_to: Any = None,
        is_active: bool = True,
        **conditions: List[str]
    ) -> AssignmentRule:
        now = self._next_time()
        rule = AssignmentRule(
            rule_id=generate_id("RULE"),
            name=name,
            priority=priority,
            is_active=is_active,
            conditions=RuleConditions(**conditions),
            assign_to=assign_to or AgentTarget(agent_id="agent-1"),
            created_by="admin",
            created_at=now,
            updated_at=now,
        )
        return self.rules.create_rule(rule)

    def stage(
        self,
        form_id: str,
        name: str,
        order: int,
        approver_id: Optional[str] = None,
        is_required: bool = True
    ) -> ApprovalStage:
        stage = ApprovalStage(
            stage_id=generate_id("STG"),
            form_id=form_id,
            name=name,
            order=order,
            is_required=is_required,
            approver=AgentTarget(agent_id=approver_id) if approver_id else None,
            created_at=self._next_time(),
        )
        return self.approvals.create_stage(stage)

    def ticket(
        self,
        assigned_to: Optional[str] = None,
        status: TicketStatus = TicketStatus.NEW,
        created_by: str = "requester",
        **fields: Any
    ) -> Ticket:
        now = self._next_time()
        data: Dict[str, Any] = {
            "ticket_id": generate_id("TKT"),
            "title": "Laptop will not boot",
            "type": "incident",
            "priority": "medium",
            "category": "hardware",
            "status": status,
            "approval_status": ApprovalStatus.NOT_REQUIRED,
            "assigned_to": assigned_to,
            "created_by": created_by,
            "created_at": now,
            "updated_at": now,
        }
        data.update(fields)
        return self.tickets.create_ticket(Ticket(**data))


@pytest.fixture
def factory() -> Factory:
    return Factory()


@pytest.fixture
def engine() -> WorkflowEngine:
    return WorkflowEngine()


@pytest.fixture
def purchase_form(factory):
    """Two-stage form: manager then finance; returns the form id."""
    factory.user("requester", name="Rita Requester", role=UserRole.USER)
    factory.user("manager", name="Max Manager")
    factory.user("finance", name="Fay Finance")
    factory.stage("FORM-purchase", "Manager Approval", 1, approver_id="manager")
    factory.stage("FORM-purchase", "Finance Approval", 2, approver_id="finance")
    return "FORM-purchase"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        mongo_db="helpdesk_test",
        approval_rate_limit_requests=30,
        approval_rate_limit_window_seconds=60,
        debug=False,
        environment="test",
    )


@pytest.fixture
def client(test_settings) -> TestClient:
    """HTTP client for a fresh app (lifespan not run; the database is already wired)."""
    return TestClient(create_app(test_settings))

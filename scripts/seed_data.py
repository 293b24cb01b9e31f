"""
Seed Data Script - Demo users, a support team, assignment rules and a
two-stage approval form

Run: python -m scripts.seed_data [--reset]
"""
import argparse

from helpdesk.repositories.mongo_client import get_database, create_indexes
from helpdesk.repositories import ApprovalRepository, UserRepository
from helpdesk.domain.models import (
    User, ApprovalStage, AgentTarget, TeamTarget, RoundRobinTarget, RuleConditions
)
from helpdesk.domain.enums import TeamRole, UserRole
from helpdesk.services.team_service import TeamService
from helpdesk.services.assignment_rule_service import AssignmentRuleService
from helpdesk.utils.idgen import generate_stage_id
from helpdesk.utils.time import utc_now
from helpdesk.utils.logger import setup_logging, get_logger

logger = get_logger(__name__)

SEEDED_COLLECTIONS = (
    "users", "teams", "team_members", "assignment_rules", "approval_stages",
)

DEMO_USERS = [
    ("USR-admin", "Alex Admin", "admin@example.com", UserRole.ADMIN),
    ("USR-agent-1", "Sam Support", "sam@example.com", UserRole.AGENT),
    ("USR-agent-2", "Riley Rivera", "riley@example.com", UserRole.AGENT),
    ("USR-agent-3", "Jordan Lee", "jordan@example.com", UserRole.AGENT),
    ("USR-manager", "Morgan Manager", "morgan@example.com", UserRole.AGENT),
    ("USR-finance", "Casey Finance", "casey@example.com", UserRole.AGENT),
    ("USR-user", "Taylor User", "taylor@example.com", UserRole.USER),
]

PURCHASE_FORM_ID = "FORM-purchase-request"


def reset() -> None:
    db = get_database()
    for name in SEEDED_COLLECTIONS:
        db[name].delete_many({})
    print(f"Cleared collections: {', '.join(SEEDED_COLLECTIONS)}")


def seed_users() -> None:
    repo = UserRepository()
    for user_id, name, email, role in DEMO_USERS:
        if repo.get_user(user_id):
            continue
        repo.create_user(User(user_id=user_id, name=name, email=email, role=role))
    print(f"Seeded {len(DEMO_USERS)} users")


def seed_team() -> str:
    service = TeamService()
    team = service.create_team("IT Support", "First line IT support", "#2563eb")
    service.add_member(team.team_id, "USR-agent-1", TeamRole.LEADER)
    service.add_member(team.team_id, "USR-agent-2")
    service.add_member(team.team_id, "USR-agent-3")
    print(f"Created team: {team.team_id}")
    return team.team_id


def seed_rules(team_id: str) -> None:
    service = AssignmentRuleService()
    service.create_rule(
        name="Critical incidents to team lead",
        priority=1,
        conditions=RuleConditions(priorities=["critical"], types=["incident"]),
        assign_to=TeamTarget(team_id=team_id),
        actor_id="USR-admin",
    )
    service.create_rule(
        name="Hardware requests",
        priority=2,
        conditions=RuleConditions(categories=["Hardware"]),
        assign_to=AgentTarget(agent_id="USR-agent-3"),
        actor_id="USR-admin",
    )
    service.create_rule(
        name="Everything else round robin",
        priority=3,
        assign_to=RoundRobinTarget(team_id=team_id),
        actor_id="USR-admin",
    )
    print("Created 3 assignment rules")


def seed_approval_form() -> None:
    repo = ApprovalRepository()
    now = utc_now()
    stages = [
        ApprovalStage(
            stage_id=generate_stage_id(),
            form_id=PURCHASE_FORM_ID,
            name="Manager Approval",
            order=1,
            approver=AgentTarget(agent_id="USR-manager"),
            created_at=now,
        ),
        ApprovalStage(
            stage_id=generate_stage_id(),
            form_id=PURCHASE_FORM_ID,
            name="Finance Approval",
            order=2,
            approver=AgentTarget(agent_id="USR-finance"),
            created_at=now,
        ),
    ]
    for stage in stages:
        repo.create_stage(stage)
    print(f"Created approval form {PURCHASE_FORM_ID} with {len(stages)} stages")


def main():
    parser = argparse.ArgumentParser(description="Seed demo helpdesk data")
    parser.add_argument("--reset", action="store_true", help="Clear seeded collections first")
    args = parser.parse_args()

    setup_logging()
    create_indexes()
    if args.reset:
        reset()

    seed_users()
    team_id = seed_team()
    seed_rules(team_id)
    seed_approval_form()
    print("\nSeed complete.")


if __name__ == "__main__":
    main()

"""
Tests for the workflow engine: intake, auto-assignment and approval flows.
"""

import pytest
from unittest.mock import patch

from helpdesk.domain.enums import ApprovalRequestStatus, ApprovalStatus, TicketStatus, UserRole
from helpdesk.domain.errors import (
    ApprovalRequestNotFoundError, InvalidStateError, PermissionDeniedError, ValidationError
)
from helpdesk.domain.models import AgentTarget, RoundRobinTarget
from helpdesk.engine.approval_state import compute_aggregate_status
from helpdesk.engine.engine import _Clock
from helpdesk.repositories.approval_repo import ApprovalRepository
from helpdesk.repositories.history_repo import HistoryRepository
from helpdesk.repositories.ticket_repo import TicketRepository
from helpdesk.utils.time import utc_now

PURCHASE = {
    "title": "New monitor",
    "description": "27 inch for the design team",
    "type": "service_request",
    "priority": "medium",
    "category": "purchase",
}


def notifications_for(db, user_id):
    return list(db["notifications"].find({"user_id": user_id}))


def history_actions(ticket_id):
    """Actions newest first"""
    return [entry.action for entry in HistoryRepository().get_for_ticket(ticket_id)]


def chain(ticket_id):
    """Requests of a ticket keyed by approver"""
    return {r.approver_id: r for r in ApprovalRepository().get_requests_for_ticket(ticket_id)}


class TestCreateTicket:
    """Tests for ticket intake."""

    def test_plain_ticket_is_new_and_unassigned(self, engine):
        ticket = engine.create_ticket(
            {"title": "VPN drops", "type": "incident", "priority": "high", "category": "network"},
            actor_id="requester",
        )

        assert ticket.status == TicketStatus.NEW.value
        assert ticket.approval_status == ApprovalStatus.NOT_REQUIRED.value
        assert ticket.assigned_to is None
        assert history_actions(ticket.ticket_id) == ["created"]

    def test_invalid_fields_raise_validation_error(self, engine):
        with pytest.raises(ValidationError) as exc:
            engine.create_ticket({"title": "", "type": "incident", "priority": "urgent"}, "requester")

        assert exc.value.details["errors"]

    def test_matching_rule_assigns_and_notifies(self, engine, factory, mongo_db):
        rule = factory.rule("Network", 1, AgentTarget(agent_id="agent-1"), categories=["network"])

        ticket = engine.create_ticket(
            {"title": "VPN drops", "type": "incident", "priority": "high", "category": "network"},
            actor_id="requester",
        )

        assert ticket.assigned_to == "agent-1"
        assert TicketRepository().get_ticket(ticket.ticket_id).assigned_to == "agent-1"

        entries = HistoryRepository().get_for_ticket(ticket.ticket_id)
        assert [e.action for e in entries] == ["auto_assigned", "created"]
        assert entries[0].event.new_value.rule_id == rule.rule_id

        notes = notifications_for(mongo_db, "agent-1")
        assert len(notes) == 1
        assert notes[0]["type"] == "ticket_assigned"
        assert notes[0]["message"] == 'You have been assigned to ticket: "VPN drops"'

    def test_round_robin_rule_balances_load(self, engine, factory):
        team = factory.team()
        factory.member(team, "agent-1")
        factory.member(team, "agent-2")
        factory.ticket(assigned_to="agent-1")
        factory.rule("Balanced", 1, RoundRobinTarget(team_id=team.team_id))

        ticket = engine.create_ticket(PURCHASE, actor_id="requester")

        assert ticket.assigned_to == "agent-2"

    def test_form_with_stages_needs_approval(self, engine, purchase_form, mongo_db):
        ticket = engine.create_ticket({**PURCHASE, "form_id": purchase_form}, actor_id="requester")

        assert ticket.status == TicketStatus.NEED_APPROVAL.value
        assert ticket.approval_status == ApprovalStatus.PENDING.value
        assert set(chain(ticket.ticket_id)) == {"manager", "finance"}
        assert history_actions(ticket.ticket_id) == ["approval_requested", "created"]

        # Only the first stage's approver hears about it up front
        assert len(notifications_for(mongo_db, "manager")) == 1
        assert notifications_for(mongo_db, "finance") == []


class TestApprovalFlow:
    """Tests for the two-stage approval chain."""

    @pytest.fixture
    def ticket(self, engine, purchase_form):
        return engine.create_ticket({**PURCHASE, "form_id": purchase_form}, actor_id="requester")

    def test_sequential_approval(self, engine, ticket, mongo_db):
        """Stage 1 approval notifies stage 2; stage 2 approval completes the chain."""
        requests = chain(ticket.ticket_id)

        first = engine.approve(requests["manager"].approval_request_id, "manager", "fine by me")

        assert first.approval_request.status == ApprovalRequestStatus.APPROVED.value
        assert first.approval_status == ApprovalStatus.PENDING
        assert first.ticket.status == TicketStatus.NEED_APPROVAL.value
        finance_notes = notifications_for(mongo_db, "finance")
        assert len(finance_notes) == 1
        assert finance_notes[0]["message"] == (
            'The ticket "New monitor" requires your approval at stage: Finance Approval'
        )

        second = engine.approve(requests["finance"].approval_request_id, "finance")

        assert second.approval_status == ApprovalStatus.APPROVED
        assert second.ticket.status == TicketStatus.IN_PROGRESS.value
        assert second.ticket.approval_status == ApprovalStatus.APPROVED.value
        assert history_actions(ticket.ticket_id)[:2] == ["status_changed", "approval_approved"]

    def test_approving_stage_one_notifies_only_next_approver(self, engine, ticket, mongo_db):
        requests = chain(ticket.ticket_id)
        before = mongo_db["notifications"].count_documents({})

        engine.approve(requests["manager"].approval_request_id, "manager")

        new_notes = list(mongo_db["notifications"].find().skip(before))
        approval_notes = [n for n in new_notes if n["type"] == "approval_requested"]
        assert [n["user_id"] for n in approval_notes] == ["finance"]
        assert {n["user_id"] for n in new_notes} == {"finance", "requester"}

    def test_rejection_rejects_ticket(self, engine, ticket, mongo_db):
        """Rejecting stage 1 rejects the ticket and leaves stage 2 pending."""
        requests = chain(ticket.ticket_id)

        result = engine.reject(requests["manager"].approval_request_id, "manager", "over budget")

        assert result.approval_status == ApprovalStatus.REJECTED
        assert result.ticket.status == TicketStatus.REJECTED.value
        assert chain(ticket.ticket_id)["finance"].status == ApprovalRequestStatus.PENDING.value
        assert notifications_for(mongo_db, "finance") == []

        rejected = [n for n in notifications_for(mongo_db, "requester") if n["type"] == "approval_rejected"]
        assert rejected[0]["message"].endswith(" - over budget")

    def test_decision_after_rejection_keeps_ticket_rejected(self, engine, ticket):
        requests = chain(ticket.ticket_id)
        engine.reject(requests["manager"].approval_request_id, "manager")

        result = engine.approve(requests["finance"].approval_request_id, "finance")

        assert result.approval_status == ApprovalStatus.REJECTED
        assert result.ticket.status == TicketStatus.REJECTED.value

    def test_approved_ticket_stays_approved(self, engine, ticket):
        """Once every stage is approved no further decision is accepted."""
        requests = chain(ticket.ticket_id)
        engine.approve(requests["manager"].approval_request_id, "manager")
        engine.approve(requests["finance"].approval_request_id, "finance")

        with pytest.raises(InvalidStateError):
            engine.reject(requests["finance"].approval_request_id, "finance")

        stored = TicketRepository().get_ticket(ticket.ticket_id)
        assert stored.approval_status == ApprovalStatus.APPROVED.value

    def test_more_info_then_resubmit(self, engine, ticket, mongo_db):
        request_id = chain(ticket.ticket_id)["manager"].approval_request_id

        asked = engine.need_more_info(request_id, "manager", "need budget code")

        assert asked.approval_request.status == ApprovalRequestStatus.NEED_MORE_INFO.value
        assert asked.approval_request.comments == "need budget code"
        assert asked.approval_status == ApprovalStatus.PENDING
        more_info = [n for n in notifications_for(mongo_db, "requester")
                     if n["type"] == "approval_more_info_needed"]
        assert len(more_info) == 1

        resubmitted = engine.resubmit(request_id, actor_id="requester")

        assert resubmitted.approval_request.status == ApprovalRequestStatus.PENDING.value
        assert resubmitted.approval_request.comments is None
        assert resubmitted.approval_request.responded_at is None
        assert len(notifications_for(mongo_db, "manager")) == 2
        assert history_actions(ticket.ticket_id)[:2] == ["approval_resubmitted", "approval_more_info"]

    def test_more_info_requires_comments(self, engine, ticket):
        request_id = chain(ticket.ticket_id)["manager"].approval_request_id

        with pytest.raises(ValidationError):
            engine.need_more_info(request_id, "manager", "  ")

        assert chain(ticket.ticket_id)["manager"].status == ApprovalRequestStatus.PENDING.value

    def test_only_the_approver_can_decide(self, engine, ticket):
        request_id = chain(ticket.ticket_id)["manager"].approval_request_id

        with pytest.raises(PermissionDeniedError) as exc:
            engine.approve(request_id, "finance")

        assert exc.value.message == "You are not authorized to approve this request"

    def test_denied_messages_name_the_action(self, engine, ticket):
        request_id = chain(ticket.ticket_id)["manager"].approval_request_id

        with pytest.raises(PermissionDeniedError) as rejected:
            engine.reject(request_id, "finance")
        with pytest.raises(PermissionDeniedError) as asked:
            engine.need_more_info(request_id, "finance", "which budget?")

        assert rejected.value.message == "You are not authorized to reject this request"
        assert asked.value.message == (
            "You are not authorized to request more information for this request"
        )

    def test_stranger_cannot_resubmit(self, engine, ticket):
        request_id = chain(ticket.ticket_id)["manager"].approval_request_id
        engine.need_more_info(request_id, "manager", "need budget code")

        with pytest.raises(PermissionDeniedError):
            engine.resubmit(request_id, actor_id="someone-else")

    def test_resubmit_pending_request_fails(self, engine, ticket):
        request_id = chain(ticket.ticket_id)["manager"].approval_request_id

        with pytest.raises(InvalidStateError):
            engine.resubmit(request_id, actor_id="requester")

    def test_unknown_request(self, engine):
        with pytest.raises(ApprovalRequestNotFoundError):
            engine.approve("APR-missing", "manager")

    def test_lost_race_raises_invalid_state(self, engine, ticket):
        """A concurrent decision landing first makes the compare-and-set miss."""
        request_id = chain(ticket.ticket_id)["manager"].approval_request_id
        with patch.object(engine.approval_repo, "transition_request", return_value=None):
            with pytest.raises(InvalidStateError):
                engine.approve(request_id, "manager")

    def test_aggregate_recompute_is_idempotent(self, engine, ticket):
        """A second sync with nothing changed writes no extra history."""
        requests = chain(ticket.ticket_id)
        engine.approve(requests["manager"].approval_request_id, "manager")
        engine.approve(requests["finance"].approval_request_id, "finance")
        count = HistoryRepository().count_for_ticket(ticket.ticket_id)

        stored = TicketRepository().get_ticket(ticket.ticket_id)
        aggregate, again = engine._sync_approval_status(stored, "finance", _Clock(utc_now()))

        assert aggregate == ApprovalStatus.APPROVED
        assert again.status == TicketStatus.IN_PROGRESS.value
        assert HistoryRepository().count_for_ticket(ticket.ticket_id) == count


class TestOptionalStages:
    """Tests for chains containing stages that are not required."""

    def test_optional_only_chain_is_approved_at_intake(self, engine, factory, mongo_db):
        """The stored aggregate matches the requests from the start."""
        factory.stage("FORM-optional", "Peer Review", 1, approver_id="reviewer", is_required=False)

        ticket = engine.create_ticket({**PURCHASE, "form_id": "FORM-optional"}, actor_id="requester")

        requests = ApprovalRepository().get_requests_for_ticket(ticket.ticket_id)
        stages = ApprovalRepository().get_stages_by_ids([r.stage_id for r in requests])
        stored = TicketRepository().get_ticket(ticket.ticket_id)
        assert stored.approval_status == compute_aggregate_status(requests, stages).value
        assert ticket.approval_status == ApprovalStatus.APPROVED.value
        assert ticket.status == TicketStatus.IN_PROGRESS.value
        assert history_actions(ticket.ticket_id) == ["status_changed", "approval_requested", "created"]
        assert notifications_for(mongo_db, "reviewer") == []

    def test_required_then_optional_chain(self, engine, factory, mongo_db):
        """Approving the required stage completes the chain; a late rejection still wins."""
        factory.stage("FORM-mixed", "Manager Approval", 1, approver_id="manager")
        factory.stage("FORM-mixed", "Peer Review", 2, approver_id="reviewer", is_required=False)
        ticket = engine.create_ticket({**PURCHASE, "form_id": "FORM-mixed"}, actor_id="requester")
        requests = chain(ticket.ticket_id)

        approved = engine.approve(requests["manager"].approval_request_id, "manager")

        assert approved.approval_status == ApprovalStatus.APPROVED
        assert approved.ticket.status == TicketStatus.IN_PROGRESS.value
        assert chain(ticket.ticket_id)["reviewer"].status == ApprovalRequestStatus.PENDING.value
        assert notifications_for(mongo_db, "reviewer") == []

        rejected = engine.reject(requests["reviewer"].approval_request_id, "reviewer", "not convinced")

        assert rejected.approval_status == ApprovalStatus.REJECTED
        assert rejected.ticket.status == TicketStatus.REJECTED.value
        assert history_actions(ticket.ticket_id)[:2] == ["status_changed", "approval_rejected"]


class TestDecisionHistory:
    """Tests for what approval decisions write to history."""

    def test_approval_records_approver_name(self, engine, purchase_form):
        ticket = engine.create_ticket({**PURCHASE, "form_id": purchase_form}, actor_id="requester")
        request_id = chain(ticket.ticket_id)["manager"].approval_request_id

        engine.approve(request_id, "manager", "ok")

        latest = HistoryRepository().get_for_ticket(ticket.ticket_id)[0]
        assert latest.action == "approval_approved"
        assert latest.user_id == "manager"
        assert latest.event.old_value.status == "pending"
        assert latest.event.new_value.approver_name == "Max Manager"
        assert latest.event.new_value.stage_name == "Manager Approval"
        assert latest.event.new_value.comments == "ok"


class TestAssignTicket:
    """Tests for manual assignment."""

    def test_reassign_writes_history_and_notifies(self, engine, factory, mongo_db):
        factory.user("admin", role=UserRole.ADMIN)
        ticket = factory.ticket(assigned_to="agent-1")

        updated = engine.assign_ticket(ticket.ticket_id, "agent-2", actor_id="admin")

        assert updated.assigned_to == "agent-2"
        entry = HistoryRepository().get_for_ticket(ticket.ticket_id)[0]
        assert entry.action == "assigned"
        assert entry.event.old_value == "agent-1"
        assert entry.event.new_value == "agent-2"
        assert len(notifications_for(mongo_db, "agent-2")) == 1

    def test_same_assignee_is_a_no_op(self, engine, factory):
        ticket = factory.ticket(assigned_to="agent-1")

        engine.assign_ticket(ticket.ticket_id, "agent-1", actor_id="admin")

        assert HistoryRepository().count_for_ticket(ticket.ticket_id) == 0


class TestFindMatchingRule:
    """Tests for the rule preview."""

    def test_preview_reports_rule_and_assignee(self, engine, factory):
        team = factory.team(leader_id="agent-9")
        rule = factory.rule("Hardware", 1, {"type": "team", "team_id": team.team_id},
                            categories=["hardware"])

        match = engine.find_matching_rule("hardware", "low", "incident")

        assert match.rule_id == rule.rule_id
        assert match.assignee_id == "agent-9"
        assert match.assignee_type == "team_leader"

    def test_no_match(self, engine):
        assert engine.find_matching_rule("hardware", "low", "incident") is None

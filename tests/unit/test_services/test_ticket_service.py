"""
Tests for ticket and approval read models.
"""

import pytest

from helpdesk.domain.errors import TicketNotFoundError
from helpdesk.services.ticket_service import TicketService


@pytest.fixture
def service():
    return TicketService()


class TestListTickets:
    """Tests for filtered, paged ticket lists."""

    def test_filters_and_total(self, service, factory):
        factory.ticket(assigned_to="agent-1", category="hardware")
        factory.ticket(assigned_to="agent-1", category="network")
        factory.ticket(assigned_to="agent-2", category="hardware")

        tickets, total = service.list_tickets(assigned_to="agent-1", category="hardware")

        assert total == 1
        assert tickets[0].assigned_to == "agent-1"

    def test_paging_newest_first(self, service, factory):
        created = [factory.ticket(title=f"Ticket {i}") for i in range(5)]

        page, total = service.list_tickets(page=2, page_size=2)

        assert total == 5
        assert [t.ticket_id for t in page] == [created[2].ticket_id, created[1].ticket_id]

    def test_unknown_ticket(self, service):
        with pytest.raises(TicketNotFoundError):
            service.get_ticket("TKT-missing")


class TestApprovalViews:
    """Tests for approval chain views."""

    @pytest.fixture
    def ticket(self, engine, purchase_form):
        return engine.create_ticket(
            {"title": "Desk", "type": "service_request", "priority": "high",
             "category": "purchase", "form_id": purchase_form},
            actor_id="requester",
        )

    def test_ticket_approvals_in_stage_order(self, service, ticket):
        items = service.get_ticket_approvals(ticket.ticket_id)

        assert [i["stage_name"] for i in items] == ["Manager Approval", "Finance Approval"]
        assert [i["approver_name"] for i in items] == ["Max Manager", "Fay Finance"]
        assert all(i["is_required"] for i in items)

    def test_pending_approvals_for_approver(self, service, ticket):
        items = service.get_pending_approvals("finance")

        assert len(items) == 1
        assert items[0]["ticket_title"] == "Desk"
        assert items[0]["ticket_priority"] == "high"
        assert items[0]["stage_order"] == 2

"""Audit Writer - Append-only ticket history"""
from datetime import datetime
from typing import List, Optional

from ..domain.history import (
    TicketHistoryEntry, HistoryEvent, StatusSnapshot, ApprovalSnapshot,
    ApprovalDecisionSnapshot, AutoAssignment, ApprovalChainSnapshot,
    TicketCreatedEvent, AutoAssignedEvent, AssignedEvent, ApprovalRequestedEvent,
    ApprovalApprovedEvent, ApprovalRejectedEvent, ApprovalMoreInfoEvent,
    ApprovalResubmittedEvent, StatusChangedEvent
)
from ..domain.models import AssignmentRule
from ..domain.enums import ApprovalRequestStatus, ApprovalStatus, TicketStatus
from ..repositories.history_repo import HistoryRepository
from ..utils.idgen import generate_history_id
from ..utils.time import utc_now, spaced
from ..utils.logger import get_logger

logger = get_logger(__name__)


_DECISION_EVENTS = {
    ApprovalRequestStatus.APPROVED: ApprovalApprovedEvent,
    ApprovalRequestStatus.REJECTED: ApprovalRejectedEvent,
    ApprovalRequestStatus.NEED_MORE_INFO: ApprovalMoreInfoEvent,
}


class AuditWriter:
    """
    Write ticket history entries (append-only)

    No validation and no dedup: every call appends one entry. Callers that
    write several entries in one operation pass explicit timestamps so the
    read order stays strict.
    """

    def __init__(self, history_repo: Optional[HistoryRepository] = None):
        self.repo = history_repo or HistoryRepository()

    def next_timestamp(self, ticket_id: str) -> datetime:
        """
        Base timestamp for an operation on a ticket

        Never earlier than 1 ms after the ticket's newest entry, so entries
        of back-to-back operations do not interleave on read.
        """
        now = utc_now()
        latest = self.repo.latest_timestamp(ticket_id)
        if latest is not None and latest >= now:
            return spaced(latest, 1)
        return now

    def record(
        self,
        ticket_id: str,
        user_id: str,
        event: HistoryEvent,
        timestamp: Optional[datetime] = None
    ) -> TicketHistoryEntry:
        """Append a single history entry"""
        entry = TicketHistoryEntry(
            history_id=generate_history_id(),
            ticket_id=ticket_id,
            user_id=user_id,
            event=event,
            created_at=timestamp or utc_now()
        )
        return self.repo.append(entry)

    def write_created(
        self,
        ticket_id: str,
        user_id: str,
        status: TicketStatus,
        approval_status: ApprovalStatus,
        timestamp: Optional[datetime] = None
    ) -> TicketHistoryEntry:
        """Write ticket creation entry"""
        return self.record(
            ticket_id,
            user_id,
            TicketCreatedEvent(
                new_value=StatusSnapshot(status=status, approval_status=approval_status)
            ),
            timestamp
        )

    def write_auto_assigned(
        self,
        ticket_id: str,
        user_id: str,
        assignee_id: str,
        rule: AssignmentRule,
        previous_assignee: Optional[str] = None,
        timestamp: Optional[datetime] = None
    ) -> TicketHistoryEntry:
        """Write rule-based assignment entry"""
        return self.record(
            ticket_id,
            user_id,
            AutoAssignedEvent(
                old_value=previous_assignee,
                new_value=AutoAssignment(
                    assigned_to=assignee_id,
                    rule_id=rule.rule_id,
                    rule_name=rule.name
                )
            ),
            timestamp
        )

    def write_assigned(
        self,
        ticket_id: str,
        user_id: str,
        old_assignee: Optional[str],
        new_assignee: Optional[str],
        timestamp: Optional[datetime] = None
    ) -> TicketHistoryEntry:
        return self.record(
            ticket_id,
            user_id,
            AssignedEvent(old_value=old_assignee, new_value=new_assignee),
            timestamp
        )

    def write_approval_requested(
        self,
        ticket_id: str,
        user_id: str,
        stage_names: List[str],
        first_approver_id: Optional[str],
        timestamp: Optional[datetime] = None
    ) -> TicketHistoryEntry:
        """Write approval chain creation entry"""
        return self.record(
            ticket_id,
            user_id,
            ApprovalRequestedEvent(
                new_value=ApprovalChainSnapshot(
                    stages=stage_names,
                    first_approver_id=first_approver_id
                )
            ),
            timestamp
        )

    def write_approval_decision(
        self,
        ticket_id: str,
        user_id: str,
        stage_name: str,
        old_status: ApprovalRequestStatus,
        new_status: ApprovalRequestStatus,
        approver_name: Optional[str] = None,
        comments: Optional[str] = None,
        timestamp: Optional[datetime] = None
    ) -> TicketHistoryEntry:
        """Write approve / reject / need-more-info entry"""
        event_cls = _DECISION_EVENTS[ApprovalRequestStatus(new_status)]
        return self.record(
            ticket_id,
            user_id,
            event_cls(
                old_value=ApprovalSnapshot(status=old_status, stage_name=stage_name),
                new_value=ApprovalDecisionSnapshot(
                    status=new_status,
                    stage_name=stage_name,
                    approver_name=approver_name,
                    comments=comments
                )
            ),
            timestamp
        )

    def write_resubmitted(
        self,
        ticket_id: str,
        user_id: str,
        stage_name: str,
        timestamp: Optional[datetime] = None
    ) -> TicketHistoryEntry:
        return self.record(
            ticket_id,
            user_id,
            ApprovalResubmittedEvent(
                old_value=ApprovalSnapshot(
                    status=ApprovalRequestStatus.NEED_MORE_INFO,
                    stage_name=stage_name
                ),
                new_value=ApprovalSnapshot(
                    status=ApprovalRequestStatus.PENDING,
                    stage_name=stage_name
                )
            ),
            timestamp
        )

    def write_status_changed(
        self,
        ticket_id: str,
        user_id: str,
        old_status: TicketStatus,
        new_status: TicketStatus,
        old_approval_status: Optional[ApprovalStatus] = None,
        new_approval_status: Optional[ApprovalStatus] = None,
        timestamp: Optional[datetime] = None
    ) -> TicketHistoryEntry:
        """Write ticket status change entry"""
        return self.record(
            ticket_id,
            user_id,
            StatusChangedEvent(
                old_value=StatusSnapshot(status=old_status, approval_status=old_approval_status),
                new_value=StatusSnapshot(status=new_status, approval_status=new_approval_status)
            ),
            timestamp
        )

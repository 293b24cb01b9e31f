"""
Workflow Engine - Ticket intake, auto-assignment and approval chains

=============================================================================
MODULE STRUCTURE
=============================================================================

1. TICKET CREATION
   - create_ticket: persist, auto-assign, build the approval chain
   - assign_ticket: manual (re)assignment

2. RULE PREVIEW
   - find_matching_rule: dry run of rule matching + assignee resolution

3. APPROVAL ACTIONS
   - approve / reject / need_more_info: approver decisions
   - resubmit: need_more_info -> pending

4. AGGREGATION
   - _sync_approval_status: recompute the ticket aggregate from all requests

=============================================================================
SIDE EFFECTS
=============================================================================

Every state change writes ticket history through the AuditWriter. Entries
written by one operation get timestamps spaced 1 ms apart, starting after
the ticket's newest entry, so the newest-first read order is strict.
Notifications go through NotificationService, which never raises.

Approval request writes are compare-and-set on the request's status, so
two concurrent decisions on the same request cannot both succeed.
=============================================================================
"""

from datetime import datetime
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..domain.models import (
    Ticket, TicketCreate, ApprovalRequest, ApprovalStage, ApprovalActionResult, RuleMatch
)
from ..domain.enums import ApprovalRequestStatus, ApprovalStatus, TicketStatus
from ..domain.errors import InvalidStateError, ValidationError
from ..repositories.ticket_repo import TicketRepository
from ..repositories.approval_repo import ApprovalRepository
from ..repositories.rule_repo import RuleRepository
from ..repositories.team_repo import TeamRepository
from ..repositories.user_repo import UserRepository
from ..services.notification_service import NotificationService
from ..utils.idgen import generate_ticket_id
from ..utils.time import utc_now, spaced
from ..utils.logger import get_logger
from .rule_matcher import RuleMatcher
from .assignee_resolver import AssigneeResolver
from .approval_chain import ApprovalChainBuilder, StageQueue
from .permission_guard import PermissionGuard
from .audit_writer import AuditWriter
from . import approval_state

logger = get_logger(__name__)

# Guard action names for the decisions a request can receive
_DECISION_VERBS = {
    ApprovalRequestStatus.APPROVED: "approve",
    ApprovalRequestStatus.REJECTED: "reject",
    ApprovalRequestStatus.NEED_MORE_INFO: "need_more_info",
}


class _Clock:
    """Hands out strictly increasing timestamps for one operation"""

    def __init__(self, base: datetime):
        self.base = base
        self._step = 0

    def next(self) -> datetime:
        ts = spaced(self.base, self._step)
        self._step += 1
        return ts


class WorkflowEngine:
    """
    Central orchestrator for ticket workflow operations

    Responsibilities:
    - Create tickets and auto-assign them through assignment rules
    - Materialize approval chains for tickets submitted through a form
    - Drive approval requests through their state machine
    - Keep the ticket's aggregate approval status and status consistent
    - Write history and notifications for every step
    """

    def __init__(
        self,
        ticket_repo: Optional[TicketRepository] = None,
        approval_repo: Optional[ApprovalRepository] = None,
        rule_repo: Optional[RuleRepository] = None,
        team_repo: Optional[TeamRepository] = None,
        user_repo: Optional[UserRepository] = None,
        audit_writer: Optional[AuditWriter] = None,
        notification_service: Optional[NotificationService] = None
    ):
        self.ticket_repo = ticket_repo or TicketRepository()
        self.approval_repo = approval_repo or ApprovalRepository()
        self.user_repo = user_repo or UserRepository()
        self.audit_writer = audit_writer or AuditWriter()
        self.notification_service = notification_service or NotificationService()
        self.permission_guard = PermissionGuard()
        self.rule_matcher = RuleMatcher(rule_repo or RuleRepository())
        self.assignee_resolver = AssigneeResolver(
            team_repo=team_repo or TeamRepository(),
            ticket_repo=self.ticket_repo
        )
        self.chain_builder = ApprovalChainBuilder(
            approval_repo=self.approval_repo,
            resolver=self.assignee_resolver
        )

    # =========================================================================
    # Ticket Creation
    # =========================================================================

    def create_ticket(
        self,
        fields: Union[TicketCreate, Mapping[str, Any]],
        actor_id: str
    ) -> Ticket:
        """
        Create a ticket and run intake

        Algorithm:
        1. Persist the ticket (need_approval when its form has stages)
        2. Match assignment rules; assign and notify the resolved user
        3. Build the approval chain and settle its aggregate; notify the
           first stage's approver while the chain is still pending

        Returns:
            The ticket as stored after intake
        """
        data = self._validate_create(fields)
        clock = _Clock(utc_now())
        now = clock.base

        stages: List[ApprovalStage] = []
        if data.form_id:
            stages = self.approval_repo.get_stages_for_form(data.form_id)

        if stages:
            status, approval_status = TicketStatus.NEED_APPROVAL, ApprovalStatus.PENDING
        else:
            status, approval_status = TicketStatus.NEW, ApprovalStatus.NOT_REQUIRED

        ticket = Ticket(
            ticket_id=generate_ticket_id(),
            **data.model_dump(),
            status=status,
            approval_status=approval_status,
            created_by=actor_id,
            created_at=now,
            updated_at=now
        )
        self.ticket_repo.create_ticket(ticket)
        self.audit_writer.write_created(
            ticket.ticket_id, actor_id, status, approval_status, timestamp=clock.next()
        )

        # Auto-assignment
        rule = self.rule_matcher.match(ticket.category, ticket.priority, ticket.type)
        if rule:
            assignee_id = self.assignee_resolver.resolve(rule.assign_to)
            if assignee_id:
                ticket = self.ticket_repo.update_ticket(
                    ticket.ticket_id, {"assigned_to": assignee_id, "updated_at": now}
                )
                self.audit_writer.write_auto_assigned(
                    ticket.ticket_id, actor_id, assignee_id, rule, timestamp=clock.next()
                )
                self.notification_service.notify_ticket_assigned(
                    assignee_id, ticket.ticket_id, ticket.title
                )
                logger.info(
                    f"Auto-assigned ticket to {assignee_id} via rule '{rule.name}'",
                    extra={"ticket_id": ticket.ticket_id, "rule_id": rule.rule_id, "user_id": assignee_id}
                )
            else:
                logger.warning(
                    f"Rule '{rule.name}' matched but resolved no assignee",
                    extra={"ticket_id": ticket.ticket_id, "rule_id": rule.rule_id}
                )

        # Approval chain
        if stages:
            requests = self.chain_builder.build(ticket, stages)
            stages_by_id = {s.stage_id: s for s in stages}
            first = StageQueue(requests, stages_by_id).peek()

            self.audit_writer.write_approval_requested(
                ticket.ticket_id,
                actor_id,
                stage_names=[stages_by_id[r.stage_id].name for r in requests],
                first_approver_id=first.approver_id if first else None,
                timestamp=clock.next()
            )

            # A chain of optional stages only is complete on arrival
            aggregate, ticket = self._sync_approval_status(ticket, actor_id, clock)
            if first and aggregate == ApprovalStatus.PENDING:
                self.notification_service.notify_approval_requested(
                    first.approver_id,
                    ticket.ticket_id,
                    ticket.title,
                    stages_by_id[first.stage_id].name
                )

        logger.info(
            f"Created ticket: {ticket.title}",
            extra={"ticket_id": ticket.ticket_id, "user_id": actor_id, "status": ticket.status}
        )
        return ticket

    def assign_ticket(self, ticket_id: str, assignee_id: Optional[str], actor_id: str) -> Ticket:
        """Manually set (or clear) a ticket's assignee"""
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        if ticket.assigned_to == assignee_id:
            return ticket

        updated = self.ticket_repo.update_ticket(ticket_id, {"assigned_to": assignee_id})
        self.audit_writer.write_assigned(
            ticket_id, actor_id, ticket.assigned_to, assignee_id,
            timestamp=self.audit_writer.next_timestamp(ticket_id)
        )
        if assignee_id:
            self.notification_service.notify_ticket_assigned(assignee_id, ticket_id, ticket.title)
        return updated

    def _validate_create(self, fields: Union[TicketCreate, Mapping[str, Any]]) -> TicketCreate:
        if isinstance(fields, TicketCreate):
            return fields
        try:
            return TicketCreate.model_validate(dict(fields))
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid ticket fields",
                details={"errors": e.errors(include_url=False, include_context=False)}
            )

    # =========================================================================
    # Rule Preview
    # =========================================================================

    def find_matching_rule(
        self,
        category: str,
        priority: str,
        ticket_type: str
    ) -> Optional[RuleMatch]:
        """Preview which rule and assignee a ticket would get (no writes)"""
        rule = self.rule_matcher.match(category, priority, ticket_type)
        if not rule:
            return None

        resolved = self.assignee_resolver.resolve_with_type(rule.assign_to)
        return RuleMatch(
            rule_id=rule.rule_id,
            rule_name=rule.name,
            assignee_id=resolved.user_id,
            assignee_type=resolved.assignee_type
        )

    # =========================================================================
    # Approval Actions
    # =========================================================================

    def approve(
        self,
        request_id: str,
        approver_id: str,
        comments: Optional[str] = None
    ) -> ApprovalActionResult:
        """Approve a pending request; notifies the next stage while the chain is open"""
        return self._decide(request_id, approver_id, ApprovalRequestStatus.APPROVED, comments)

    def reject(
        self,
        request_id: str,
        approver_id: str,
        comments: Optional[str] = None
    ) -> ApprovalActionResult:
        """Reject a pending request; one rejection rejects the ticket"""
        return self._decide(request_id, approver_id, ApprovalRequestStatus.REJECTED, comments)

    def need_more_info(
        self,
        request_id: str,
        approver_id: str,
        comments: str
    ) -> ApprovalActionResult:
        """Send a pending request back to the ticket creator; comments are required"""
        return self._decide(request_id, approver_id, ApprovalRequestStatus.NEED_MORE_INFO, comments)

    def resubmit(self, request_id: str, actor_id: Optional[str] = None) -> ApprovalActionResult:
        """Move a need_more_info request back to pending and renotify its approver"""
        request = self.approval_repo.get_request_or_raise(request_id)
        approval_state.ensure_transition(request, ApprovalRequestStatus.PENDING)

        ticket = self.ticket_repo.get_ticket_or_raise(request.ticket_id)
        self.permission_guard.ensure_can_resubmit(actor_id, request, ticket)
        stage = self.approval_repo.get_stage_or_raise(request.stage_id)

        clock = _Clock(self.audit_writer.next_timestamp(ticket.ticket_id))
        updated = self.approval_repo.transition_request(
            request_id,
            ApprovalRequestStatus.NEED_MORE_INFO,
            {
                "status": ApprovalRequestStatus.PENDING.value,
                "comments": None,
                "responded_at": None,
                "updated_at": clock.base,
            }
        )
        if updated is None:
            raise InvalidStateError(
                "Approval request is not in 'need more info' status",
                details={"approval_request_id": request_id}
            )

        self.audit_writer.write_resubmitted(
            ticket.ticket_id, actor_id or ticket.created_by, stage.name, timestamp=clock.next()
        )
        aggregate, ticket = self._sync_approval_status(ticket, actor_id or ticket.created_by, clock)

        self.notification_service.notify_approval_resubmitted(
            updated.approver_id, ticket.ticket_id, ticket.title, stage.name
        )

        logger.info(
            f"Approval request resubmitted at stage '{stage.name}'",
            extra={"ticket_id": ticket.ticket_id, "approval_request_id": request_id, "user_id": actor_id}
        )
        return ApprovalActionResult(approval_request=updated, ticket=ticket, approval_status=aggregate)

    def _decide(
        self,
        request_id: str,
        actor_id: str,
        target: ApprovalRequestStatus,
        comments: Optional[str]
    ) -> ApprovalActionResult:
        """Shared path for approve / reject / need_more_info"""
        request = self.approval_repo.get_request_or_raise(request_id)
        approval_state.ensure_transition(request, target)
        self.permission_guard.ensure_can_decide(actor_id, request, _DECISION_VERBS[target])

        if target == ApprovalRequestStatus.NEED_MORE_INFO:
            comments = approval_state.require_comments(comments)
        else:
            comments = approval_state.normalize_comments(comments)

        ticket = self.ticket_repo.get_ticket_or_raise(request.ticket_id)
        stage = self.approval_repo.get_stage_or_raise(request.stage_id)

        clock = _Clock(self.audit_writer.next_timestamp(ticket.ticket_id))
        updated = self.approval_repo.transition_request(
            request_id,
            ApprovalRequestStatus.PENDING,
            {
                "status": target.value,
                "comments": comments,
                "responded_at": clock.base,
                "updated_at": clock.base,
            }
        )
        if updated is None:
            # Lost a race with another decision on the same request
            raise InvalidStateError(
                "Approval request is not pending",
                details={"approval_request_id": request_id}
            )

        approver_name = None
        if target != ApprovalRequestStatus.NEED_MORE_INFO:
            approver_name = self.user_repo.get_display_name(actor_id)

        self.audit_writer.write_approval_decision(
            ticket.ticket_id,
            actor_id,
            stage_name=stage.name,
            old_status=ApprovalRequestStatus.PENDING,
            new_status=target,
            approver_name=approver_name,
            comments=comments,
            timestamp=clock.next()
        )

        aggregate, ticket = self._sync_approval_status(ticket, actor_id, clock)
        self._notify_decision(ticket, stage, target, comments, aggregate)

        logger.info(
            f"Approval request {target.value} at stage '{stage.name}'",
            extra={
                "ticket_id": ticket.ticket_id,
                "approval_request_id": request_id,
                "stage_id": stage.stage_id,
                "user_id": actor_id,
                "status": aggregate.value,
            }
        )
        return ApprovalActionResult(approval_request=updated, ticket=ticket, approval_status=aggregate)

    def _notify_decision(
        self,
        ticket: Ticket,
        stage: ApprovalStage,
        target: ApprovalRequestStatus,
        comments: Optional[str],
        aggregate: ApprovalStatus
    ) -> None:
        if target == ApprovalRequestStatus.APPROVED:
            self.notification_service.notify_approved(
                ticket.created_by, ticket.ticket_id, ticket.title, stage.name
            )
            if aggregate == ApprovalStatus.PENDING:
                self._notify_next_approver(ticket)
        elif target == ApprovalRequestStatus.REJECTED:
            self.notification_service.notify_rejected(
                ticket.created_by, ticket.ticket_id, ticket.title, stage.name, comments
            )
        else:
            self.notification_service.notify_more_info_needed(
                ticket.created_by, ticket.ticket_id, ticket.title, stage.name
            )

    def _notify_next_approver(self, ticket: Ticket) -> Optional[ApprovalRequest]:
        """Notify the approver of the lowest-order pending request"""
        requests = self.approval_repo.get_requests_for_ticket(ticket.ticket_id)
        stages = self.approval_repo.get_stages_by_ids([r.stage_id for r in requests])

        next_request = StageQueue(requests, stages).peek()
        if next_request is None:
            return None

        stage = stages.get(next_request.stage_id)
        self.notification_service.notify_approval_requested(
            next_request.approver_id,
            ticket.ticket_id,
            ticket.title,
            stage.name if stage else next_request.stage_id
        )
        return next_request

    # =========================================================================
    # Aggregation
    # =========================================================================

    def _sync_approval_status(
        self,
        ticket: Ticket,
        actor_id: str,
        clock: _Clock
    ):
        """
        Recompute the ticket's aggregate from a fresh read of all requests

        Returns (aggregate, ticket). When the aggregate completes the chain
        the ticket status moves too and a status_changed entry is written.
        """
        requests = self.approval_repo.get_requests_for_ticket(ticket.ticket_id)
        stages = self.approval_repo.get_stages_by_ids([r.stage_id for r in requests])
        aggregate = approval_state.compute_aggregate_status(requests, stages)

        new_status = None
        if approval_state.is_chain_complete(aggregate):
            new_status = approval_state.derive_ticket_status(ticket.status, aggregate)

        before = self.ticket_repo.apply_approval_status(ticket.ticket_id, aggregate, new_status)
        if before is not None and new_status is not None and before.status != new_status.value:
            self.audit_writer.write_status_changed(
                ticket.ticket_id,
                actor_id,
                old_status=before.status,
                new_status=new_status,
                old_approval_status=before.approval_status,
                new_approval_status=aggregate,
                timestamp=clock.next()
            )
            logger.info(
                f"Ticket status {before.status} -> {new_status.value}",
                extra={"ticket_id": ticket.ticket_id, "status": new_status.value}
            )

        return aggregate, self.ticket_repo.get_ticket_or_raise(ticket.ticket_id)

"""
Approval State Machine - Pure transition and aggregation rules

Per request:
    pending        -> approved | rejected | need_more_info
    need_more_info -> pending (resubmit)

Ticket aggregate (recomputed from all requests after every change):
    rejected  if any request is rejected
    approved  if every required request is approved or skipped
    pending   otherwise

Nothing in here touches storage; the engine feeds it fresh reads.
"""
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from ..domain.models import ApprovalRequest, ApprovalStage
from ..domain.enums import ApprovalRequestStatus, ApprovalStatus, TicketStatus
from ..domain.errors import InvalidStateError, ValidationError


ALLOWED_TRANSITIONS: Dict[ApprovalRequestStatus, FrozenSet[ApprovalRequestStatus]] = {
    ApprovalRequestStatus.PENDING: frozenset({
        ApprovalRequestStatus.APPROVED,
        ApprovalRequestStatus.REJECTED,
        ApprovalRequestStatus.NEED_MORE_INFO,
    }),
    ApprovalRequestStatus.NEED_MORE_INFO: frozenset({ApprovalRequestStatus.PENDING}),
    ApprovalRequestStatus.APPROVED: frozenset(),
    ApprovalRequestStatus.REJECTED: frozenset(),
    ApprovalRequestStatus.SKIPPED: frozenset(),
}

SATISFIED_STATUSES = frozenset({ApprovalRequestStatus.APPROVED, ApprovalRequestStatus.SKIPPED})


def can_transition(current: str, target: str) -> bool:
    return ApprovalRequestStatus(target) in ALLOWED_TRANSITIONS[ApprovalRequestStatus(current)]


def ensure_transition(request: ApprovalRequest, target: ApprovalRequestStatus) -> None:
    """Raise InvalidStateError unless request may move to target"""
    if not can_transition(request.status, target):
        if ApprovalRequestStatus(target) == ApprovalRequestStatus.PENDING:
            message = "Approval request is not in 'need more info' status"
        else:
            message = "Approval request is not pending"
        raise InvalidStateError(
            message,
            details={
                "approval_request_id": request.approval_request_id,
                "current_status": ApprovalRequestStatus(request.status).value,
                "requested_status": ApprovalRequestStatus(target).value,
            }
        )


def require_comments(comments: Optional[str]) -> str:
    """Comments are mandatory when asking for more information"""
    cleaned = (comments or "").strip()
    if not cleaned:
        raise ValidationError(
            "Comments are required when requesting more information",
            details={"field": "comments"}
        )
    return cleaned


def normalize_comments(comments: Optional[str]) -> Optional[str]:
    """Optional comments: blank becomes None"""
    if comments is None:
        return None
    cleaned = comments.strip()
    return cleaned or None


def compute_aggregate_status(
    requests: Iterable[ApprovalRequest],
    stages: Mapping[str, ApprovalStage]
) -> ApprovalStatus:
    """
    Derive a ticket's approval_status from its requests

    A request whose stage is unknown counts as required.
    """
    requests = list(requests)
    if not requests:
        return ApprovalStatus.NOT_REQUIRED

    statuses = [ApprovalRequestStatus(r.status) for r in requests]
    if ApprovalRequestStatus.REJECTED in statuses:
        return ApprovalStatus.REJECTED

    for request, status in zip(requests, statuses):
        stage = stages.get(request.stage_id)
        is_required = stage.is_required if stage else True
        if is_required and status not in SATISFIED_STATUSES:
            return ApprovalStatus.PENDING

    return ApprovalStatus.APPROVED


def derive_ticket_status(current: str, aggregate: ApprovalStatus) -> TicketStatus:
    """Ticket status after an approval event"""
    aggregate = ApprovalStatus(aggregate)
    if aggregate == ApprovalStatus.APPROVED:
        return TicketStatus.IN_PROGRESS
    if aggregate == ApprovalStatus.REJECTED:
        return TicketStatus.REJECTED
    return TicketStatus(current)


def is_chain_complete(aggregate: ApprovalStatus) -> bool:
    return ApprovalStatus(aggregate) in (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED)

"""Approval Chain Builder - Materialize per-ticket approval requests"""
import heapq
from typing import Dict, Iterable, List, Optional, Tuple

from ..domain.models import ApprovalRequest, ApprovalStage, Ticket
from ..domain.enums import ApprovalRequestStatus
from ..repositories.approval_repo import ApprovalRepository
from ..utils.idgen import generate_approval_request_id
from ..utils.time import utc_now
from ..utils.logger import get_logger
from .assignee_resolver import AssigneeResolver

logger = get_logger(__name__)


class StageQueue:
    """
    Min-heap of pending approval requests keyed by stage order

    peek() gives the request whose stage comes first in the chain.
    Requests whose stage is unknown sort last.
    """

    def __init__(
        self,
        requests: Iterable[ApprovalRequest],
        stages: Dict[str, ApprovalStage]
    ):
        self._heap: List[Tuple[float, str, ApprovalRequest]] = []
        for request in requests:
            if ApprovalRequestStatus(request.status) != ApprovalRequestStatus.PENDING:
                continue
            stage = stages.get(request.stage_id)
            order = stage.order if stage else float("inf")
            heapq.heappush(self._heap, (order, request.approval_request_id, request))

    def __len__(self) -> int:
        return len(self._heap)

    def peek(self) -> Optional[ApprovalRequest]:
        """Lowest-order pending request, or None"""
        if not self._heap:
            return None
        return self._heap[0][2]

    def pop(self) -> Optional[ApprovalRequest]:
        if not self._heap:
            return None
        return heapq.heappop(self._heap)[2]


class ApprovalChainBuilder:
    """
    Create one pending approval request per stage of a ticket's form

    Approvers are resolved from each stage's target at build time. Only
    the first stage's approver gets notified up front; the engine picks
    the rest off the StageQueue as earlier stages are approved.
    """

    def __init__(
        self,
        approval_repo: Optional[ApprovalRepository] = None,
        resolver: Optional[AssigneeResolver] = None
    ):
        self.approval_repo = approval_repo or ApprovalRepository()
        self.resolver = resolver or AssigneeResolver()

    def build(self, ticket: Ticket, stages: List[ApprovalStage]) -> List[ApprovalRequest]:
        """
        Persist the approval chain for a ticket

        Args:
            ticket: The newly created ticket
            stages: The form's stages (any order)

        Returns:
            Created requests, in stage order
        """
        if not stages:
            return []

        now = utc_now()
        requests = []
        for stage in sorted(stages, key=lambda s: s.order):
            approver_id = self.resolver.resolve(stage.approver) if stage.approver else None
            if approver_id is None:
                logger.warning(
                    f"No approver resolved for stage '{stage.name}'",
                    extra={"ticket_id": ticket.ticket_id, "stage_id": stage.stage_id}
                )

            requests.append(ApprovalRequest(
                approval_request_id=generate_approval_request_id(),
                ticket_id=ticket.ticket_id,
                stage_id=stage.stage_id,
                approver_id=approver_id,
                status=ApprovalRequestStatus.PENDING,
                requested_at=now,
                updated_at=now
            ))

        self.approval_repo.create_requests_bulk(requests)
        logger.info(
            f"Built approval chain with {len(requests)} stages",
            extra={"ticket_id": ticket.ticket_id}
        )
        return requests

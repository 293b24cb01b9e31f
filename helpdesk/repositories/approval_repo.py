"""Approval Repository - Data access for approval stages and requests"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING

from .mongo_client import get_collection
from ..domain.models import ApprovalStage, ApprovalRequest
from ..domain.enums import ApprovalRequestStatus
from ..domain.errors import ApprovalRequestNotFoundError, StageNotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ApprovalRepository:
    """Repository for approval stages (per form) and approval requests (per ticket)"""

    def __init__(self):
        self._stages: Collection = get_collection("approval_stages")
        self._requests: Collection = get_collection("approval_requests")

    # =========================================================================
    # Stage Operations
    # =========================================================================

    def create_stage(self, stage: ApprovalStage) -> ApprovalStage:
        """Create an approval stage"""
        doc = stage.model_dump()
        doc["_id"] = stage.stage_id

        self._stages.insert_one(doc)
        logger.info(
            f"Created approval stage: {stage.name}",
            extra={"stage_id": stage.stage_id}
        )
        return stage

    def get_stage(self, stage_id: str) -> Optional[ApprovalStage]:
        """Get stage by ID"""
        doc = self._stages.find_one({"stage_id": stage_id})
        if doc:
            doc.pop("_id", None)
            return ApprovalStage.model_validate(doc)
        return None

    def get_stage_or_raise(self, stage_id: str) -> ApprovalStage:
        stage = self.get_stage(stage_id)
        if not stage:
            raise StageNotFoundError(
                f"Approval stage {stage_id} not found",
                details={"stage_id": stage_id}
            )
        return stage

    def get_stages_for_form(self, form_id: str) -> List[ApprovalStage]:
        """Get all stages of a form in sequence order"""
        cursor = self._stages.find({"form_id": form_id}).sort("order", ASCENDING)

        stages = []
        for doc in cursor:
            doc.pop("_id", None)
            stages.append(ApprovalStage.model_validate(doc))

        return stages

    def get_stages_by_ids(self, stage_ids: List[str]) -> Dict[str, ApprovalStage]:
        """Get stages keyed by stage_id"""
        if not stage_ids:
            return {}

        stages = {}
        for doc in self._stages.find({"stage_id": {"$in": list(stage_ids)}}):
            doc.pop("_id", None)
            stage = ApprovalStage.model_validate(doc)
            stages[stage.stage_id] = stage

        return stages

    # =========================================================================
    # Request Operations
    # =========================================================================

    def create_requests_bulk(self, requests: List[ApprovalRequest]) -> List[ApprovalRequest]:
        """Create the approval requests of one ticket"""
        if not requests:
            return []

        docs = []
        for request in requests:
            doc = request.model_dump()
            doc["_id"] = request.approval_request_id
            docs.append(doc)

        self._requests.insert_many(docs)
        logger.info(
            f"Created {len(requests)} approval requests",
            extra={"ticket_id": requests[0].ticket_id}
        )
        return requests

    def get_request(self, approval_request_id: str) -> Optional[ApprovalRequest]:
        """Get approval request by ID"""
        doc = self._requests.find_one({"approval_request_id": approval_request_id})
        if doc:
            doc.pop("_id", None)
            return ApprovalRequest.model_validate(doc)
        return None

    def get_request_or_raise(self, approval_request_id: str) -> ApprovalRequest:
        request = self.get_request(approval_request_id)
        if not request:
            raise ApprovalRequestNotFoundError(
                f"Approval request {approval_request_id} not found",
                details={"approval_request_id": approval_request_id}
            )
        return request

    def get_requests_for_ticket(self, ticket_id: str) -> List[ApprovalRequest]:
        """Get all approval requests of a ticket"""
        cursor = self._requests.find({"ticket_id": ticket_id})

        requests = []
        for doc in cursor:
            doc.pop("_id", None)
            requests.append(ApprovalRequest.model_validate(doc))

        return requests

    def get_pending_for_approver(self, approver_id: str) -> List[ApprovalRequest]:
        """Get pending requests for an approver, most recently requested first"""
        cursor = self._requests.find({
            "approver_id": approver_id,
            "status": ApprovalRequestStatus.PENDING.value
        }).sort("requested_at", DESCENDING)

        requests = []
        for doc in cursor:
            doc.pop("_id", None)
            requests.append(ApprovalRequest.model_validate(doc))

        return requests

    def transition_request(
        self,
        approval_request_id: str,
        expected_status: ApprovalRequestStatus,
        updates: Dict[str, Any]
    ) -> Optional[ApprovalRequest]:
        """
        Compare-and-set update of a request's status

        Only applies when the stored status still equals expected_status.
        Returns the updated request, or None when the guard did not match.
        """
        result = self._requests.find_one_and_update(
            {
                "approval_request_id": approval_request_id,
                "status": ApprovalRequestStatus(expected_status).value
            },
            {"$set": updates},
            return_document=True
        )

        if result is None:
            return None

        result.pop("_id", None)
        logger.info(
            f"Approval request {approval_request_id} -> {updates.get('status')}",
            extra={"approval_request_id": approval_request_id}
        )
        return ApprovalRequest.model_validate(result)

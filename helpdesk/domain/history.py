"""
Ticket History Events

Each history action has its own payload model, so every audit case the
engine can emit is a known, typed shape. Stored documents keep the flat
`action` / `old_value` / `new_value` layout used by the history timeline.
"""
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from .enums import ApprovalRequestStatus, ApprovalStatus, TicketStatus


# ============================================================================
# Snapshots
# ============================================================================

class StatusSnapshot(BaseModel):
    """Ticket lifecycle + aggregate approval status at a point in time"""
    model_config = ConfigDict(use_enum_values=True)

    status: TicketStatus
    approval_status: Optional[ApprovalStatus] = None


class ApprovalSnapshot(BaseModel):
    """Approval request status at a point in time"""
    model_config = ConfigDict(use_enum_values=True)

    status: ApprovalRequestStatus
    stage_name: str


class ApprovalDecisionSnapshot(ApprovalSnapshot):
    """Approval request status after an approver acted on it"""
    approver_name: Optional[str] = None
    comments: Optional[str] = None


class AutoAssignment(BaseModel):
    assigned_to: str
    rule_id: str
    rule_name: str


class ApprovalChainSnapshot(BaseModel):
    stages: List[str] = Field(default_factory=list)
    first_approver_id: Optional[str] = None


# ============================================================================
# Events (one per action)
# ============================================================================

class TicketCreatedEvent(BaseModel):
    action: Literal["created"] = "created"
    old_value: None = None
    new_value: StatusSnapshot


class AutoAssignedEvent(BaseModel):
    action: Literal["auto_assigned"] = "auto_assigned"
    old_value: Optional[str] = None
    new_value: AutoAssignment


class AssignedEvent(BaseModel):
    action: Literal["assigned"] = "assigned"
    old_value: Optional[str] = None
    new_value: Optional[str] = None


class ApprovalRequestedEvent(BaseModel):
    action: Literal["approval_requested"] = "approval_requested"
    old_value: None = None
    new_value: ApprovalChainSnapshot


class ApprovalApprovedEvent(BaseModel):
    action: Literal["approval_approved"] = "approval_approved"
    old_value: ApprovalSnapshot
    new_value: ApprovalDecisionSnapshot


class ApprovalRejectedEvent(BaseModel):
    action: Literal["approval_rejected"] = "approval_rejected"
    old_value: ApprovalSnapshot
    new_value: ApprovalDecisionSnapshot


class ApprovalMoreInfoEvent(BaseModel):
    action: Literal["approval_more_info"] = "approval_more_info"
    old_value: ApprovalSnapshot
    new_value: ApprovalDecisionSnapshot


class ApprovalResubmittedEvent(BaseModel):
    action: Literal["approval_resubmitted"] = "approval_resubmitted"
    old_value: ApprovalSnapshot
    new_value: ApprovalSnapshot


class StatusChangedEvent(BaseModel):
    action: Literal["status_changed"] = "status_changed"
    old_value: StatusSnapshot
    new_value: StatusSnapshot


HistoryEvent = Annotated[
    Union[
        TicketCreatedEvent,
        AutoAssignedEvent,
        AssignedEvent,
        ApprovalRequestedEvent,
        ApprovalApprovedEvent,
        ApprovalRejectedEvent,
        ApprovalMoreInfoEvent,
        ApprovalResubmittedEvent,
        StatusChangedEvent,
    ],
    Field(discriminator="action")
]


class TicketHistoryEntry(BaseModel):
    """Append-only audit row"""
    model_config = ConfigDict(extra="ignore")

    history_id: str
    ticket_id: str
    user_id: str
    event: HistoryEvent
    created_at: datetime

    @property
    def action(self) -> str:
        return self.event.action

    def to_document(self) -> Dict[str, Any]:
        """Flatten into the stored action/old_value/new_value layout"""
        doc = self.model_dump(exclude={"event"})
        doc.update(self.event.model_dump())
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "TicketHistoryEntry":
        event = {
            "action": doc.get("action"),
            "old_value": doc.get("old_value"),
            "new_value": doc.get("new_value"),
        }
        return cls.model_validate({**doc, "event": event})

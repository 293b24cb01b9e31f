"""Workflow Engine - Assignment rules and approval chains"""
from .engine import WorkflowEngine
from .rule_matcher import RuleMatcher
from .assignee_resolver import AssigneeResolver
from .approval_chain import ApprovalChainBuilder, StageQueue
from .permission_guard import PermissionGuard
from .audit_writer import AuditWriter

__all__ = [
    "WorkflowEngine",
    "RuleMatcher",
    "AssigneeResolver",
    "ApprovalChainBuilder",
    "StageQueue",
    "PermissionGuard",
    "AuditWriter",
]

"""API module - routes, dependencies and middleware"""
from .deps import get_current_user_id_dep, approval_rate_limit_dep

__all__ = ["get_current_user_id_dep", "approval_rate_limit_dep"]

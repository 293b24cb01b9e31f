"""API Dependencies - Common dependencies for routes"""
from typing import Optional
from fastapi import Depends, Header, Request

from ..domain.errors import AuthenticationError
from ..engine.engine import WorkflowEngine
from ..services.rate_limiter import RateLimiter


async def get_current_user_id_dep(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id")
) -> str:
    """
    Caller identity

    Authentication happens upstream; the gateway forwards the
    authenticated user id in X-User-Id.
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise AuthenticationError("X-User-Id header is missing")
    return user_id


def get_engine() -> WorkflowEngine:
    return WorkflowEngine()


def get_rate_limiter(request: Request) -> RateLimiter:
    """The app-scoped limiter created in create_app()"""
    return request.app.state.rate_limiter


async def approval_rate_limit_dep(
    user_id: str = Depends(get_current_user_id_dep),
    limiter: RateLimiter = Depends(get_rate_limiter)
) -> str:
    """Count one approval action against the caller's window"""
    limiter.check(user_id)
    return user_id

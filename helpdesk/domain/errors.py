"""
Domain Errors

Every error the engine and services raise derives from DomainError. The
class carries its API error code and HTTP status; the FastAPI handlers in
api/middleware/error_handlers.py turn it into

    {"error": {"code": ..., "message": ..., "details": {...}}}
"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class; subclasses override error_code / http_status"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})
        if error_code:
            self.error_code = error_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.error_code}: {self.message!r})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


# 401 / 403
class AuthenticationError(DomainError):
    """No caller identity on the request"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class AuthorizationError(DomainError):
    error_code = "AUTHORIZATION_ERROR"
    http_status = 403


class PermissionDeniedError(AuthorizationError):
    """Caller is not the request's approver (or the ticket's creator, for resubmit)"""
    error_code = "PERMISSION_DENIED"


# 400
class ValidationError(DomainError):
    error_code = "VALIDATION_ERROR"
    http_status = 400


# 404
class NotFoundError(DomainError):
    error_code = "NOT_FOUND"
    http_status = 404


class TicketNotFoundError(NotFoundError):
    error_code = "TICKET_NOT_FOUND"


class ApprovalRequestNotFoundError(NotFoundError):
    error_code = "APPROVAL_REQUEST_NOT_FOUND"


class StageNotFoundError(NotFoundError):
    error_code = "STAGE_NOT_FOUND"


class TeamNotFoundError(NotFoundError):
    error_code = "TEAM_NOT_FOUND"


class RuleNotFoundError(NotFoundError):
    error_code = "RULE_NOT_FOUND"


class UserNotFoundError(NotFoundError):
    error_code = "USER_NOT_FOUND"


class NotificationNotFoundError(NotFoundError):
    error_code = "NOTIFICATION_NOT_FOUND"


# 409
class ConflictError(DomainError):
    error_code = "CONFLICT"
    http_status = 409


class InvalidStateError(ConflictError):
    """Transition not allowed from the current status (or lost a concurrent update)"""
    error_code = "INVALID_STATE"


class AlreadyExistsError(ConflictError):
    error_code = "ALREADY_EXISTS"


# 429
class RateLimitError(DomainError):
    """Caller exhausted its approval action window"""
    error_code = "RATE_LIMIT_EXCEEDED"
    http_status = 429

    @property
    def retry_after(self) -> Optional[int]:
        return self.details.get("retry_after")

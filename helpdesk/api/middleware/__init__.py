"""
API Middleware

- correlation: X-Correlation-Id propagation and request timing logs
- error_handlers: DomainError / validation / unexpected error responses
"""

from .correlation import CorrelationIdMiddleware
from .error_handlers import register_error_handlers

__all__ = ["CorrelationIdMiddleware", "register_error_handlers"]

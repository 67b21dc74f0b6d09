"""Failure taxonomy raised by the providers and services.

Each error carries a stable ``ErrorCode``; the HTTP status and problem-detail
shape for a code live in ``problem_details``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    NOT_FOUND = "RESOURCE_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str
    rejected_value: Any = None


class HubError(Exception):
    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    default_detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: str | None = None,
        *,
        violations: list[FieldViolation] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.detail = detail or self.default_detail
        self.violations = list(violations or [])
        self.metadata = dict(metadata or {})
        super().__init__(self.detail)


class NotFoundError(HubError):
    code = ErrorCode.NOT_FOUND
    default_detail = "Resource not found"

    def __init__(self, resource: str, identifier: str) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource.capitalize()} not found: {identifier}")


class ValidationError(HubError):
    code = ErrorCode.VALIDATION_ERROR
    default_detail = "Validation failed"

    def __init__(self, violations: list[FieldViolation], detail: str | None = None) -> None:
        super().__init__(detail, violations=violations)


class BadRequestError(HubError):
    code = ErrorCode.BAD_REQUEST
    default_detail = "Bad request"


class UnauthorizedError(HubError):
    code = ErrorCode.UNAUTHORIZED
    default_detail = "Authentication required"


class ForbiddenError(HubError):
    code = ErrorCode.FORBIDDEN
    default_detail = "Access denied"


class RateLimitExceededError(HubError):
    code = ErrorCode.RATE_LIMIT_EXCEEDED
    default_detail = "Rate limit exceeded"


class ProviderError(HubError):
    """An upstream provider (OMS or vendor feed) failed.

    ``message`` is the upstream description; the client sees it prefixed, never
    the upstream traceback.
    """

    code = ErrorCode.PROVIDER_ERROR

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        self.message = message
        self.provider = provider
        metadata = {"provider": provider} if provider else None
        super().__init__(f"External provider error: {message}", metadata=metadata)


class ServiceUnavailableError(HubError):
    code = ErrorCode.SERVICE_UNAVAILABLE
    default_detail = "Service temporarily unavailable"


class InternalError(HubError):
    code = ErrorCode.INTERNAL_ERROR
    default_detail = "An unexpected error occurred"

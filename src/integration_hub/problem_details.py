"""Translate failures into problem-detail bodies.

``to_problem_detail`` is a pure function: it reads the error and the request
context handed to it and builds the response body. Logging and response
writing stay with the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any

from . import settings
from .errors import ErrorCode, FieldViolation, HubError, InternalError
from .models import ProblemDetail, Violation


@dataclass(frozen=True)
class ProblemType:
    status: HTTPStatus

    @property
    def title(self) -> str:
        return self.status.phrase


PROBLEM_TYPES: dict[ErrorCode, ProblemType] = {
    ErrorCode.NOT_FOUND: ProblemType(HTTPStatus.NOT_FOUND),
    ErrorCode.VALIDATION_ERROR: ProblemType(HTTPStatus.BAD_REQUEST),
    ErrorCode.BAD_REQUEST: ProblemType(HTTPStatus.BAD_REQUEST),
    ErrorCode.UNAUTHORIZED: ProblemType(HTTPStatus.UNAUTHORIZED),
    ErrorCode.FORBIDDEN: ProblemType(HTTPStatus.FORBIDDEN),
    ErrorCode.RATE_LIMIT_EXCEEDED: ProblemType(HTTPStatus.TOO_MANY_REQUESTS),
    ErrorCode.PROVIDER_ERROR: ProblemType(HTTPStatus.SERVICE_UNAVAILABLE),
    ErrorCode.SERVICE_UNAVAILABLE: ProblemType(HTTPStatus.SERVICE_UNAVAILABLE),
    ErrorCode.INTERNAL_ERROR: ProblemType(HTTPStatus.INTERNAL_SERVER_ERROR),
}


def problem_type_uri(code: ErrorCode, base_uri: str | None = None) -> str:
    base = base_uri if base_uri is not None else settings.get_problem_type_base_uri()
    return base + code.value.lower().replace("_", "-")


def status_for(error: BaseException) -> int:
    code = error.code if isinstance(error, HubError) else ErrorCode.INTERNAL_ERROR
    return int(PROBLEM_TYPES[code].status)


def _json_safe(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    return str(value)


def _violation(v: FieldViolation) -> Violation:
    return Violation(field=v.field, message=v.message, rejected_value=_json_safe(v.rejected_value))


def to_problem_detail(
    error: BaseException,
    *,
    instance: str | None,
    correlation_id: str | None,
    now: datetime | None = None,
    type_base_uri: str | None = None,
) -> ProblemDetail:
    """Build the problem detail for ``error``.

    Anything that is not a ``HubError`` is reported as a generic internal error;
    its message is never copied into the body.
    """

    if not isinstance(error, HubError):
        error = InternalError()

    problem_type = PROBLEM_TYPES[error.code]

    return ProblemDetail(
        type=problem_type_uri(error.code, type_base_uri),
        title=problem_type.title,
        status=int(problem_type.status),
        detail=error.detail,
        instance=instance,
        correlation_id=correlation_id,
        error_code=error.code.value,
        timestamp=now or datetime.now(timezone.utc),
        violations=[_violation(v) for v in error.violations] or None,
        metadata=_json_safe(error.metadata) or None,
    )

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from integration_hub.errors import (
    BadRequestError,
    ErrorCode,
    FieldViolation,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ProviderError,
    RateLimitExceededError,
    ServiceUnavailableError,
    UnauthorizedError,
    ValidationError,
)
from integration_hub.problem_details import PROBLEM_TYPES, status_for, to_problem_detail

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
BASE = "https://problems.test/"


def _translate(error, **kwargs):
    return to_problem_detail(
        error,
        instance=kwargs.get("instance", "/api/v1/accounts/ACC-1/portfolio"),
        correlation_id=kwargs.get("correlation_id", "corr-1"),
        now=NOW,
        type_base_uri=BASE,
    )


def test_every_error_code_has_exactly_one_problem_type():
    assert set(PROBLEM_TYPES) == set(ErrorCode)


@pytest.mark.parametrize(
    "error, status, code",
    [
        (NotFoundError("account", "ACC-1"), 404, "RESOURCE_NOT_FOUND"),
        (ValidationError([FieldViolation("clientId", "bad")]), 400, "VALIDATION_ERROR"),
        (BadRequestError("Malformed request body"), 400, "BAD_REQUEST"),
        (UnauthorizedError(), 401, "UNAUTHORIZED"),
        (ForbiddenError(), 403, "FORBIDDEN"),
        (RateLimitExceededError(), 429, "RATE_LIMIT_EXCEEDED"),
        (ProviderError("timeout"), 503, "PROVIDER_ERROR"),
        (ServiceUnavailableError(), 503, "SERVICE_UNAVAILABLE"),
        (InternalError(), 500, "INTERNAL_ERROR"),
    ],
)
def test_error_kinds_map_to_status_and_code(error, status, code):
    problem = _translate(error)

    assert problem.status == status
    assert problem.error_code == code
    assert problem.type == BASE + code.lower().replace("_", "-")
    assert status_for(error) == status


def test_not_found_problem_carries_request_context():
    problem = _translate(NotFoundError("account", "ACC-1"), correlation_id="abc-123")

    assert problem.title == "Not Found"
    assert problem.detail == "Account not found: ACC-1"
    assert problem.instance == "/api/v1/accounts/ACC-1/portfolio"
    assert problem.correlation_id == "abc-123"
    assert problem.timestamp == NOW
    assert problem.type == "https://problems.test/resource-not-found"
    assert problem.violations is None
    assert problem.metadata is None


def test_validation_problem_lists_violations():
    error = ValidationError(
        [
            FieldViolation("clientId", "Client ID must match pattern CLIENT-{ID}", "client-1"),
            FieldViolation("accountStatus", "Input should be 'ACTIVE'", Decimal("1.5")),
        ]
    )

    problem = _translate(error)

    assert problem.title == "Bad Request"
    assert problem.detail == "Validation failed"
    assert [(v.field, v.rejected_value) for v in problem.violations] == [
        ("clientId", "client-1"),
        ("accountStatus", "1.5"),
    ]


def test_provider_problem_includes_upstream_message_and_provider():
    problem = _translate(ProviderError("connection reset by peer", provider="oms"))

    assert problem.title == "Service Unavailable"
    assert problem.detail == "External provider error: connection reset by peer"
    assert problem.metadata == {"provider": "oms"}


def test_unexpected_exceptions_become_internal_errors_without_leaking():
    problem = _translate(RuntimeError("db password is hunter2"))

    assert problem.status == 500
    assert problem.error_code == "INTERNAL_ERROR"
    assert problem.detail == "An unexpected error occurred"
    assert "hunter2" not in problem.model_dump_json()
    assert status_for(KeyError("x")) == 500


def test_serialized_problem_uses_camel_case_and_omits_empty_members():
    body = _translate(NotFoundError("client", "CLIENT-1")).model_dump(mode="json", by_alias=True, exclude_none=True)

    assert set(body) == {"type", "title", "status", "detail", "instance", "correlationId", "errorCode", "timestamp"}
    assert body["errorCode"] == "RESOURCE_NOT_FOUND"

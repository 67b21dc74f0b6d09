"""
Request-context middleware.

CorrelationIdMiddleware reads or generates the correlation id, exposes it via
``get_correlation_id()`` and echoes it on the response. RequestLoggingMiddleware
logs method, path, status and duration only (no query string, headers or
body), and turns any exception that escaped the exception handlers into an
INTERNAL_ERROR problem.
"""
import logging
import time
import uuid
from contextvars import ContextVar

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .models import ProblemDetail
from .problem_details import to_problem_detail

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(mode="json", by_alias=True, exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
    )


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, header_name: str = "X-Correlation-ID") -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        token = _correlation_id.set(correlation_id)
        try:
            response = await call_next(request)
        finally:
            _correlation_id.reset(token)
        response.headers[self.header_name] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request: method, path (no query), status_code, duration_ms."""

    async def dispatch(self, request: Request, call_next) -> Response:
        method = request.method
        # Log path only; do not log query string
        path = request.scope.get("path", "")
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception("unhandled error method=%s path=%s", method, path)
            response = problem_response(
                to_problem_detail(exc, instance=path, correlation_id=get_correlation_id())
            )
        duration_ms = (time.perf_counter() - start) * 1000
        status = response.status_code
        if status >= 500:
            logger.error(
                "request_finished method=%s path=%s status=%s duration_ms=%.1f",
                method, path, status, duration_ms,
            )
        elif status >= 400:
            logger.warning(
                "request_finished method=%s path=%s status=%s duration_ms=%.1f",
                method, path, status, duration_ms,
            )
        else:
            logger.info(
                "request_finished method=%s path=%s status=%s duration_ms=%.1f",
                method, path, status, duration_ms,
            )
        return response

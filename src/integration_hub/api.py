from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import List, Optional

import httpx
from fastapi import APIRouter, Depends, FastAPI, Path, Query, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import settings
from .account_service import AccountService
from .domain import AccountStatus, AccountType
from .errors import (
    BadRequestError,
    FieldViolation,
    ForbiddenError,
    HubError,
    InternalError,
    NotFoundError,
    ProviderError,
    ServiceUnavailableError,
    UnauthorizedError,
    ValidationError,
)
from .middleware import CorrelationIdMiddleware, RequestLoggingMiddleware, get_correlation_id, problem_response
from .models import AccountView, HealthStatus, InstrumentView, PortfolioView
from .portfolio_service import PortfolioService
from .problem_details import to_problem_detail
from .providers.datasets import default_market_dataset, default_oms_dataset, load_datasets
from .providers.http_client import build_http_client
from .providers.http_market_data import HttpPricingProvider
from .providers.http_oms import HttpPositionProvider
from .providers.protocols import PositionProvider, PricingProvider
from .providers.simulated_market_data import SimulatedPricingProvider
from .providers.simulated_oms import SimulatedPositionProvider
from .reference_data_service import ReferenceDataService

logger = logging.getLogger(__name__)

SERVICE_NAME = "api-first-integration-hub"
SERVICE_VERSION = "1.0.0"

CLIENT_ID_PATTERN = r"^CLIENT-[A-Z0-9]+$"
ACCOUNT_ID_PATTERN = r"^ACC-[A-Z0-9]+$"
SYMBOL_PATTERN = r"^[A-Z0-9.-]+$"

_WIRE_NAMES = {"client_id": "clientId", "account_id": "accountId"}

_PATTERN_MESSAGES = {
    "clientId": "Client ID must match pattern CLIENT-{ID}",
    "accountId": "Account ID must match pattern ACC-{ID}",
    "symbol": "Symbol must contain only uppercase letters, digits, '.' or '-'",
}


def build_providers() -> tuple[PositionProvider, PricingProvider, list[httpx.AsyncClient]]:
    """Construct the configured provider pair.

    Returns the providers plus any HTTP clients the application must close on
    shutdown.
    """

    mode = settings.get_provider_mode()
    if mode not in settings.PROVIDER_MODES:
        raise RuntimeError(f"Unsupported provider mode: {mode}")

    if mode == "simulated":
        loaded = load_datasets(settings.get_dataset_path())
        if loaded is not None:
            oms_dataset, market_dataset = loaded
            logger.info("simulated datasets loaded from %s", settings.get_dataset_path())
        else:
            oms_dataset, market_dataset = default_oms_dataset(), default_market_dataset()
        return (
            SimulatedPositionProvider(dataset=oms_dataset),
            SimulatedPricingProvider(dataset=market_dataset, fallback_price=settings.get_fallback_price()),
            [],
        )

    oms_url = settings.get_oms_base_url()
    market_url = settings.get_market_data_base_url()
    if not oms_url or not market_url:
        raise RuntimeError("HUB_OMS_BASE_URL and HUB_MARKET_DATA_BASE_URL must be set when HUB_PROVIDER_MODE=http")
    timeout = settings.get_provider_timeout()
    oms_client = build_http_client(base_url=oms_url, timeout=timeout)
    market_client = build_http_client(base_url=market_url, timeout=timeout)
    return (
        HttpPositionProvider(client=oms_client),
        HttpPricingProvider(client=market_client),
        [oms_client, market_client],
    )


def get_account_service(request: Request) -> AccountService:
    return AccountService(positions=request.app.state.position_provider)


def get_portfolio_service(request: Request) -> PortfolioService:
    return PortfolioService(
        positions=request.app.state.position_provider,
        pricer=request.app.state.pricing_provider,
    )


def get_reference_data_service(request: Request) -> ReferenceDataService:
    return ReferenceDataService(pricer=request.app.state.pricing_provider)


router = APIRouter(prefix="/api/v1")


@router.get("/health", response_model=HealthStatus)
async def health() -> HealthStatus:
    return HealthStatus(
        status="UP",
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        checks={"oms": "UP", "marketData": "UP"},
    )


@router.get("/clients/{client_id}/accounts", response_model=List[AccountView])
async def list_client_accounts(
    client_id: str = Path(..., pattern=CLIENT_ID_PATTERN),
    account_status: Optional[AccountStatus] = Query(None, alias="accountStatus"),
    account_type: Optional[AccountType] = Query(None, alias="accountType"),
    service: AccountService = Depends(get_account_service),
) -> List[AccountView]:
    return await service.list_accounts(client_id, status=account_status, account_type=account_type)


@router.get("/accounts/{account_id}/portfolio", response_model=PortfolioView)
async def get_account_portfolio(
    account_id: str = Path(..., pattern=ACCOUNT_ID_PATTERN),
    service: PortfolioService = Depends(get_portfolio_service),
) -> PortfolioView:
    return await service.get_portfolio(account_id)


@router.get("/reference/instruments/{symbol}", response_model=InstrumentView)
async def get_reference_instrument(
    symbol: str = Path(..., pattern=SYMBOL_PATTERN),
    service: ReferenceDataService = Depends(get_reference_data_service),
) -> InstrumentView:
    return await service.get_instrument(symbol)


def _violations_from(exc: RequestValidationError) -> list[FieldViolation]:
    out: list[FieldViolation] = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("path", "query", "body", "header")]
        field = ".".join(_WIRE_NAMES.get(p, p) for p in loc) or "request"
        message = err.get("msg") or "invalid value"
        if err.get("type") == "string_pattern_mismatch" and field in _PATTERN_MESSAGES:
            message = _PATTERN_MESSAGES[field]
        out.append(FieldViolation(field=field, message=message, rejected_value=err.get("input")))
    return out


def _problem(request: Request, error: BaseException):
    return to_problem_detail(
        error,
        instance=request.url.path,
        correlation_id=get_correlation_id(),
        type_base_uri=settings.get_problem_type_base_uri(),
    )


async def handle_hub_error(request: Request, exc: HubError):
    if isinstance(exc, ProviderError):
        logger.error("Provider error occurred: %s", exc.message, exc_info=exc)
    elif isinstance(exc, InternalError):
        logger.error("Internal error: %s", exc.detail, exc_info=exc)
    return problem_response(_problem(request, exc))


async def handle_request_validation(request: Request, exc: RequestValidationError):
    return problem_response(_problem(request, ValidationError(_violations_from(exc))))


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    status = exc.status_code
    if status == 404:
        error: HubError = NotFoundError("route", request.url.path)
    elif status == 401:
        error = UnauthorizedError()
    elif status == 403:
        error = ForbiddenError()
    elif status == 503:
        error = ServiceUnavailableError()
    elif status >= 500:
        error = InternalError()
    else:
        error = BadRequestError(str(exc.detail) if exc.detail else None)

    problem = _problem(request, error)
    if problem.status != status:
        # Keep the framework's status (e.g. 405) while reporting our error code.
        problem = problem.model_copy(update={"status": status, "title": HTTPStatus(status).phrase})
    response = problem_response(problem)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    for client in app.state.http_clients:
        await client.aclose()


def create_app(
    *,
    position_provider: PositionProvider | None = None,
    pricing_provider: PricingProvider | None = None,
) -> FastAPI:
    """Build the application around a provider pair.

    Providers not passed in are built from configuration.
    """

    http_clients: list[httpx.AsyncClient] = []
    if position_provider is None or pricing_provider is None:
        built_positions, built_pricer, http_clients = build_providers()
        position_provider = position_provider or built_positions
        pricing_provider = pricing_provider or built_pricer

    app = FastAPI(title="Integration Hub API", version=SERVICE_VERSION, lifespan=lifespan)
    app.state.position_provider = position_provider
    app.state.pricing_provider = pricing_provider
    app.state.http_clients = http_clients

    app.add_exception_handler(HubError, handle_hub_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)

    # Last added runs outermost: the correlation id is set before logging sees the request.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware, header_name=settings.get_correlation_header())

    app.include_router(router)
    return app


app = create_app()

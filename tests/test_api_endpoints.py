import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from integration_hub.api import create_app
from integration_hub.errors import ProviderError


@pytest.fixture()
def app_client(position_provider, pricing_provider) -> TestClient:
    return TestClient(create_app(position_provider=position_provider, pricing_provider=pricing_provider))


def _assert_problem(resp, status: int, code: str) -> dict:
    assert resp.status_code == status
    assert resp.headers["content-type"].startswith("application/problem+json")
    body = resp.json()
    assert body["status"] == status
    assert body["errorCode"] == code
    assert body["type"].endswith(code.lower().replace("_", "-"))
    assert body["correlationId"] == resp.headers["X-Correlation-ID"]
    return body


def test_health_is_static(app_client: TestClient):
    resp = app_client.get("/api/v1/health")

    assert resp.status_code == 200
    assert resp.json() == {
        "status": "UP",
        "service": "api-first-integration-hub",
        "version": "1.0.0",
        "checks": {"oms": "UP", "marketData": "UP"},
    }


def test_list_accounts_returns_camel_case_views(app_client: TestClient):
    resp = app_client.get("/api/v1/clients/CLIENT-98765/accounts")

    assert resp.status_code == 200
    data = resp.json()
    assert [a["accountId"] for a in data] == ["ACC-12345", "ACC-12346"]
    assert data[0]["clientId"] == "CLIENT-98765"
    assert data[0]["accountType"] == "BROKERAGE"
    assert Decimal(data[0]["currentValue"]) == Decimal("125000.50")


def test_list_accounts_filters(app_client: TestClient):
    ira = app_client.get("/api/v1/clients/CLIENT-98765/accounts", params={"accountType": "IRA"}).json()
    closed = app_client.get("/api/v1/clients/CLIENT-98765/accounts", params={"accountStatus": "CLOSED"})

    assert [a["accountId"] for a in ira] == ["ACC-12346"]
    assert closed.status_code == 200
    assert closed.json() == []


def test_list_accounts_unknown_client_is_404(app_client: TestClient):
    resp = app_client.get("/api/v1/clients/CLIENT-00000/accounts")

    body = _assert_problem(resp, 404, "RESOURCE_NOT_FOUND")
    assert body["title"] == "Not Found"
    assert body["detail"] == "Client not found: CLIENT-00000"
    assert body["instance"] == "/api/v1/clients/CLIENT-00000/accounts"
    assert "violations" not in body


def test_list_accounts_rejects_bad_client_id_and_filters(app_client: TestClient):
    bad_id = app_client.get("/api/v1/clients/client-1/accounts")
    body = _assert_problem(bad_id, 400, "VALIDATION_ERROR")
    assert body["violations"] == [
        {"field": "clientId", "message": "Client ID must match pattern CLIENT-{ID}", "rejectedValue": "client-1"}
    ]

    bad_enum = app_client.get("/api/v1/clients/CLIENT-98765/accounts", params={"accountStatus": "ASLEEP"})
    body = _assert_problem(bad_enum, 400, "VALIDATION_ERROR")
    assert [v["field"] for v in body["violations"]] == ["accountStatus"]
    assert body["violations"][0]["rejectedValue"] == "ASLEEP"


def test_portfolio_values_positions(app_client: TestClient):
    resp = app_client.get("/api/v1/accounts/ACC-12345/portfolio")

    assert resp.status_code == 200
    data = resp.json()
    assert data["accountId"] == "ACC-12345"
    assert Decimal(data["totalValue"]) == Decimal("40068.75")
    assert Decimal(data["totalCostBasis"]) == Decimal("27500.00")
    assert Decimal(data["totalUnrealizedGainLoss"]) == Decimal("12568.75")
    assert Decimal(data["totalUnrealizedGainLossPercent"]) == Decimal("45.7045")
    assert data["currency"] == "USD"
    assert "asOfDate" in data

    positions = {p["symbol"]: p for p in data["positions"]}
    assert Decimal(positions["GOOGL"]["positionValue"]) == Decimal("3518.75")
    assert Decimal(positions["GOOGL"]["costBasis"]) == Decimal("100.00")
    assert positions["GOOGL"]["instrumentName"] == "Alphabet Inc."


def test_portfolio_for_account_without_positions(app_client: TestClient):
    data = app_client.get("/api/v1/accounts/ACC-12346/portfolio").json()

    assert data["positions"] == []
    assert Decimal(data["totalValue"]) == 0
    assert Decimal(data["totalUnrealizedGainLossPercent"]) == 0
    assert data["currency"] == "USD"


def test_portfolio_unknown_account_and_bad_id(app_client: TestClient):
    missing = app_client.get("/api/v1/accounts/ACC-99999/portfolio")
    assert _assert_problem(missing, 404, "RESOURCE_NOT_FOUND")["detail"] == "Account not found: ACC-99999"

    malformed = app_client.get("/api/v1/accounts/ACCT-1/portfolio")
    body = _assert_problem(malformed, 400, "VALIDATION_ERROR")
    assert body["violations"][0]["field"] == "accountId"


def test_instrument_lookup(app_client: TestClient):
    resp = app_client.get("/api/v1/reference/instruments/AAPL")

    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Apple Inc."
    assert data["securityId"] == "037833100"
    assert Decimal(data["currentPrice"]) == Decimal("175.25")


def test_instrument_unknown_and_invalid_symbol(app_client: TestClient):
    _assert_problem(app_client.get("/api/v1/reference/instruments/ZZZZ"), 404, "RESOURCE_NOT_FOUND")

    body = _assert_problem(app_client.get("/api/v1/reference/instruments/aapl"), 400, "VALIDATION_ERROR")
    assert body["violations"][0]["field"] == "symbol"


def test_provider_failure_is_503(position_provider):
    class DownPricer:
        provider_id = "down"

        async def get_current_price(self, symbol: str) -> Decimal:
            raise ProviderError("vendor feed unreachable", provider="market-data")

        async def get_instrument_by_symbol(self, symbol: str):
            raise ProviderError("vendor feed unreachable", provider="market-data")

    client = TestClient(create_app(position_provider=position_provider, pricing_provider=DownPricer()))

    body = _assert_problem(client.get("/api/v1/accounts/ACC-12345/portfolio"), 503, "PROVIDER_ERROR")
    assert body["title"] == "Service Unavailable"
    assert body["detail"] == "External provider error: vendor feed unreachable"
    assert body["metadata"] == {"provider": "market-data"}

    # A known account with no positions never touches the pricer.
    assert client.get("/api/v1/accounts/ACC-12346/portfolio").status_code == 200


def test_unexpected_failure_is_500_without_details(pricing_provider):
    class CrashingOms:
        provider_id = "crashing"

        async def get_accounts_by_client(self, client_id: str):
            raise RuntimeError("segfault in legacy adapter: secret=xyz")

    client = TestClient(create_app(position_provider=CrashingOms(), pricing_provider=pricing_provider))

    resp = client.get("/api/v1/clients/CLIENT-98765/accounts", headers={"X-Correlation-ID": "trace-500"})

    body = _assert_problem(resp, 500, "INTERNAL_ERROR")
    assert body["detail"] == "An unexpected error occurred"
    assert body["correlationId"] == "trace-500"
    assert "secret" not in resp.text


def test_correlation_id_is_echoed_or_generated(app_client: TestClient):
    echoed = app_client.get("/api/v1/clients/CLIENT-00000/accounts", headers={"X-Correlation-ID": "abc-123"})
    assert echoed.headers["X-Correlation-ID"] == "abc-123"
    assert echoed.json()["correlationId"] == "abc-123"

    generated = app_client.get("/api/v1/health")
    uuid.UUID(generated.headers["X-Correlation-ID"])


def test_unknown_route_and_wrong_method_are_problems(app_client: TestClient):
    _assert_problem(app_client.get("/api/v1/nothing-here"), 404, "RESOURCE_NOT_FOUND")

    body = _assert_problem(app_client.post("/api/v1/health"), 405, "BAD_REQUEST")
    assert body["title"] == "Method Not Allowed"


def test_problem_type_base_uri_is_configurable(position_provider, pricing_provider, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("HUB_PROBLEM_TYPE_BASE_URI", "https://errors.example.org/p")
    client = TestClient(create_app(position_provider=position_provider, pricing_provider=pricing_provider))

    body = client.get("/api/v1/accounts/ACC-99999/portfolio").json()

    assert body["type"] == "https://errors.example.org/p/resource-not-found"


def test_unknown_provider_mode_is_rejected(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("HUB_PROVIDER_MODE", "carrier-pigeon")

    with pytest.raises(RuntimeError, match="Unsupported provider mode: carrier-pigeon"):
        create_app()


def test_http_mode_requires_both_base_urls(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("HUB_PROVIDER_MODE", "HTTP")
    monkeypatch.setenv("HUB_OMS_BASE_URL", "http://oms.internal")
    monkeypatch.delenv("HUB_MARKET_DATA_BASE_URL", raising=False)

    with pytest.raises(RuntimeError, match="HUB_MARKET_DATA_BASE_URL"):
        create_app()

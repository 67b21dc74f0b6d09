from __future__ import annotations

import os
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_PATH = PROJECT_ROOT / ".env"

# Load .env once, at import time, so all modules share the same behavior.
load_dotenv(dotenv_path=ENV_PATH)

DEFAULT_FALLBACK_PRICE = Decimal("100.00")
DEFAULT_PROBLEM_TYPE_BASE_URI = "https://api.integration-hub.example/problems/"

PROVIDER_MODES = {"simulated", "http"}


def _env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def get_hub_host() -> str:
    return _env("HUB_HOST") or "127.0.0.1"


def get_hub_port() -> int:
    raw = _env("HUB_PORT") or "8000"
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 8000


def get_hub_reload() -> bool:
    raw = _env("HUB_RELOAD") or "false"
    return raw.strip().lower() in {"1", "true", "yes"}


def get_provider_mode() -> str:
    """Which provider family backs the services: 'simulated' (default) or 'http'."""

    return (_env("HUB_PROVIDER_MODE") or "simulated").strip().lower()


def get_dataset_path() -> Path:
    """Optional JSON file overriding the built-in simulated datasets."""

    raw = _env("HUB_DATASET_PATH")
    if raw:
        return Path(raw).expanduser()
    return PROJECT_ROOT / "hub_dataset.json"


def get_fallback_price() -> Decimal:
    """Price the simulated vendor feed quotes for symbols it does not know."""

    raw = _env("HUB_FALLBACK_PRICE")
    if not raw:
        return DEFAULT_FALLBACK_PRICE
    try:
        dec = Decimal(raw)
    except (InvalidOperation, TypeError):
        return DEFAULT_FALLBACK_PRICE
    if not dec.is_finite() or dec < 0:
        return DEFAULT_FALLBACK_PRICE
    return dec


def get_oms_base_url() -> str | None:
    return _env("HUB_OMS_BASE_URL")


def get_market_data_base_url() -> str | None:
    return _env("HUB_MARKET_DATA_BASE_URL")


def get_provider_timeout() -> float:
    raw = _env("HUB_PROVIDER_TIMEOUT") or "5.0"
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 5.0
    return value if value > 0 else 5.0


def get_correlation_header() -> str:
    return _env("HUB_CORRELATION_HEADER") or "X-Correlation-ID"


def get_problem_type_base_uri() -> str:
    raw = _env("HUB_PROBLEM_TYPE_BASE_URI") or DEFAULT_PROBLEM_TYPE_BASE_URI
    # The error code is appended directly.
    return raw if raw.endswith("/") else raw + "/"


def get_log_level() -> str:
    return (_env("LOG_LEVEL") or "INFO").upper()


def get_log_json() -> bool:
    raw = _env("LOG_JSON") or "false"
    return raw.strip().lower() in {"1", "true", "yes"}

"""Read-only datasets backing the simulated providers.

Datasets are built once at startup and handed to the providers that read
them. The ``*_from_dict`` parsers are shared with the networked providers,
which receive the same shapes over HTTP.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from ..domain import Account, AccountStatus, AccountType, AssetClass, Instrument, Position


@dataclass(frozen=True)
class OmsDataset:
    accounts: tuple[Account, ...] = ()
    positions: Mapping[str, tuple[Position, ...]] = field(default_factory=lambda: MappingProxyType({}))

    def account(self, account_id: str) -> Account | None:
        return next((a for a in self.accounts if a.account_id == account_id), None)

    def accounts_for_client(self, client_id: str) -> list[Account]:
        return [a for a in self.accounts if a.client_id == client_id]

    def positions_for(self, account_id: str) -> list[Position]:
        return list(self.positions.get(account_id, ()))


@dataclass(frozen=True)
class MarketDataset:
    # Keys are upper-case symbols.
    prices: Mapping[str, Decimal] = field(default_factory=lambda: MappingProxyType({}))
    instruments: Mapping[str, Instrument] = field(default_factory=lambda: MappingProxyType({}))

    def price(self, symbol: str) -> Decimal | None:
        return self.prices.get(symbol.strip().upper())

    def instrument(self, symbol: str) -> Instrument | None:
        return self.instruments.get(symbol.strip().upper())


def build_oms_dataset(accounts: list[Account], positions: Mapping[str, list[Position]]) -> OmsDataset:
    return OmsDataset(
        accounts=tuple(accounts),
        positions=MappingProxyType({k: tuple(v) for k, v in positions.items()}),
    )


def build_market_dataset(prices: Mapping[str, Decimal], instruments: list[Instrument]) -> MarketDataset:
    return MarketDataset(
        prices=MappingProxyType({s.strip().upper(): p for s, p in prices.items()}),
        instruments=MappingProxyType({i.symbol.strip().upper(): i for i in instruments}),
    )


def default_oms_dataset(as_of: datetime | None = None) -> OmsDataset:
    as_of = as_of or datetime.now(timezone.utc)

    accounts = [
        Account(
            account_id="ACC-12345",
            client_id="CLIENT-98765",
            account_type=AccountType.BROKERAGE,
            status=AccountStatus.ACTIVE,
            display_name="My Investment Account",
            account_number="****1234",
            current_value=Decimal("125000.50"),
            currency="USD",
            opened_date=datetime(2020, 1, 15, tzinfo=timezone.utc),
            last_updated=as_of,
        ),
        Account(
            account_id="ACC-12346",
            client_id="CLIENT-98765",
            account_type=AccountType.IRA,
            status=AccountStatus.ACTIVE,
            display_name="My Retirement Account",
            account_number="****5678",
            current_value=Decimal("250000.00"),
            currency="USD",
            opened_date=datetime(2018, 6, 20, tzinfo=timezone.utc),
            last_updated=as_of,
        ),
    ]

    positions = {
        "ACC-12345": [
            Position("AAPL", "Apple Inc.", AssetClass.EQUITY, Decimal("100"), Decimal("150.00"), "USD"),
            Position("MSFT", "Microsoft Corporation", AssetClass.EQUITY, Decimal("50"), Decimal("200.00"), "USD"),
            Position("GOOGL", "Alphabet Inc.", AssetClass.EQUITY, Decimal("25"), Decimal("100.00"), "USD"),
        ],
    }

    return build_oms_dataset(accounts, positions)


def default_market_dataset(as_of: date | None = None) -> MarketDataset:
    as_of = as_of or date.today()

    prices = {
        "AAPL": Decimal("175.25"),
        "MSFT": Decimal("380.50"),
        "GOOGL": Decimal("140.75"),
        "TSLA": Decimal("250.00"),
        "AMZN": Decimal("145.30"),
    }

    instruments = [
        Instrument(
            symbol="AAPL",
            name="Apple Inc.",
            asset_class=AssetClass.EQUITY,
            exchange="NASDAQ",
            current_price=prices["AAPL"],
            currency="USD",
            security_id="037833100",
            sector="Technology",
            industry="Consumer Electronics",
            last_updated=as_of,
        ),
        Instrument(
            symbol="MSFT",
            name="Microsoft Corporation",
            asset_class=AssetClass.EQUITY,
            exchange="NASDAQ",
            current_price=prices["MSFT"],
            currency="USD",
            security_id="594918104",
            sector="Technology",
            industry="Software",
            last_updated=as_of,
        ),
        Instrument(
            symbol="GOOGL",
            name="Alphabet Inc.",
            asset_class=AssetClass.EQUITY,
            exchange="NASDAQ",
            current_price=prices["GOOGL"],
            currency="USD",
            security_id="02079K305",
            sector="Technology",
            industry="Internet Content & Information",
            last_updated=as_of,
        ),
    ]

    return build_market_dataset(prices, instruments)


def _get(raw: Mapping[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in raw:
        return raw[camel]
    return raw.get(snake, default)


def _require_str(raw: Mapping[str, Any], camel: str, snake: str) -> str:
    value = _get(raw, camel, snake)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"'{camel}' is required")
    return value.strip()


def _optional_str(raw: Mapping[str, Any], camel: str, snake: str) -> str | None:
    value = _get(raw, camel, snake)
    if value is None:
        return None
    return str(value)


def parse_decimal(value: Any, name: str) -> Decimal:
    try:
        dec = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"'{name}' must be a decimal, got {value!r}")
    if not dec.is_finite():
        raise ValueError(f"'{name}' must be finite, got {value!r}")
    return dec


def _parse_datetime(value: Any, name: str) -> datetime | None:
    if value is None:
        return None
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"'{name}' must be an ISO-8601 timestamp, got {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_date(value: Any, name: str) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValueError(f"'{name}' must be an ISO-8601 date, got {value!r}")


def _parse_enum(enum_cls, value: Any, name: str):
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        raise ValueError(f"'{name}' has unknown value {value!r}")


def account_from_dict(raw: Mapping[str, Any]) -> Account:
    return Account(
        account_id=_require_str(raw, "accountId", "account_id"),
        client_id=_require_str(raw, "clientId", "client_id"),
        account_type=_parse_enum(AccountType, _get(raw, "accountType", "account_type"), "accountType"),
        status=_parse_enum(AccountStatus, raw.get("status"), "status"),
        display_name=_optional_str(raw, "displayName", "display_name"),
        account_number=_optional_str(raw, "accountNumber", "account_number"),
        current_value=parse_decimal(_get(raw, "currentValue", "current_value", "0"), "currentValue"),
        currency=(_optional_str(raw, "currency", "currency") or "USD").strip().upper(),
        opened_date=_parse_datetime(_get(raw, "openedDate", "opened_date"), "openedDate"),
        last_updated=_parse_datetime(_get(raw, "lastUpdated", "last_updated"), "lastUpdated"),
    )


def position_from_dict(raw: Mapping[str, Any]) -> Position:
    return Position(
        symbol=_require_str(raw, "symbol", "symbol").upper(),
        instrument_name=_optional_str(raw, "instrumentName", "instrument_name"),
        asset_class=_parse_enum(AssetClass, _get(raw, "assetClass", "asset_class"), "assetClass"),
        quantity=parse_decimal(raw.get("quantity"), "quantity"),
        cost_basis_per_share=parse_decimal(
            _get(raw, "costBasisPerShare", "cost_basis_per_share", "0"), "costBasisPerShare"
        ),
        currency=(_optional_str(raw, "currency", "currency") or "USD").strip().upper(),
    )


def instrument_from_dict(raw: Mapping[str, Any]) -> Instrument:
    return Instrument(
        symbol=_require_str(raw, "symbol", "symbol").upper(),
        name=_require_str(raw, "name", "name"),
        asset_class=_parse_enum(AssetClass, _get(raw, "assetClass", "asset_class"), "assetClass"),
        exchange=_optional_str(raw, "exchange", "exchange"),
        current_price=parse_decimal(_get(raw, "currentPrice", "current_price"), "currentPrice"),
        currency=(_optional_str(raw, "currency", "currency") or "USD").strip().upper(),
        security_id=_optional_str(raw, "securityId", "security_id"),
        sector=_optional_str(raw, "sector", "sector"),
        industry=_optional_str(raw, "industry", "industry"),
        last_updated=_parse_date(_get(raw, "lastUpdated", "last_updated"), "lastUpdated"),
    )


def load_datasets(path: Path) -> tuple[OmsDataset, MarketDataset] | None:
    """Load simulated datasets from a JSON file.

    Expected format:

    {
      "accounts": [{"accountId": "ACC-1", "clientId": "CLIENT-1", ...}],
      "positions": {"ACC-1": [{"symbol": "AAPL", "quantity": "10", ...}]},
      "prices": {"AAPL": "175.25"},
      "instruments": [{"symbol": "AAPL", "name": "Apple Inc.", ...}]
    }

    - If the file does not exist, returns None.
    - A malformed entry raises ValueError naming the entry.
    """

    if not path.exists():
        return None

    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a JSON object")

    accounts: list[Account] = []
    for i, item in enumerate(raw.get("accounts") or []):
        if not isinstance(item, dict):
            raise ValueError(f"{path}: accounts[{i}] must be an object")
        try:
            accounts.append(account_from_dict(item))
        except ValueError as exc:
            raise ValueError(f"{path}: accounts[{i}]: {exc}") from exc

    positions: dict[str, list[Position]] = {}
    positions_raw = raw.get("positions") or {}
    if not isinstance(positions_raw, dict):
        raise ValueError(f"{path}: positions must be an object keyed by account id")
    for account_id, items in positions_raw.items():
        if not isinstance(items, list):
            raise ValueError(f"{path}: positions[{account_id}] must be a list")
        parsed: list[Position] = []
        for i, item in enumerate(items):
            if not isinstance(item, dict):
                raise ValueError(f"{path}: positions[{account_id}][{i}] must be an object")
            try:
                parsed.append(position_from_dict(item))
            except ValueError as exc:
                raise ValueError(f"{path}: positions[{account_id}][{i}]: {exc}") from exc
        positions[account_id] = parsed

    prices: dict[str, Decimal] = {}
    prices_raw = raw.get("prices") or {}
    if not isinstance(prices_raw, dict):
        raise ValueError(f"{path}: prices must be an object keyed by symbol")
    for symbol, value in prices_raw.items():
        prices[symbol] = parse_decimal(value, f"prices[{symbol}]")

    instruments: list[Instrument] = []
    for i, item in enumerate(raw.get("instruments") or []):
        if not isinstance(item, dict):
            raise ValueError(f"{path}: instruments[{i}] must be an object")
        try:
            instruments.append(instrument_from_dict(item))
        except ValueError as exc:
            raise ValueError(f"{path}: instruments[{i}]: {exc}") from exc

    return build_oms_dataset(accounts, positions), build_market_dataset(prices, instruments)

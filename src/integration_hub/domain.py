"""Domain shapes shared between the providers and the services.

These are the internal representation the OMS and vendor-feed providers hand
to the services. They are immutable; the services never mutate them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class AccountType(str, Enum):
    BROKERAGE = "BROKERAGE"
    IRA = "IRA"
    RETIREMENT_401K = "RETIREMENT_401K"
    TRUST = "TRUST"
    JOINT = "JOINT"
    CORPORATE = "CORPORATE"
    CUSTODIAL = "CUSTODIAL"


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    PENDING = "PENDING"
    SUSPENDED = "SUSPENDED"
    DORMANT = "DORMANT"


class AssetClass(str, Enum):
    EQUITY = "EQUITY"
    FIXED_INCOME = "FIXED_INCOME"
    CASH = "CASH"
    COMMODITY = "COMMODITY"
    REIT = "REIT"
    ETF = "ETF"
    MUTUAL_FUND = "MUTUAL_FUND"
    OPTION = "OPTION"
    FUTURE = "FUTURE"
    CRYPTO = "CRYPTO"


@dataclass(frozen=True)
class Account:
    account_id: str
    client_id: str
    account_type: AccountType
    status: AccountStatus
    display_name: str | None
    account_number: str | None
    current_value: Decimal
    currency: str
    opened_date: datetime | None
    last_updated: datetime | None


@dataclass(frozen=True)
class Position:
    """A holding of one instrument; the owning account is supplied by the caller."""

    symbol: str
    instrument_name: str | None
    asset_class: AssetClass
    quantity: Decimal
    cost_basis_per_share: Decimal
    currency: str = "USD"


@dataclass(frozen=True)
class Instrument:
    symbol: str
    name: str
    asset_class: AssetClass
    exchange: str | None
    current_price: Decimal
    currency: str
    security_id: str | None
    sector: str | None
    industry: str | None
    last_updated: date | None

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .domain import Account, AccountStatus, AccountType, AssetClass, Instrument, Position


class _CamelModel(BaseModel):
    """Views travel as camelCase JSON; Python code uses the snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccountView(_CamelModel):
    account_id: str
    client_id: str
    account_type: AccountType
    status: AccountStatus
    display_name: Optional[str] = None
    account_number: Optional[str] = None
    current_value: Decimal
    currency: str
    opened_date: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    @classmethod
    def from_domain(cls, account: Account) -> "AccountView":
        return cls(
            account_id=account.account_id,
            client_id=account.client_id,
            account_type=account.account_type,
            status=account.status,
            display_name=account.display_name,
            account_number=account.account_number,
            current_value=account.current_value,
            currency=account.currency,
            opened_date=account.opened_date,
            last_updated=account.last_updated,
        )

    def to_domain(self) -> Account:
        return Account(
            account_id=self.account_id,
            client_id=self.client_id,
            account_type=self.account_type,
            status=self.status,
            display_name=self.display_name,
            account_number=self.account_number,
            current_value=self.current_value,
            currency=self.currency,
            opened_date=self.opened_date,
            last_updated=self.last_updated,
        )


class PositionView(_CamelModel):
    """A position enriched with its live price and valuation."""

    symbol: str
    instrument_name: Optional[str] = None
    asset_class: AssetClass
    quantity: Decimal
    current_price: Decimal
    position_value: Decimal
    cost_basis: Decimal
    total_cost_basis: Decimal
    unrealized_gain_loss: Decimal
    unrealized_gain_loss_percent: Decimal
    currency: str

    def to_domain(self) -> Position:
        return Position(
            symbol=self.symbol,
            instrument_name=self.instrument_name,
            asset_class=self.asset_class,
            quantity=self.quantity,
            cost_basis_per_share=self.cost_basis,
            currency=self.currency,
        )


class PortfolioView(_CamelModel):
    account_id: str
    total_value: Decimal
    total_cost_basis: Decimal
    total_unrealized_gain_loss: Decimal
    total_unrealized_gain_loss_percent: Decimal
    currency: str = Field(default="USD")
    positions: list[PositionView] = Field(default_factory=list)
    as_of_date: datetime


class InstrumentView(_CamelModel):
    symbol: str
    name: str
    asset_class: AssetClass
    exchange: Optional[str] = None
    current_price: Decimal
    currency: str
    security_id: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    last_updated: Optional[date] = None

    @classmethod
    def from_domain(cls, instrument: Instrument) -> "InstrumentView":
        return cls(
            symbol=instrument.symbol,
            name=instrument.name,
            asset_class=instrument.asset_class,
            exchange=instrument.exchange,
            current_price=instrument.current_price,
            currency=instrument.currency,
            security_id=instrument.security_id,
            sector=instrument.sector,
            industry=instrument.industry,
            last_updated=instrument.last_updated,
        )

    def to_domain(self) -> Instrument:
        return Instrument(
            symbol=self.symbol,
            name=self.name,
            asset_class=self.asset_class,
            exchange=self.exchange,
            current_price=self.current_price,
            currency=self.currency,
            security_id=self.security_id,
            sector=self.sector,
            industry=self.industry,
            last_updated=self.last_updated,
        )


class Violation(_CamelModel):
    field: str
    message: str
    rejected_value: Any = None


class ProblemDetail(_CamelModel):
    """Error body returned for every non-2xx response."""

    type: str
    title: str
    status: int
    detail: str
    instance: Optional[str] = None
    correlation_id: Optional[str] = None
    error_code: str
    timestamp: datetime
    violations: Optional[list[Violation]] = None
    metadata: Optional[dict[str, Any]] = None


class HealthStatus(BaseModel):
    status: str = Field(default="UP")
    service: str
    version: str
    checks: dict[str, str] = Field(default_factory=dict)

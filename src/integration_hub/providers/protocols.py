from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from ..domain import Account, Instrument, Position


class PositionProvider(Protocol):
    """Account and position source (the OMS).

    Absence is reported as ``None`` / an empty list; failures of the backing
    system raise ``ProviderError``.
    """

    provider_id: str

    async def get_account_by_id(self, account_id: str) -> Account | None:
        ...

    async def get_accounts_by_client(self, client_id: str) -> list[Account]:
        ...

    async def get_positions_by_account(self, account_id: str) -> list[Position]:
        """Positions held in ``account_id``; empty whether or not the account exists."""
        ...


class PricingProvider(Protocol):
    """Swappable vendor feed for prices and instrument metadata.

    Symbols are matched case-insensitively.
    """

    provider_id: str

    async def get_current_price(self, symbol: str) -> Decimal:
        ...

    async def get_instrument_by_symbol(self, symbol: str) -> Instrument | None:
        ...

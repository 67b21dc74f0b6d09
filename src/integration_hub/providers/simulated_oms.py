from __future__ import annotations

from ..domain import Account, Position
from .datasets import OmsDataset
from .protocols import PositionProvider


class SimulatedPositionProvider(PositionProvider):
    """OMS stand-in answering from an injected, read-only dataset."""

    provider_id = "simulated-oms"

    def __init__(self, *, dataset: OmsDataset) -> None:
        self._dataset = dataset

    async def get_account_by_id(self, account_id: str) -> Account | None:
        return self._dataset.account(account_id)

    async def get_accounts_by_client(self, client_id: str) -> list[Account]:
        return self._dataset.accounts_for_client(client_id)

    async def get_positions_by_account(self, account_id: str) -> list[Position]:
        return self._dataset.positions_for(account_id)

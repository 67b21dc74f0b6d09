from __future__ import annotations

import httpx

from ..domain import Account, Position
from ..errors import ProviderError
from .datasets import account_from_dict, position_from_dict
from .http_client import get_json, segment
from .protocols import PositionProvider


class HttpPositionProvider(PositionProvider):
    """OMS reached over HTTP.

    Endpoints (relative to the client's base_url):
      GET /accounts/{accountId}
      GET /clients/{clientId}/accounts
      GET /accounts/{accountId}/positions
    """

    provider_id = "oms"

    def __init__(self, *, client: httpx.AsyncClient) -> None:
        self._client = client

    async def get_account_by_id(self, account_id: str) -> Account | None:
        raw = await get_json(self._client, f"/accounts/{segment(account_id)}", provider=self.provider_id)
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise ProviderError("oms returned a malformed account", provider=self.provider_id)
        return self._parse(account_from_dict, raw)

    async def get_accounts_by_client(self, client_id: str) -> list[Account]:
        raw = await get_json(self._client, f"/clients/{segment(client_id)}/accounts", provider=self.provider_id)
        return [self._parse(account_from_dict, item) for item in self._items(raw, "accounts")]

    async def get_positions_by_account(self, account_id: str) -> list[Position]:
        raw = await get_json(self._client, f"/accounts/{segment(account_id)}/positions", provider=self.provider_id)
        return [self._parse(position_from_dict, item) for item in self._items(raw, "positions")]

    def _items(self, raw, key: str) -> list[dict]:
        if raw is None:
            return []
        # Accept either a bare list or {"<key>": [...]}.
        if isinstance(raw, dict):
            raw = raw.get(key)
        if not isinstance(raw, list) or not all(isinstance(i, dict) for i in raw):
            raise ProviderError(f"oms returned malformed {key}", provider=self.provider_id)
        return raw

    def _parse(self, parser, raw: dict):
        try:
            return parser(raw)
        except ValueError as exc:
            raise ProviderError(f"oms returned invalid data: {exc}", provider=self.provider_id) from exc

from __future__ import annotations

from decimal import Decimal

import httpx

from ..domain import Instrument
from ..errors import ProviderError
from .datasets import instrument_from_dict, parse_decimal
from .http_client import get_json, segment
from .protocols import PricingProvider


class HttpPricingProvider(PricingProvider):
    """Vendor feed reached over HTTP.

    Endpoints (relative to the client's base_url):
      GET /prices/{SYMBOL}       -> {"price": "175.25"}
      GET /instruments/{SYMBOL}
    """

    provider_id = "market-data"

    def __init__(self, *, client: httpx.AsyncClient) -> None:
        self._client = client

    async def get_current_price(self, symbol: str) -> Decimal:
        sym = (symbol or "").strip().upper()
        raw = await get_json(self._client, f"/prices/{segment(sym)}", provider=self.provider_id)
        if raw is None:
            # No fallback here: a real feed without a quote is a provider failure.
            raise ProviderError(f"no price available for {sym}", provider=self.provider_id)

        value = raw.get("price") if isinstance(raw, dict) else None
        try:
            return parse_decimal(value, "price")
        except ValueError as exc:
            raise ProviderError(f"invalid price for {sym}: {exc}", provider=self.provider_id) from exc

    async def get_instrument_by_symbol(self, symbol: str) -> Instrument | None:
        sym = (symbol or "").strip().upper()
        raw = await get_json(self._client, f"/instruments/{segment(sym)}", provider=self.provider_id)
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise ProviderError("market-data returned a malformed instrument", provider=self.provider_id)
        try:
            return instrument_from_dict(raw)
        except ValueError as exc:
            raise ProviderError(f"market-data returned invalid data: {exc}", provider=self.provider_id) from exc

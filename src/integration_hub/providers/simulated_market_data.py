from __future__ import annotations

from decimal import Decimal

from .. import settings
from ..domain import Instrument
from .datasets import MarketDataset
from .protocols import PricingProvider


class SimulatedPricingProvider(PricingProvider):
    provider_id = "simulated-market-data"

    def __init__(self, *, dataset: MarketDataset, fallback_price: Decimal | None = None) -> None:
        self._dataset = dataset
        self._fallback_price = fallback_price if fallback_price is not None else settings.DEFAULT_FALLBACK_PRICE

    async def get_current_price(self, symbol: str) -> Decimal:
        # Unknown symbols are quoted at the fallback price rather than reported missing.
        price = self._dataset.price(symbol)
        if price is None:
            return self._fallback_price
        return price

    async def get_instrument_by_symbol(self, symbol: str) -> Instrument | None:
        return self._dataset.instrument(symbol)

from __future__ import annotations

from .errors import NotFoundError
from .models import InstrumentView
from .providers.protocols import PricingProvider


class ReferenceDataService:
    def __init__(self, *, pricer: PricingProvider) -> None:
        self._pricer = pricer

    async def get_instrument(self, symbol: str) -> InstrumentView:
        instrument = await self._pricer.get_instrument_by_symbol(symbol)
        if instrument is None:
            raise NotFoundError("instrument", symbol)
        return InstrumentView.from_domain(instrument)

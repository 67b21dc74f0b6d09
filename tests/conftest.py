from datetime import datetime, timezone
from decimal import Decimal

import pytest

from integration_hub.providers.datasets import default_market_dataset, default_oms_dataset
from integration_hub.providers.simulated_market_data import SimulatedPricingProvider
from integration_hub.providers.simulated_oms import SimulatedPositionProvider

AS_OF = datetime(2024, 3, 1, 15, 30, tzinfo=timezone.utc)


@pytest.fixture()
def oms_dataset():
    return default_oms_dataset(as_of=AS_OF)


@pytest.fixture()
def market_dataset():
    return default_market_dataset(as_of=AS_OF.date())


@pytest.fixture()
def position_provider(oms_dataset) -> SimulatedPositionProvider:
    return SimulatedPositionProvider(dataset=oms_dataset)


@pytest.fixture()
def pricing_provider(market_dataset) -> SimulatedPricingProvider:
    return SimulatedPricingProvider(dataset=market_dataset, fallback_price=Decimal("100.00"))

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import (
    MAX_EMAX,
    MAX_PREC,
    MIN_EMIN,
    ROUND_DOWN,
    ROUND_HALF_UP,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    localcontext,
)
from typing import Callable

from .domain import Position
from .errors import NotFoundError
from .models import PortfolioView, PositionView
from .providers.protocols import PositionProvider, PricingProvider

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "USD"

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_PERCENT_DIGITS = 4
_PERCENT_PLACES = Decimal("0.0001")

# Products, sums and differences of finite decimals never round here.
_EXACT = Context(
    prec=MAX_PREC,
    Emax=MAX_EMAX,
    Emin=MIN_EMIN,
    traps=[InvalidOperation, DivisionByZero],
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def gain_loss_percent(gain_loss: Decimal, cost_basis: Decimal) -> Decimal:
    """Return ``gain_loss / cost_basis * 100`` at 4 places, ROUND_HALF_UP.

    The rounding applies to the percent itself, not to the ratio: 12568.75 over
    27500 is 45.7045, not 45.70. The quotient is truncated a couple of digits
    past the fourth decimal before rounding, so ROUND_HALF_UP sees the true
    side of the midpoint however many digits the operands carry.

    A zero cost basis yields exactly 0.
    """

    if cost_basis == 0:
        return _ZERO
    with localcontext(_EXACT):
        scaled = gain_loss * _HUNDRED
    integer_digits = max(scaled.adjusted() - cost_basis.adjusted() + 2, 1)
    division = Context(
        prec=integer_digits + _PERCENT_DIGITS + 2,
        rounding=ROUND_DOWN,
        Emax=MAX_EMAX,
        Emin=MIN_EMIN,
    )
    with localcontext(division):
        return (scaled / cost_basis).quantize(_PERCENT_PLACES, rounding=ROUND_HALF_UP)


class PortfolioService:
    """Values an account's positions against the vendor feed."""

    def __init__(
        self,
        *,
        positions: PositionProvider,
        pricer: PricingProvider,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._positions = positions
        self._pricer = pricer
        self._clock = clock

    async def get_portfolio(self, account_id: str) -> PortfolioView:
        # Existence first: an empty position list alone can't tell an unknown
        # account from one with no holdings.
        account = await self._positions.get_account_by_id(account_id)
        if account is None:
            raise NotFoundError("account", account_id)

        positions = await self._positions.get_positions_by_account(account_id)

        enriched: list[PositionView] = []
        for position in positions:
            enriched.append(await self._enrich(position))

        with localcontext(_EXACT):
            total_value = sum((p.position_value for p in enriched), start=_ZERO)
            total_cost_basis = sum((p.total_cost_basis for p in enriched), start=_ZERO)
            total_gain_loss = total_value - total_cost_basis
        total_percent = gain_loss_percent(total_gain_loss, total_cost_basis) if total_cost_basis > 0 else _ZERO

        currency = enriched[0].currency if enriched else DEFAULT_CURRENCY
        currencies = {p.currency for p in enriched}
        if len(currencies) > 1:
            # Totals are summed as-is; there is no conversion.
            logger.warning(
                "mixed-currency portfolio account=%s currencies=%s reported_currency=%s",
                account_id,
                ",".join(sorted(currencies)),
                currency,
            )

        logger.info(
            "portfolio computed account=%s positions=%d pricer=%s",
            account_id,
            len(enriched),
            self._pricer.provider_id,
        )

        return PortfolioView(
            account_id=account_id,
            total_value=total_value,
            total_cost_basis=total_cost_basis,
            total_unrealized_gain_loss=total_gain_loss,
            total_unrealized_gain_loss_percent=total_percent,
            currency=currency,
            positions=enriched,
            as_of_date=self._clock(),
        )

    async def _enrich(self, position: Position) -> PositionView:
        price = await self._pricer.get_current_price(position.symbol)

        with localcontext(_EXACT):
            position_value = position.quantity * price
            total_cost_basis = position.quantity * position.cost_basis_per_share
            gain_loss = position_value - total_cost_basis

        percent = _ZERO
        if position.cost_basis_per_share > 0:
            percent = gain_loss_percent(gain_loss, total_cost_basis)

        logger.debug("priced symbol=%s price=%s quantity=%s", position.symbol, price, position.quantity)

        return PositionView(
            symbol=position.symbol,
            instrument_name=position.instrument_name,
            asset_class=position.asset_class,
            quantity=position.quantity,
            current_price=price,
            position_value=position_value,
            cost_basis=position.cost_basis_per_share,
            total_cost_basis=total_cost_basis,
            unrealized_gain_loss=gain_loss,
            unrealized_gain_loss_percent=percent,
            currency=position.currency,
        )

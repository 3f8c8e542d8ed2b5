"""Weighted-average cost basis accumulation for buys and sells."""

import logging
from dataclasses import replace
from decimal import Decimal

from portfolio_engine.services.portfolio.exceptions import OversellError
from portfolio_engine.services.portfolio.valuation_types import (
    ZERO,
    HoldingState,
    SellResult,
    percent_of,
)

logger = logging.getLogger(__name__)


def weighted_average_price(lots: list[tuple[Decimal, Decimal]], fallback: Decimal) -> Decimal:
    """Quantity-weighted mean of (quantity, price) pairs.

    Returns fallback when the total quantity is zero.
    """
    total_quantity = sum((quantity for quantity, _ in lots), ZERO)
    if total_quantity == 0:
        return fallback
    total_cost = sum((quantity * price for quantity, price in lots), ZERO)
    return total_cost / total_quantity


def apply_buy(
    existing: HoldingState,
    quantity: Decimal,
    price: Decimal,
    current_price: Decimal | None = None,
) -> HoldingState:
    """Fold a buy into an existing holding.

    Args:
        existing: Holding with the same identity as the incoming buy
        quantity: Units bought
        price: Price paid per unit
        current_price: Latest observed market price, if the caller has one

    Returns:
        New HoldingState with summed quantity and weighted-average price
    """
    total_quantity = existing.quantity + quantity
    average_price = weighted_average_price(
        [(existing.quantity, existing.average_price), (quantity, price)], fallback=price
    )
    mark = current_price if current_price is not None else existing.current_price

    return replace(
        existing,
        quantity=total_quantity,
        average_price=average_price,
        invested_amount=total_quantity * average_price,
        current_price=mark,
        current_value=total_quantity * mark,
    )


def apply_sell(
    existing: HoldingState,
    quantity: Decimal,
    price: Decimal,
    allow_oversell: bool = True,
) -> SellResult:
    """Apply a sell to a holding at the holding's average cost.

    Selling never changes the average price of the remaining units. Selling
    more than is held empties the position; with allow_oversell=False it
    raises OversellError instead.
    """
    if quantity > existing.quantity and not allow_oversell:
        raise OversellError(existing.id, existing.quantity, quantity)

    cost_basis = quantity * existing.average_price
    realized = quantity * price - cost_basis
    realized_percent = percent_of(realized, cost_basis)

    remaining_quantity = existing.quantity - quantity
    if remaining_quantity <= 0:
        if remaining_quantity < 0:
            logger.info(
                f"Over-sell on holding {existing.id}: sold {quantity}, held {existing.quantity}"
            )
        remaining = None
    else:
        remaining = replace(
            existing,
            quantity=remaining_quantity,
            invested_amount=remaining_quantity * existing.average_price,
            current_value=remaining_quantity * existing.current_price,
        )

    return SellResult(
        remaining=remaining,
        realized_profit_loss=realized,
        realized_profit_loss_percent=realized_percent,
        sold_quantity=quantity,
        cost_basis=cost_basis,
    )

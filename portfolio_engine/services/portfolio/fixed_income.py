"""Fixed-income valuation by compound accrual.

The valuator is index-agnostic: callers resolve fixed, CDI-linked and
IPCA-linked rates into one effective annual percentage with
resolve_effective_rate() before valuing.
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

from portfolio_engine.constants import DAYS_PER_YEAR, AssetCategory, RateType
from portfolio_engine.services.portfolio.valuation_types import (
    HUNDRED,
    ZERO,
    HoldingState,
)

logger = logging.getLogger(__name__)

ONE = Decimal("1")
SECONDS_PER_YEAR = Decimal(DAYS_PER_YEAR * 24 * 60 * 60)


def as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime(value.year, value.month, value.day)


def years_between(start: date | datetime, end: date | datetime) -> Decimal:
    """Elapsed years (365-day years) from start to end, floored at zero."""
    seconds = (as_datetime(end) - as_datetime(start)).total_seconds()
    if seconds <= 0:
        return ZERO
    return Decimal(str(seconds)) / SECONDS_PER_YEAR


def compound_value(
    invested_amount: Decimal,
    annual_rate_percent: Decimal,
    purchase_date: date | datetime,
    as_of: date | datetime,
) -> Decimal:
    """Value of a principal compounded annually since purchase.

    Examples:
        >>> compound_value(Decimal("1000"), Decimal("12"), date(2024, 1, 1), date(2024, 1, 1))
        Decimal('1000')
    """
    years = years_between(purchase_date, as_of)
    if years <= 0:
        return invested_amount
    growth = ONE + annual_rate_percent / HUNDRED
    if growth <= 0:
        return ZERO
    if years == years.to_integral_value():
        return invested_amount * growth ** int(years)
    return invested_amount * growth**years


def implied_annual_rate(
    invested_amount: Decimal, current_value: Decimal, years: Decimal
) -> Decimal:
    """Annual rate (%) that compounds invested_amount into current_value over years."""
    if invested_amount <= 0 or current_value <= 0 or years <= 0:
        return ZERO
    return ((current_value / invested_amount) ** (ONE / years) - ONE) * HUNDRED


def resolve_effective_rate(
    rate_type: str,
    rate: Decimal,
    cdi_rate: Decimal,
    ipca_rate: Decimal,
) -> Decimal:
    """Turn a quoted fixed-income rate into one effective annual percentage.

    Args:
        rate_type: RateType.PRE (fixed), POS/CDI (% of CDI) or IPCA (IPCA + spread)
        rate: Quoted rate as entered by the user
        cdi_rate: Current CDI rate (% a.a.)
        ipca_rate: Current IPCA rate (% a.a.)
    """
    if rate_type in (RateType.POS, RateType.CDI):
        return cdi_rate * rate / HUNDRED
    if rate_type == RateType.IPCA:
        return ipca_rate + rate
    return rate


def is_compounding(holding: HoldingState) -> bool:
    """True when the holding is valued by accrual rather than by market price."""
    return (
        holding.category in AssetCategory.FIXED_INCOME
        and holding.interest_rate is not None
        and holding.purchase_date is not None
    )


def current_value_of(holding: HoldingState, as_of: date | datetime) -> Decimal:
    """Current value of a holding on as_of, by accrual or by mark-to-market."""
    if is_compounding(holding):
        return compound_value(
            holding.invested_amount, holding.interest_rate, holding.purchase_date, as_of
        )
    return holding.quantity * holding.current_price


def revalue(holding: HoldingState, as_of: date | datetime) -> HoldingState:
    """Recompute current value (and per-unit price) for as_of.

    Must run on every read: a cached accrual value drifts from the truth as
    days pass.
    """
    if not is_compounding(holding):
        return replace(holding, current_value=holding.quantity * holding.current_price)

    current_value = current_value_of(holding, as_of)
    current_price = current_value / holding.quantity if holding.quantity > 0 else current_value
    return replace(holding, current_value=current_value, current_price=current_price)

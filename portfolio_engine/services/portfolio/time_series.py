"""Portfolio value time series for charting.

Each holding is valued independently at every sample timestamp and the
results are summed:

- Fixed income: compound accrual evaluated at the timestamp.
- Market holdings with price history: linear interpolation between the two
  bracketing observations, clamped to the first/last observation outside the
  history's range.
- Market holdings without history: an ease-in-out curve (3t^2 - 2t^3) from
  invested amount to current value over the time since purchase. This is a
  presentational approximation, not market data.

The last point is always the live portfolio total, so the chart never
disagrees with the summary cards.
"""

import logging
from bisect import bisect_right
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from portfolio_engine.constants import AssetCategory
from portfolio_engine.services.market_data.base import PricePoint
from portfolio_engine.services.portfolio.currency import (
    quote_to_holding_price,
    to_display_currency,
)
from portfolio_engine.services.portfolio.fixed_income import (
    as_datetime,
    compound_value,
    current_value_of,
    implied_annual_rate,
    years_between,
)
from portfolio_engine.services.portfolio.valuation_types import (
    ZERO,
    ChartPoint,
    HoldingState,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
TWO = Decimal("2")
THREE = Decimal("3")

PriceHistoryLookup = Callable[[HoldingState], Sequence[PricePoint]]


@dataclass(frozen=True)
class ChartPeriod:
    """Sampling plan for one chart period."""

    key: str
    points: int
    step: timedelta
    label_format: str

    @property
    def span(self) -> timedelta:
        return self.step * (self.points - 1)


PERIODS: dict[str, ChartPeriod] = {
    "1d": ChartPeriod("1d", 24, timedelta(hours=1), "%H:%M"),
    "1w": ChartPeriod("1w", 7, timedelta(days=1), "%d/%m"),
    "1m": ChartPeriod("1m", 30, timedelta(days=1), "%d/%m"),
    "6m": ChartPeriod("6m", 26, timedelta(days=7), "%b %y"),
    "1y": ChartPeriod("1y", 12, timedelta(days=30), "%b %y"),
    "total": ChartPeriod("total", 24, timedelta(days=30), "%b %Y"),
}


def get_period(key: str) -> ChartPeriod:
    """Look up a chart period, raising ValueError for unknown keys."""
    try:
        return PERIODS[key]
    except KeyError:
        raise ValueError(f"Unknown chart period: {key}") from None


def sample_timestamps(period: ChartPeriod, as_of: datetime) -> list[datetime]:
    """Evenly spaced timestamps ending exactly at as_of, oldest first."""
    return [as_of - period.step * (period.points - 1 - i) for i in range(period.points)]


def ease_in_out(t: Decimal) -> Decimal:
    """Smoothstep 3t^2 - 2t^3 with t clamped to [0, 1]."""
    t = min(max(t, ZERO), Decimal("1"))
    return THREE * t * t - TWO * t * t * t


def interpolate_price(history: Sequence[PricePoint], at: datetime) -> Decimal | None:
    """Linearly interpolate a price at a timestamp.

    history must be sorted by date. Outside the observed range the first or
    last observation is used.
    """
    if not history:
        return None

    stamps = [as_datetime(point.date) for point in history]
    if at <= stamps[0]:
        return history[0].price
    if at >= stamps[-1]:
        return history[-1].price

    right = bisect_right(stamps, at)
    left = right - 1
    if stamps[left] == at:
        return history[left].price

    span = Decimal(str((stamps[right] - stamps[left]).total_seconds()))
    offset = Decimal(str((at - stamps[left]).total_seconds()))
    lower, upper = history[left].price, history[right].price
    return lower + (upper - lower) * offset / span


def _acquired_at(holding: HoldingState, period: ChartPeriod, as_of: datetime) -> datetime:
    if holding.purchase_date is not None:
        return as_datetime(holding.purchase_date)
    # Unknown purchase date: assume it was bought one period ago
    return as_of - period.span


def _fixed_income_value(
    holding: HoldingState, acquired_at: datetime, at: datetime, as_of: datetime
) -> Decimal:
    if holding.interest_rate is not None:
        rate = holding.interest_rate
    else:
        rate = implied_annual_rate(
            holding.invested_amount,
            current_value_of(holding, as_of),
            years_between(acquired_at, as_of),
        )
    return compound_value(holding.invested_amount, rate, acquired_at, at)


def _smoothed_value(
    holding: HoldingState, acquired_at: datetime, at: datetime, as_of: datetime
) -> Decimal:
    total = Decimal(str((as_of - acquired_at).total_seconds()))
    if total <= 0:
        return holding.current_value
    elapsed = Decimal(str((at - acquired_at).total_seconds()))
    progress = ease_in_out(elapsed / total)
    return holding.invested_amount + (holding.current_value - holding.invested_amount) * progress


def _history_for(holding: HoldingState, lookup: PriceHistoryLookup | None) -> list[PricePoint]:
    if lookup is None:
        return []
    try:
        history = lookup(holding)
    except Exception as e:
        logger.warning(f"Price history lookup failed for {holding.ticker or holding.name}: {e}")
        return []
    return sorted(history or [], key=lambda point: as_datetime(point.date))


def holding_series(
    holding: HoldingState,
    timestamps: list[datetime],
    period: ChartPeriod,
    history: Sequence[PricePoint],
    fx_rate: Decimal,
    as_of: datetime,
) -> list[Decimal]:
    """Display-currency value of one holding at each timestamp."""
    acquired_at = _acquired_at(holding, period, as_of)

    if holding.category in AssetCategory.FIXED_INCOME:
        native = [_fixed_income_value(holding, acquired_at, at, as_of) for at in timestamps]
    elif history:
        native = []
        for at in timestamps:
            observed = interpolate_price(history, at)
            price = quote_to_holding_price(observed, holding.category, fx_rate)
            native.append(price * holding.quantity)
    else:
        native = [_smoothed_value(holding, acquired_at, at, as_of) for at in timestamps]

    return [to_display_currency(value, holding.category, fx_rate) for value in native]


def current_portfolio_total(
    holdings: Sequence[HoldingState], fx_rate: Decimal, as_of: date | datetime
) -> Decimal:
    """Live total of the portfolio in the display currency."""
    return sum(
        (
            to_display_currency(current_value_of(holding, as_of), holding.category, fx_rate)
            for holding in holdings
        ),
        ZERO,
    )


def build_series(
    holdings: Sequence[HoldingState],
    period: str | ChartPeriod,
    price_history_lookup: PriceHistoryLookup | None,
    fx_rate: Decimal,
    as_of: datetime | None = None,
) -> list[ChartPoint]:
    """Build the portfolio value series for a chart period.

    Args:
        holdings: Reconciled holdings to chart
        period: Period key ("1d", "1w", "1m", "6m", "1y", "total") or ChartPeriod
        price_history_lookup: Returns price observations for a holding; failures
            and empty results fall back to the smoothed curve for that holding only
        fx_rate: USD -> display currency rate
        as_of: End of the series (default: now)

    Returns:
        Points ordered oldest first; empty when there are no holdings
    """
    if not holdings:
        return []

    plan = get_period(period) if isinstance(period, str) else period
    as_of = as_datetime(as_of or datetime.now())
    timestamps = sample_timestamps(plan, as_of)

    totals = [ZERO] * len(timestamps)
    for holding in holdings:
        history = _history_for(holding, price_history_lookup)
        values = holding_series(holding, timestamps, plan, history, fx_rate, as_of)
        totals = [total + value for total, value in zip(totals, values)]

    totals[-1] = current_portfolio_total(holdings, fx_rate, as_of)

    return [
        ChartPoint(
            label=at.strftime(plan.label_format),
            value=total.quantize(CENT, rounding=ROUND_HALF_UP),
            timestamp=at,
        )
        for at, total in zip(timestamps, totals)
    ]

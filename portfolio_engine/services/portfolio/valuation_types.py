"""Value objects for portfolio valuation and reconciliation."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """Return part / whole * 100, or 0 when whole is 0."""
    if whole == 0:
        return ZERO
    return part / whole * HUNDRED


@dataclass
class HoldingState:
    """A user's position in one asset, as seen by the valuation engine."""

    id: str
    user_id: str
    category: str
    name: str
    quantity: Decimal
    average_price: Decimal
    current_price: Decimal
    invested_amount: Decimal
    current_value: Decimal
    ticker: str | None = None
    interest_rate: Decimal | None = None  # effective % a.a.
    purchase_date: date | None = None
    maturity_date: date | None = None
    notes: str | None = None
    tags: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def profit_loss(self) -> Decimal:
        return self.current_value - self.invested_amount

    @property
    def profit_loss_percent(self) -> Decimal:
        return percent_of(self.profit_loss, self.invested_amount)


@dataclass
class TransactionRecord:
    """Immutable buy/sell log entry."""

    id: str
    user_id: str
    holding_id: str | None
    type: str
    category: str
    name: str
    quantity: Decimal
    price: Decimal
    total: Decimal
    date: date
    ticker: str | None = None
    profit_loss: Decimal | None = None
    profit_loss_percent: Decimal | None = None
    created_at: datetime | None = None


@dataclass
class SellResult:
    """Outcome of applying a sell to a holding."""

    remaining: HoldingState | None
    realized_profit_loss: Decimal
    realized_profit_loss_percent: Decimal
    sold_quantity: Decimal
    cost_basis: Decimal


@dataclass
class MergeAction:
    """Store changes needed to collapse one duplicate set into its survivor."""

    survivor_id: str
    merged: HoldingState
    retired_ids: list[str]


@dataclass
class MergeWrite:
    """What a store wrote when collapsing a duplicate set."""

    survivor: HoldingState
    transactions_repointed: int
    records_deleted: int


@dataclass
class ReconciliationResult:
    """Result of a reconciliation pass over one user's holdings."""

    merged: list[HoldingState]
    groups: list[list[HoldingState]]
    actions: list[MergeAction]

    @property
    def duplicate_groups(self) -> list[list[HoldingState]]:
        return [group for group in self.groups if len(group) > 1]

    @property
    def has_changes(self) -> bool:
        return bool(self.actions)


@dataclass
class ReconciliationStats:
    """Counters for the store side effects of a reconciliation pass."""

    groups_merged: int = 0
    survivors_updated: int = 0
    transactions_repointed: int = 0
    records_deleted: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class ChartPoint:
    """One point of a portfolio value series."""

    label: str
    value: Decimal
    timestamp: datetime


@dataclass
class HoldingDisplayValue:
    """Per-holding values converted to the display currency."""

    holding_id: str
    category: str
    name: str
    ticker: str | None
    quantity: Decimal
    invested_amount: Decimal
    current_value: Decimal
    profit_loss: Decimal
    profit_loss_percent: Decimal


@dataclass
class CategoryValue:
    """Invested amount, value and result of one asset category."""

    category: str
    invested_amount: Decimal
    current_value: Decimal
    profit_loss: Decimal
    profit_loss_percent: Decimal
    portfolio_percent: Decimal


@dataclass
class PortfolioSummary:
    """Aggregated totals in the display currency."""

    total_value: Decimal
    total_invested: Decimal
    total_profit_loss: Decimal
    total_profit_loss_percent: Decimal
    category_totals: dict[str, Decimal]
    holdings: list[HoldingDisplayValue]
    fx_rate: Decimal
    display_currency: str
    categories: list[CategoryValue] = field(default_factory=list)

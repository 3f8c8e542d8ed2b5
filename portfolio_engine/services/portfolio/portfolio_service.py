"""Portfolio service - wires the valuation engine to a record store.

Every read goes through load_holdings(): duplicates are reconciled (and the
merge written back), then each holding is revalued for the current date.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from portfolio_engine.config import settings
from portfolio_engine.constants import AssetCategory, RateType, TransactionType
from portfolio_engine.services.market_data.base import Quote
from portfolio_engine.services.market_data.economic_rates_service import (
    EconomicRatesProvider,
    StaticEconomicRatesProvider,
    default_rates,
)
from portfolio_engine.services.market_data.exchange_rate_service import ExchangeRateProvider
from portfolio_engine.services.market_data.market_data_service import MarketDataService
from portfolio_engine.services.portfolio.cost_basis import apply_buy, apply_sell
from portfolio_engine.services.portfolio.currency import (
    quote_to_holding_price,
    to_display_currency,
)
from portfolio_engine.services.portfolio.exceptions import (
    InvariantViolationError,
    UnknownCategoryError,
)
from portfolio_engine.services.portfolio.fixed_income import resolve_effective_rate, revalue
from portfolio_engine.services.portfolio.identity import find_matching_holding
from portfolio_engine.services.portfolio.reconciliation import apply_reconciliation, reconcile
from portfolio_engine.services.portfolio.time_series import build_series, get_period
from portfolio_engine.services.portfolio.valuation_types import (
    ZERO,
    CategoryValue,
    ChartPoint,
    HoldingDisplayValue,
    HoldingState,
    PortfolioSummary,
    SellResult,
    TransactionRecord,
    percent_of,
)
from portfolio_engine.services.repositories.base import UPDATABLE_HOLDING_FIELDS, RecordStore
from portfolio_engine.services.repositories.exceptions import NotFoundError

logger = logging.getLogger(__name__)

# Fields that feed invested_amount / current_value on a direct edit
_COST_FIELDS = {"quantity", "average_price"}


def _validate_category(category: str) -> None:
    if category not in AssetCategory.ALL:
        raise UnknownCategoryError(category)


class PortfolioService:
    """Buy, sell, edit and value one user's portfolio.

    Args:
        store: Where holdings and transactions live
        exchange_rates: USD -> display currency rate source
        market_data: Quotes and history; without it, charts use the smoothed
            curve and price refresh is a no-op
        strict_oversell: Reject sells above the held quantity
            (default: settings.strict_oversell)
        economic_rates: CDI/IPCA source for floating-rate buys
            (default: the configured static rates)
    """

    def __init__(
        self,
        store: RecordStore,
        exchange_rates: ExchangeRateProvider,
        market_data: MarketDataService | None = None,
        strict_oversell: bool | None = None,
        economic_rates: EconomicRatesProvider | None = None,
    ) -> None:
        self._store = store
        self._exchange_rates = exchange_rates
        self._market_data = market_data
        self._strict_oversell = (
            settings.strict_oversell if strict_oversell is None else strict_oversell
        )
        self._economic_rates = economic_rates or StaticEconomicRatesProvider()

    def _owned_holding(self, user_id: str, holding_id: str) -> HoldingState:
        holding = self._store.find_holding(holding_id)
        if holding is None or holding.user_id != user_id:
            raise NotFoundError("Holding", holding_id)
        return holding

    def load_holdings(
        self, user_id: str, as_of: date | datetime | None = None
    ) -> list[HoldingState]:
        """Reconciled, revalued holdings of a user, newest first."""
        as_of = as_of or datetime.now()
        result = reconcile(self._store.list_holdings(user_id))
        if result.has_changes:
            stats = apply_reconciliation(self._store, result)
            if stats.errors:
                logger.warning(
                    f"Reconciliation for user {user_id} left {len(stats.errors)} pending writes"
                )
        holdings = [revalue(holding, as_of) for holding in result.merged]
        logger.debug(f"Loaded {len(holdings)} holdings for user {user_id}")
        return holdings

    def record_buy(
        self,
        user_id: str,
        category: str,
        name: str,
        quantity: Decimal,
        price: Decimal,
        *,
        ticker: str | None = None,
        current_price: Decimal | None = None,
        interest_rate: Decimal | None = None,
        rate_type: str | None = None,
        purchase_date: date | None = None,
        maturity_date: date | None = None,
        notes: str | None = None,
        tags: list[str] | None = None,
        trade_date: date | None = None,
    ) -> HoldingState:
        """Record a buy, folding it into an existing holding of the same asset.

        Args:
            user_id: Owner
            category: AssetCategory value
            name: Asset name
            quantity: Units bought (> 0)
            price: Price paid per unit (>= 0)
            ticker: Market symbol, if any
            current_price: Latest market price, if known (defaults to price)
            interest_rate: Quoted fixed-income rate, interpreted by rate_type
            rate_type: RateType of interest_rate (default: fixed)
            purchase_date: Fixed-income accrual start (default: trade date)
            trade_date: Date of the buy (default: today)

        Returns:
            The created or updated holding, revalued for today
        """
        _validate_category(category)
        if quantity <= 0:
            raise InvariantViolationError(f"Buy quantity must be positive, got {quantity}")
        if price < 0:
            raise InvariantViolationError(f"Buy price cannot be negative, got {price}")

        trade_date = trade_date or date.today()
        effective_rate = None
        if interest_rate is not None:
            rate_type = rate_type or RateType.PRE
            # Fixed rates need no reference index
            rates = (
                default_rates()
                if rate_type == RateType.PRE
                else self._economic_rates.current_rates()
            )
            effective_rate = resolve_effective_rate(rate_type, interest_rate, rates.cdi, rates.ipca)

        existing = find_matching_holding(self.load_holdings(user_id), category, name, ticker)
        holding = None
        if existing is not None:
            merged = apply_buy(existing, quantity, price, current_price)
            holding = self._store.update_holding(
                existing.id,
                {
                    "quantity": merged.quantity,
                    "average_price": merged.average_price,
                    "invested_amount": merged.invested_amount,
                    "current_price": merged.current_price,
                    "current_value": merged.current_value,
                },
            )
            if holding is not None:
                logger.info(
                    f"Buy of {quantity} {ticker or name} merged into holding {holding.id} "
                    f"(quantity={holding.quantity}, average_price={holding.average_price})"
                )

        if holding is None:
            mark = current_price if current_price is not None else price
            accrual_start = trade_date if effective_rate is not None else None
            holding = self._store.insert_holding(
                HoldingState(
                    id="",
                    user_id=user_id,
                    category=category,
                    name=name.strip(),
                    ticker=ticker.strip().upper() if ticker and ticker.strip() else None,
                    quantity=quantity,
                    average_price=price,
                    current_price=mark,
                    invested_amount=quantity * price,
                    current_value=quantity * mark,
                    interest_rate=effective_rate,
                    purchase_date=purchase_date or accrual_start,
                    maturity_date=maturity_date,
                    notes=notes,
                    tags=list(tags or []),
                )
            )
            logger.info(f"Created holding {holding.id} for {ticker or name} ({category})")

        self._store.insert_transaction(
            TransactionRecord(
                id="",
                user_id=user_id,
                holding_id=holding.id,
                type=TransactionType.BUY,
                category=category,
                name=holding.name,
                ticker=holding.ticker,
                quantity=quantity,
                price=price,
                total=quantity * price,
                date=trade_date,
            )
        )
        return revalue(holding, datetime.now())

    def record_sell(
        self,
        user_id: str,
        holding_id: str,
        quantity: Decimal,
        price: Decimal,
        trade_date: date | None = None,
    ) -> SellResult:
        """Record a sell against a holding at its average cost.

        Raises:
            NotFoundError: The holding does not exist for this user
            OversellError: quantity exceeds the position and strict over-sell is on
        """
        if quantity <= 0:
            raise InvariantViolationError(f"Sell quantity must be positive, got {quantity}")
        if price < 0:
            raise InvariantViolationError(f"Sell price cannot be negative, got {price}")

        holding = self._owned_holding(user_id, holding_id)
        result = apply_sell(holding, quantity, price, allow_oversell=not self._strict_oversell)

        if result.remaining is None:
            self._store.delete_holding(holding_id)
            logger.info(f"Holding {holding_id} closed by sell of {quantity}")
        else:
            self._store.update_holding(
                holding_id,
                {
                    "quantity": result.remaining.quantity,
                    "invested_amount": result.remaining.invested_amount,
                    "current_value": result.remaining.current_value,
                },
            )

        self._store.insert_transaction(
            TransactionRecord(
                id="",
                user_id=user_id,
                holding_id=holding_id,
                type=TransactionType.SELL,
                category=holding.category,
                name=holding.name,
                ticker=holding.ticker,
                quantity=quantity,
                price=price,
                total=quantity * price,
                date=trade_date or date.today(),
                profit_loss=result.realized_profit_loss,
                profit_loss_percent=result.realized_profit_loss_percent,
            )
        )
        return result

    def update_holding(
        self, user_id: str, holding_id: str, changes: dict[str, Any]
    ) -> HoldingState | None:
        """Direct edit of a holding.

        invested_amount is recomputed from quantity x average_price unless the
        caller sets it explicitly.

        Returns:
            Updated holding, or None if it was deleted concurrently
        """
        unknown = set(changes) - UPDATABLE_HOLDING_FIELDS
        if unknown:
            raise ValueError(f"Holding fields cannot be updated: {sorted(unknown)}")

        holding = self._owned_holding(user_id, holding_id)
        changes = dict(changes)
        if "category" in changes:
            _validate_category(changes["category"])

        edited = replace(holding, **changes)
        if _COST_FIELDS & changes.keys() and "invested_amount" not in changes:
            changes["invested_amount"] = edited.quantity * edited.average_price
        if "current_value" not in changes and ({"quantity", "current_price"} & changes.keys()):
            changes["current_value"] = edited.quantity * edited.current_price

        updated = self._store.update_holding(holding_id, changes)
        if updated is None:
            return None
        return revalue(updated, datetime.now())

    def delete_holding(self, user_id: str, holding_id: str) -> bool:
        """Delete a holding; transactions keep pointing at its id. Absent ids are a no-op."""
        holding = self._store.find_holding(holding_id)
        if holding is None or holding.user_id != user_id:
            return False
        return self._store.delete_holding(holding_id)

    def list_transactions(self, user_id: str) -> list[TransactionRecord]:
        return self._store.list_transactions(user_id)

    def delete_transaction(self, user_id: str, transaction_id: str) -> bool:
        owned = {t.id for t in self._store.list_transactions(user_id)}
        if transaction_id not in owned:
            return False
        return self._store.delete_transaction(transaction_id)

    def summary(self, user_id: str, as_of: date | datetime | None = None) -> PortfolioSummary:
        """Totals, per-category results and per-holding values in the display currency.

        Categories are ordered by current value, largest first.
        """
        holdings = self.load_holdings(user_id, as_of)
        fx_rate = self._exchange_rates.usd_to_display_rate()

        rows: list[HoldingDisplayValue] = []
        by_category: dict[str, tuple[Decimal, Decimal]] = {}
        for holding in holdings:
            invested = to_display_currency(holding.invested_amount, holding.category, fx_rate)
            current = to_display_currency(holding.current_value, holding.category, fx_rate)
            rows.append(
                HoldingDisplayValue(
                    holding_id=holding.id,
                    category=holding.category,
                    name=holding.name,
                    ticker=holding.ticker,
                    quantity=holding.quantity,
                    invested_amount=invested,
                    current_value=current,
                    profit_loss=current - invested,
                    profit_loss_percent=percent_of(current - invested, invested),
                )
            )
            invested_sum, current_sum = by_category.get(holding.category, (ZERO, ZERO))
            by_category[holding.category] = (invested_sum + invested, current_sum + current)

        total_value = sum((row.current_value for row in rows), ZERO)
        total_invested = sum((row.invested_amount for row in rows), ZERO)
        total_profit_loss = total_value - total_invested

        categories = [
            CategoryValue(
                category=category,
                invested_amount=invested,
                current_value=current,
                profit_loss=current - invested,
                profit_loss_percent=percent_of(current - invested, invested),
                portfolio_percent=percent_of(current, total_value),
            )
            for category, (invested, current) in by_category.items()
        ]
        categories.sort(key=lambda row: row.current_value, reverse=True)

        return PortfolioSummary(
            total_value=total_value,
            total_invested=total_invested,
            total_profit_loss=total_profit_loss,
            total_profit_loss_percent=percent_of(total_profit_loss, total_invested),
            category_totals={row.category: row.current_value for row in categories},
            holdings=rows,
            fx_rate=fx_rate,
            display_currency=settings.display_currency,
            categories=categories,
        )

    async def build_chart(
        self, user_id: str, period: str, as_of: datetime | None = None
    ) -> list[ChartPoint]:
        """Portfolio value series for a chart period.

        Raises:
            ValueError: Unknown period
        """
        plan = get_period(period)
        as_of = as_of or datetime.now()
        holdings = await asyncio.to_thread(self.load_holdings, user_id, as_of)
        if not holdings:
            return []

        histories = {}
        if self._market_data is not None:
            histories = await self._market_data.fetch_histories(holdings, plan.key)

        fx_rate = await asyncio.to_thread(self._exchange_rates.usd_to_display_rate)
        return build_series(
            holdings,
            plan,
            lambda holding: histories.get(holding.id, []),
            fx_rate,
            as_of,
        )

    async def refresh_prices(self, user_id: str) -> list[HoldingState]:
        """Pull live quotes into current_price for every market-priced holding.

        Holdings without a quote keep their last price.
        """
        holdings = await asyncio.to_thread(self.load_holdings, user_id)
        if self._market_data is None:
            return holdings

        quotes = await self._market_data.fetch_quotes(holdings)
        if not quotes:
            return holdings

        fx_rate = await asyncio.to_thread(self._exchange_rates.usd_to_display_rate)
        refreshed = await asyncio.to_thread(self._apply_quotes, holdings, quotes, fx_rate)
        logger.info(f"Refreshed {len(quotes)} prices for user {user_id}")
        return refreshed

    def _apply_quotes(
        self, holdings: list[HoldingState], quotes: dict[str, Quote], fx_rate: Decimal
    ) -> list[HoldingState]:
        refreshed = []
        for holding in holdings:
            quote = quotes.get(holding.id)
            if quote is None:
                refreshed.append(holding)
                continue
            price = quote_to_holding_price(quote.price, holding.category, fx_rate)
            updated = self._store.update_holding(
                holding.id,
                {"current_price": price, "current_value": holding.quantity * price},
            )
            refreshed.append(revalue(updated, datetime.now()) if updated else holding)
        return refreshed

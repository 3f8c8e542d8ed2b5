"""Currency normalization.

Every aggregate (totals, category totals, per-holding display, chart series)
converts through these two functions so that all views agree.
"""

from decimal import Decimal

from portfolio_engine.constants import TROY_OUNCE_GRAMS, AssetCategory


def is_usd_denominated(category: str) -> bool:
    return category in AssetCategory.USD_DENOMINATED


def to_display_currency(amount: Decimal, category: str, fx_rate: Decimal) -> Decimal:
    """Convert a stored holding amount to the display currency.

    Args:
        amount: Amount in the holding's stored currency
        category: Holding category
        fx_rate: USD -> display currency rate

    Returns:
        amount * fx_rate for USD-denominated categories, amount otherwise
    """
    if is_usd_denominated(category):
        return amount * fx_rate
    return amount


def quote_to_holding_price(price: Decimal, category: str, fx_rate: Decimal) -> Decimal:
    """Convert a raw market quote into the unit the holding is stored in.

    Gold is quoted in USD per troy ounce but held in grams priced in the
    display currency. Every other category is quoted in its stored currency.
    """
    if category == AssetCategory.GOLD:
        return price * fx_rate / TROY_OUNCE_GRAMS
    return price

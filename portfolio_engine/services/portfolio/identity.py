"""Identity resolution for holdings.

Two records describe the same asset when they share an identity key:
category plus normalized ticker when a ticker exists, otherwise category plus
normalized name. Used both to match incoming buys against existing holdings
and to group duplicates during reconciliation.
"""

import re
from collections.abc import Iterable

from portfolio_engine.services.portfolio.valuation_types import HoldingState

# Market-suffix noise that does not change which asset a ticker points at
_SUFFIXES = (".SA", "-USD")
_FRACTIONAL_SUFFIX = re.compile(r"^([A-Z]+\d+)F$")  # PETR4F -> PETR4
_WHITESPACE = re.compile(r"\s+")


def normalize_ticker(ticker: str | None) -> str | None:
    """Upper-case a ticker and strip exchange/lot noise.

    Returns None for missing or blank tickers so callers fall back to the name.
    """
    if ticker is None:
        return None
    normalized = ticker.strip().upper()
    for suffix in _SUFFIXES:
        if normalized.endswith(suffix):
            normalized = normalized[: -len(suffix)]
    normalized = _FRACTIONAL_SUFFIX.sub(r"\1", normalized)
    return normalized or None


def normalize_name(name: str) -> str:
    """Lower-case, trim and collapse internal whitespace."""
    return _WHITESPACE.sub(" ", name.strip().lower())


def identity_key(category: str, name: str, ticker: str | None = None) -> str:
    """Build the identity key for a holding.

    Examples:
        >>> identity_key("stocks", "Petrobras", " petr4.sa ")
        'stocks|PETR4'
        >>> identity_key("cdb", "  CDB  Banco   Inter ")
        'cdb|cdb banco inter'
    """
    normalized = normalize_ticker(ticker)
    if normalized:
        return f"{category}|{normalized}"
    return f"{category}|{normalize_name(name)}"


def holding_identity_key(holding: HoldingState) -> str:
    return identity_key(holding.category, holding.name, holding.ticker)


def find_matching_holding(
    holdings: Iterable[HoldingState], category: str, name: str, ticker: str | None = None
) -> HoldingState | None:
    """Return the first holding with the same identity as the incoming asset."""
    key = identity_key(category, name, ticker)
    for holding in holdings:
        if holding_identity_key(holding) == key:
            return holding
    return None

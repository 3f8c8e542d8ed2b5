"""USD to display-currency exchange rates."""

import logging
import time
from abc import ABC, abstractmethod
from decimal import Decimal

import yfinance as yf

from portfolio_engine.config import settings

logger = logging.getLogger(__name__)


class ExchangeRateProvider(ABC):
    """Source of the USD -> display currency rate."""

    @abstractmethod
    def usd_to_display_rate(self) -> Decimal:
        """Current rate; never raises."""


class StaticExchangeRateProvider(ExchangeRateProvider):
    """Fixed rate, for tests and offline use."""

    def __init__(self, rate: Decimal):
        self._rate = rate

    def usd_to_display_rate(self) -> Decimal:
        return self._rate


class YFinanceExchangeRateProvider(ExchangeRateProvider):
    """Exchange rate from Yahoo Finance with a short in-process cache.

    Falls back to settings.fallback_usd_rate when Yahoo has no data. A
    fallback value is not cached so the next call retries the fetch.
    """

    def __init__(
        self,
        currency: str | None = None,
        cache_seconds: int | None = None,
        fallback_rate: Decimal | None = None,
    ):
        self.currency = (currency or settings.display_currency).upper()
        self.cache_seconds = (
            cache_seconds if cache_seconds is not None else settings.exchange_rate_cache_seconds
        )
        self.fallback_rate = (
            fallback_rate if fallback_rate is not None else settings.fallback_usd_rate
        )
        self._cached_rate: Decimal | None = None
        self._cached_at: float = 0.0

    @property
    def ticker_symbol(self) -> str:
        return f"USD{self.currency}=X"

    def usd_to_display_rate(self) -> Decimal:
        if self.currency == "USD":
            return Decimal("1")

        age = time.monotonic() - self._cached_at
        if self._cached_rate is not None and age < self.cache_seconds:
            return self._cached_rate

        rate = self._fetch_rate()
        if rate is None:
            logger.warning(
                f"Using fallback rate {self.fallback_rate} for USD/{self.currency}"
            )
            return self.fallback_rate

        self._cached_rate = rate
        self._cached_at = time.monotonic()
        logger.info(f"Updated USD/{self.currency} = {rate}")
        return rate

    def _fetch_rate(self) -> Decimal | None:
        try:
            hist = yf.Ticker(self.ticker_symbol).history(period="5d")

            if not hist.empty and "Close" in hist.columns:
                closes = hist["Close"].dropna()
                if not closes.empty and float(closes.iloc[-1]) > 0:
                    return Decimal(str(float(closes.iloc[-1])))

            logger.warning(f"No data for USD/{self.currency}")
            return None

        except Exception as e:
            logger.error(f"Failed to fetch USD/{self.currency}: {e}")
            return None

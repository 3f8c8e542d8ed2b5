"""Brazilian reference rates (CDI and IPCA) for floating-rate fixed income."""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import httpx

from portfolio_engine.config import settings

logger = logging.getLogger(__name__)

BCB_SGS_URL = "https://api.bcb.gov.br/dados/serie/bcdata.sgs.{series}/dados/ultimos/{count}"

# Selic target, used as the CDI reference (% a.a.)
SELIC_SERIES = 432
# Monthly IPCA (% a.m.)
IPCA_SERIES = 433

HUNDRED = Decimal("100")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class EconomicRates:
    """Annual reference rates in percent."""

    cdi: Decimal
    ipca: Decimal


def default_rates() -> EconomicRates:
    return EconomicRates(cdi=settings.cdi_rate, ipca=settings.ipca_rate)


def accumulate_monthly(monthly_rates: list[Decimal]) -> Decimal:
    """Compound monthly percentages into one accumulated percentage.

    Example:
        >>> accumulate_monthly([Decimal("1"), Decimal("1")])
        Decimal('2.01')
    """
    factor = Decimal("1")
    for rate in monthly_rates:
        factor *= 1 + rate / HUNDRED
    return ((factor - 1) * HUNDRED).quantize(CENT)


class EconomicRatesProvider(ABC):
    """Source of the current CDI and IPCA reference rates."""

    @abstractmethod
    def current_rates(self) -> EconomicRates:
        """Current rates; never raises."""


class StaticEconomicRatesProvider(EconomicRatesProvider):
    """Fixed rates, for tests and offline use."""

    def __init__(self, rates: EconomicRates | None = None):
        self._rates = rates or default_rates()

    def current_rates(self) -> EconomicRates:
        return self._rates


class BcbEconomicRatesProvider(EconomicRatesProvider):
    """Rates from the Banco Central do Brasil SGS API with an in-process cache.

    CDI is the latest Selic target. IPCA is the last twelve monthly readings
    compounded. Each rate falls back to its settings value on its own when the
    API has no usable data; a result containing a fallback is not cached.
    """

    def __init__(
        self,
        cache_seconds: int | None = None,
        fallback: EconomicRates | None = None,
        timeout: float = 10.0,
    ):
        self.cache_seconds = (
            cache_seconds if cache_seconds is not None else settings.economic_rates_cache_seconds
        )
        self.fallback = fallback or default_rates()
        self.timeout = timeout
        self._cached: EconomicRates | None = None
        self._cached_at: float = 0.0

    def current_rates(self) -> EconomicRates:
        age = time.monotonic() - self._cached_at
        if self._cached is not None and age < self.cache_seconds:
            return self._cached

        selic = self._fetch_series(SELIC_SERIES, 1)
        ipca_monthly = self._fetch_series(IPCA_SERIES, 12)

        cdi = selic[-1].quantize(CENT) if selic else None
        ipca = accumulate_monthly(ipca_monthly) if ipca_monthly else None

        if cdi is None or ipca is None:
            rates = EconomicRates(
                cdi=cdi if cdi is not None else self.fallback.cdi,
                ipca=ipca if ipca is not None else self.fallback.ipca,
            )
            logger.warning(f"Using fallback economic rates where missing: {rates}")
            return rates

        rates = EconomicRates(cdi=cdi, ipca=ipca)
        self._cached = rates
        self._cached_at = time.monotonic()
        logger.info(f"Updated economic rates: CDI={cdi}% IPCA={ipca}%")
        return rates

    def _fetch_series(self, series: int, count: int) -> list[Decimal] | None:
        url = BCB_SGS_URL.format(series=series, count=count)
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url, params={"formato": "json"})
                response.raise_for_status()
                payload = response.json()

            values = [Decimal(str(item["valor"])) for item in payload]
            if not values:
                logger.warning(f"No data for SGS series {series}")
                return None
            return values

        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch SGS series {series}: {e}")
            return None
        except (ValueError, TypeError, KeyError, InvalidOperation) as e:
            logger.error(f"Unexpected payload for SGS series {series}: {e}")
            return None

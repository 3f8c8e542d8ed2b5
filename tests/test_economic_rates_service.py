"""Tests for CDI/IPCA reference rate providers."""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import httpx

from portfolio_engine.config import settings
from portfolio_engine.services.market_data import (
    BcbEconomicRatesProvider,
    EconomicRates,
    StaticEconomicRatesProvider,
)
from portfolio_engine.services.market_data.economic_rates_service import accumulate_monthly

FALLBACK = EconomicRates(cdi=Decimal("12.25"), ipca=Decimal("4.5"))


def _response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status = MagicMock()
    return response


def _sgs(selic_payload, ipca_payload):
    """Route SGS requests by series number."""

    def get(url, params=None):
        if "sgs.432" in url:
            return _response(selic_payload)
        return _response(ipca_payload)

    return get


SELIC = [{"data": "10/06/2024", "valor": "10.50"}]
IPCA = [{"data": f"01/{month:02d}/2024", "valor": "0.5"} for month in range(1, 13)]


class TestAccumulateMonthly:
    """Compounding monthly IPCA readings."""

    def test_compounds_rather_than_sums(self):
        assert accumulate_monthly([Decimal("1"), Decimal("1")]) == Decimal("2.01")

    def test_twelve_half_percent_months(self):
        assert accumulate_monthly([Decimal("0.5")] * 12) == Decimal("6.17")


class TestBcbEconomicRatesProvider:
    """Live rates with cache and per-rate fallback."""

    def test_fetches_cdi_and_accumulated_ipca(self):
        provider = BcbEconomicRatesProvider(cache_seconds=3600, fallback=FALLBACK)

        with patch("httpx.Client") as mock_client:
            mock_client.return_value.__enter__.return_value.get.side_effect = _sgs(SELIC, IPCA)
            rates = provider.current_rates()

        assert rates == EconomicRates(cdi=Decimal("10.50"), ipca=Decimal("6.17"))

    def test_rates_are_cached(self):
        provider = BcbEconomicRatesProvider(cache_seconds=3600, fallback=FALLBACK)

        with patch("httpx.Client") as mock_client:
            session = mock_client.return_value.__enter__.return_value
            session.get.side_effect = _sgs(SELIC, IPCA)
            provider.current_rates()
            provider.current_rates()

        assert session.get.call_count == 2

    def test_expired_cache_refetches(self):
        provider = BcbEconomicRatesProvider(cache_seconds=0, fallback=FALLBACK)

        with patch("httpx.Client") as mock_client:
            session = mock_client.return_value.__enter__.return_value
            session.get.side_effect = _sgs(SELIC, IPCA)
            provider.current_rates()
            provider.current_rates()

        assert session.get.call_count == 4

    def test_network_failure_returns_fallback_without_caching(self):
        provider = BcbEconomicRatesProvider(cache_seconds=3600, fallback=FALLBACK)

        with patch("httpx.Client") as mock_client:
            session = mock_client.return_value.__enter__.return_value
            session.get.side_effect = httpx.ConnectError("unreachable")
            assert provider.current_rates() == FALLBACK

            session.get.side_effect = _sgs(SELIC, IPCA)
            assert provider.current_rates().cdi == Decimal("10.50")

    def test_each_rate_falls_back_on_its_own(self):
        provider = BcbEconomicRatesProvider(cache_seconds=3600, fallback=FALLBACK)

        with patch("httpx.Client") as mock_client:
            mock_client.return_value.__enter__.return_value.get.side_effect = _sgs(SELIC, [])
            rates = provider.current_rates()

        assert rates.cdi == Decimal("10.50")
        assert rates.ipca == FALLBACK.ipca

    def test_malformed_payload_falls_back(self):
        provider = BcbEconomicRatesProvider(cache_seconds=3600, fallback=FALLBACK)

        with patch("httpx.Client") as mock_client:
            mock_client.return_value.__enter__.return_value.get.side_effect = _sgs(
                [{"data": "10/06/2024", "valor": "n/a"}], [{"unexpected": True}]
            )
            rates = provider.current_rates()

        assert rates == FALLBACK


class TestStaticEconomicRatesProvider:
    def test_defaults_to_configured_rates(self):
        rates = StaticEconomicRatesProvider().current_rates()

        assert rates.cdi == settings.cdi_rate
        assert rates.ipca == settings.ipca_rate

"""Tests for holding identity resolution."""

from decimal import Decimal

from portfolio_engine.services.portfolio.identity import (
    find_matching_holding,
    identity_key,
    normalize_name,
    normalize_ticker,
)


class TestNormalizeTicker:
    """Ticker normalization strips market noise."""

    def test_upper_cases_and_trims(self):
        assert normalize_ticker("  petr4 ") == "PETR4"

    def test_strips_brazilian_exchange_suffix(self):
        assert normalize_ticker("PETR4.SA") == "PETR4"

    def test_strips_crypto_quote_suffix(self):
        assert normalize_ticker("btc-usd") == "BTC"

    def test_strips_fractional_lot_suffix(self):
        assert normalize_ticker("PETR4F") == "PETR4"

    def test_keeps_tickers_with_an_n_before_the_class_digit(self):
        assert normalize_ticker("CSAN3") == "CSAN3"
        assert normalize_ticker("bpan4") == "BPAN4"
        assert normalize_ticker("CMIN3.SA") == "CMIN3"

    def test_leaves_plain_us_ticker_alone(self):
        assert normalize_ticker("AAPL") == "AAPL"

    def test_blank_ticker_is_none(self):
        assert normalize_ticker("   ") is None
        assert normalize_ticker(None) is None


class TestIdentityKey:
    """Identity key prefers the ticker and falls back to the name."""

    def test_ticker_variants_share_a_key(self):
        assert identity_key("stocks", "Petrobras", "PETR4") == identity_key(
            "stocks", "Petrobras PN", "petr4.sa"
        )

    def test_name_fallback_is_case_and_space_insensitive(self):
        assert identity_key("cdb", "  CDB  Banco   Inter ") == "cdb|cdb banco inter"
        assert identity_key("cdb", "cdb banco inter") == "cdb|cdb banco inter"

    def test_blank_ticker_falls_back_to_name(self):
        assert identity_key("gold", "Ouro", "  ") == "gold|ouro"

    def test_categories_never_collide(self):
        assert identity_key("stocks", "Petrobras", "PETR4") != identity_key(
            "bdr", "Petrobras", "PETR4"
        )

    def test_normalize_name_collapses_whitespace(self):
        assert normalize_name("Tesouro\tSelic  2029") == "tesouro selic 2029"


class TestFindMatchingHolding:
    """Matching incoming buys against existing holdings."""

    def test_finds_holding_by_normalized_ticker(self, make_holding):
        holdings = [
            make_holding(id="a", ticker="VALE3", name="Vale"),
            make_holding(id="b", ticker="PETR4", name="Petrobras"),
        ]

        match = find_matching_holding(holdings, "stocks", "Whatever", "petr4.sa")

        assert match is not None
        assert match.id == "b"

    def test_returns_none_for_other_category(self, make_holding):
        holdings = [make_holding(category="stocks", ticker="PETR4")]

        assert find_matching_holding(holdings, "bdr", "Petrobras", "PETR4") is None

    def test_matches_by_name_without_ticker(self, make_holding):
        holdings = [
            make_holding(
                id="cdb-1",
                category="cdb",
                name="CDB Banco Inter",
                ticker=None,
                quantity=Decimal("1"),
                average_price=Decimal("1000"),
            )
        ]

        match = find_matching_holding(holdings, "cdb", "cdb  banco inter", None)

        assert match is not None
        assert match.id == "cdb-1"

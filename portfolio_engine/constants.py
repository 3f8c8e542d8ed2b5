"""Application constants to avoid magic strings."""

from decimal import Decimal


class AssetCategory:
    """Asset category constants."""

    CRYPTO = "crypto"
    STOCKS = "stocks"
    FII = "fii"
    USA_STOCKS = "usastocks"
    REITS = "reits"
    BDR = "bdr"
    ETF = "etf"
    GOLD = "gold"
    CDB = "cdb"
    LCI = "lci"
    LCA = "lca"
    LCI_LCA = "lcilca"
    TREASURY = "treasury"
    SAVINGS = "savings"
    DEBENTURES = "debentures"
    CRI_CRA = "cricra"
    FIXED_INCOME_FUND = "fixedincomefund"
    CASH = "cash"
    REAL_ESTATE = "realestate"
    OTHER = "other"

    ALL = frozenset(
        {
            CRYPTO,
            STOCKS,
            FII,
            USA_STOCKS,
            REITS,
            BDR,
            ETF,
            GOLD,
            CDB,
            LCI,
            LCA,
            LCI_LCA,
            TREASURY,
            SAVINGS,
            DEBENTURES,
            CRI_CRA,
            FIXED_INCOME_FUND,
            CASH,
            REAL_ESTATE,
            OTHER,
        }
    )

    # Valued by compound accrual since purchase
    FIXED_INCOME = frozenset(
        {
            CDB,
            LCI,
            LCA,
            LCI_LCA,
            TREASURY,
            SAVINGS,
            DEBENTURES,
            CRI_CRA,
            FIXED_INCOME_FUND,
            REAL_ESTATE,
        }
    )

    # Stored in USD, converted for display
    USD_DENOMINATED = frozenset({CRYPTO, USA_STOCKS, REITS})


class Market:
    """Market identifiers understood by market data providers."""

    BR = "br"
    USA = "usa"
    CRYPTO = "crypto"


class TransactionType:
    """Transaction type constants."""

    BUY = "buy"
    SELL = "sell"


class RateType:
    """How a fixed-income rate is quoted."""

    PRE = "pre"  # fixed % a.a.
    POS = "pos"  # % of CDI
    CDI = "cdi"  # % of CDI
    IPCA = "ipca"  # IPCA + spread


TROY_OUNCE_GRAMS = Decimal("31.1035")
DAYS_PER_YEAR = 365

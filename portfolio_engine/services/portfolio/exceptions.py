"""Portfolio engine exceptions."""

from decimal import Decimal


class PortfolioError(Exception):
    """Base exception for portfolio engine errors."""


class InvariantViolationError(PortfolioError):
    """A request would break a holding invariant."""


class OversellError(InvariantViolationError):
    """Sell quantity exceeds the held quantity while strict over-sell is enabled."""

    def __init__(self, holding_id: str, held: Decimal, requested: Decimal):
        self.holding_id = holding_id
        self.held = held
        self.requested = requested
        super().__init__(
            f"Cannot sell {requested} of holding {holding_id}: only {held} held"
        )


class UnknownCategoryError(InvariantViolationError):
    """Category is not part of the supported enumeration."""

    def __init__(self, category: str):
        self.category = category
        super().__init__(f"Unknown asset category: {category}")

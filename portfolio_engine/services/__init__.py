"""Services layer - business logic and external integrations.

This module is organized into domain-based subpackages:
- market_data/: Quotes, price history and exchange rates
- portfolio/: Valuation and reconciliation engine
- repositories/: Record stores (database and local file)
"""

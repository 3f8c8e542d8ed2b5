"""Portfolio valuation and reconciliation engine."""

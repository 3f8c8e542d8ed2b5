"""Portfolio valuation and reconciliation engine.

Pure functions over HoldingState values (identity, cost basis, fixed income,
reconciliation, time series, currency) plus PortfolioService, which wires
them to a RecordStore and market data.
"""

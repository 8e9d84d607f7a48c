"""Argentine market quotes monitor: feed polling, price history, MEP and portfolio valuation."""

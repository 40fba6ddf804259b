"""Financial aggregation package."""

from src.finance.aggregator import aggregate, amounts, client_stats, revenue_bars

__all__ = ["aggregate", "amounts", "client_stats", "revenue_bars"]

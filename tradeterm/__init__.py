"""Terminal dashboard for market data and order entry."""

__version__ = "0.1.0"

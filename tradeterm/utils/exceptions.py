"""Exception types raised at the service boundary.

The interaction core never raises these; the host converts them into
failure outcomes before they reach `AppState`.
"""


class TradeTermError(Exception):
    """Base exception for tradeterm."""


class ConfigurationError(TradeTermError):
    """Invalid configuration value."""


class BrokerConnectionError(TradeTermError):
    """Could not reach the broker gateway."""


class OrderRejected(TradeTermError):
    """The broker refused or cancelled an order."""

    def __init__(self, reason: str, order_id: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.order_id = order_id

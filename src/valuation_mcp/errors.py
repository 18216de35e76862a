"""Exception types raised across the aggregation pipeline."""


class AggregationError(Exception):
    """Base class for request-level aggregation errors."""


class EssentialDataMissingError(AggregationError):
    """Raised when the primary provider failed or returned no current price."""

    def __init__(self, ticker: str, provider_id: str, reason: str):
        super().__init__(f"Essential data missing for {ticker} from {provider_id}: {reason}")
        self.ticker = ticker
        self.provider_id = provider_id
        self.reason = reason


class ProviderError(Exception):
    """Raised by a provider client when its page or payload is unusable."""

    def __init__(self, provider_id: str, message: str, last_error: Exception | None = None):
        super().__init__(f"{provider_id}: {message}")
        self.provider_id = provider_id
        self.last_error = last_error


class ServerShuttingDownError(Exception):
    """Raised when server is shutting down."""

    pass

"""Data layer: provider clients, session pool and transport."""

from valuation_mcp.data.base import (
    FailureReason,
    ProviderClient,
    ProviderFailure,
    ProviderId,
    ProviderOutcome,
    ProviderSuccess,
    RawFieldSet,
    make_field_set,
)
from valuation_mcp.data.investidor10 import Investidor10Client
from valuation_mcp.data.registry import PROVIDER_FACTORIES, build_provider_clients
from valuation_mcp.data.session_pool import PooledSession, SessionPool, session_pool
from valuation_mcp.data.transport import retry_with_backoff, shutdown_executor
from valuation_mcp.data.yahoo_client import YahooClient

__all__ = [
    # Contract
    "FailureReason",
    "ProviderClient",
    "ProviderFailure",
    "ProviderId",
    "ProviderOutcome",
    "ProviderSuccess",
    "RawFieldSet",
    "make_field_set",
    # Clients
    "Investidor10Client",
    "YahooClient",
    "PROVIDER_FACTORIES",
    "build_provider_clients",
    # Sessions and transport
    "PooledSession",
    "SessionPool",
    "session_pool",
    "retry_with_backoff",
    "shutdown_executor",
]

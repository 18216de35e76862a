"""Provider client factory keyed by ProviderId."""

from collections.abc import Callable

from valuation_mcp.data.base import ProviderClient, ProviderId
from valuation_mcp.data.investidor10 import Investidor10Client
from valuation_mcp.data.session_pool import SessionPool, session_pool
from valuation_mcp.data.yahoo_client import YahooClient

PROVIDER_FACTORIES: dict[ProviderId, Callable[[SessionPool], ProviderClient]] = {
    "investidor10": lambda pool: Investidor10Client(pool=pool),
    "yahoo": lambda pool: YahooClient(),
}


def build_provider_clients(
    provider_ids: tuple[ProviderId, ...],
    pool: SessionPool | None = None,
) -> dict[ProviderId, ProviderClient]:
    """
    Instantiate the configured providers, preserving configured order.

    Raises:
        ValueError: If a provider id has no client
    """
    pool = pool if pool is not None else session_pool
    clients: dict[ProviderId, ProviderClient] = {}
    for provider_id in provider_ids:
        factory = PROVIDER_FACTORIES.get(provider_id)
        if factory is None:
            raise ValueError(
                f"Unknown provider '{provider_id}'. Must be one of: {sorted(PROVIDER_FACTORIES)}"
            )
        clients[provider_id] = factory(pool)
    return clients

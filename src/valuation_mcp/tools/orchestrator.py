"""Concurrent fan-out to every configured provider with isolated failures."""

import asyncio
import logging
from collections.abc import Mapping
from time import perf_counter

import requests

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
from valuation_mcp.errors import EssentialDataMissingError, ProviderError
from valuation_mcp.utils import fields as f
from valuation_mcp.utils.normalize import normalize_number

logger = logging.getLogger(__name__)

# Field the primary provider must deliver for the request to succeed
MANDATORY_FIELD = f.PRICE


def failure_reason_for(error: BaseException) -> FailureReason:
    """Classify a provider exception."""
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return FailureReason.TIMEOUT
    if isinstance(error, (requests.RequestException, ProviderError, ConnectionError)):
        return FailureReason.UNAVAILABLE
    return FailureReason.ERROR


class ProviderOrchestrator:
    """
    Runs one retrieval task per provider and joins on all of them.

    Each task has its own timeout. A timeout or exception becomes a
    ProviderFailure for that provider only; siblings keep running and every
    outcome is collected before the join returns. Outcomes are keyed by
    ProviderId in configured order, so completion order never leaks into
    the result.
    """

    def __init__(
        self,
        clients: Mapping[ProviderId, ProviderClient],
        primary: ProviderId,
        timeout_seconds: float,
    ):
        if primary not in clients:
            raise ValueError(f"Primary provider '{primary}' has no client")
        self.clients = dict(clients)
        self.primary = primary
        self.timeout_seconds = timeout_seconds

    @property
    def provider_ids(self) -> tuple[ProviderId, ...]:
        return tuple(self.clients)

    @property
    def secondary_ids(self) -> tuple[ProviderId, ...]:
        return tuple(p for p in self.clients if p != self.primary)

    async def _run_one(
        self, provider_id: ProviderId, ticker: str, asset_type: str
    ) -> ProviderOutcome:
        client = self.clients[provider_id]
        start = perf_counter()
        try:
            fields = await asyncio.wait_for(
                client.fetch_raw_fields(ticker, asset_type, self.timeout_seconds),
                timeout=self.timeout_seconds,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            duration = (perf_counter() - start) * 1000
            reason = failure_reason_for(e)
            message = (
                f"exceeded {self.timeout_seconds}s"
                if reason is FailureReason.TIMEOUT
                else str(e)
            )
            logger.warning(
                f"Provider {provider_id} failed for {ticker} "
                f"({reason.value}, {type(e).__name__}): {message}"
            )
            return ProviderFailure(
                provider_id=provider_id,
                reason=reason,
                error=type(e).__name__,
                message=message,
                duration_ms=duration,
            )

        duration = (perf_counter() - start) * 1000
        return ProviderSuccess(
            provider_id=provider_id,
            fields=make_field_set(fields),
            duration_ms=duration,
        )

    async def fetch_all(self, ticker: str, asset_type: str = "acao") -> dict[ProviderId, ProviderOutcome]:
        """
        Fetch raw fields from every provider concurrently.

        Args:
            ticker: Canonical (uppercase) ticker
            asset_type: "acao" or "fii"

        Returns:
            Outcome per provider, in configured provider order
        """
        ids = self.provider_ids
        results = await asyncio.gather(
            *[self._run_one(provider_id, ticker, asset_type) for provider_id in ids]
        )
        return dict(zip(ids, results))

    def require_primary(
        self, ticker: str, outcomes: Mapping[ProviderId, ProviderOutcome]
    ) -> RawFieldSet:
        """
        Return the primary field set or fail the request.

        Raises:
            EssentialDataMissingError: Primary failed, or its price is absent
        """
        outcome = outcomes.get(self.primary)
        if outcome is None:
            raise EssentialDataMissingError(ticker, self.primary, "no outcome")
        if isinstance(outcome, ProviderFailure):
            raise EssentialDataMissingError(
                ticker, self.primary, f"{outcome.reason.value}: {outcome.message}"
            )
        if normalize_number(outcome.fields.get(MANDATORY_FIELD)) is None:
            raise EssentialDataMissingError(
                ticker, self.primary, f"mandatory field '{MANDATORY_FIELD}' missing"
            )
        return outcome.fields

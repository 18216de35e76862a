"""Provider contract: raw field sets and tagged fetch outcomes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Protocol, Union

ProviderId = str
RawFieldSet = Mapping[str, Union[str, None]]


def make_field_set(fields: Mapping[str, str | None]) -> RawFieldSet:
    """Freeze a provider's fields. The result cannot be mutated downstream."""
    return MappingProxyType(dict(fields))


class FailureReason(str, Enum):
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


@dataclass(frozen=True)
class ProviderSuccess:
    """A provider returned a field set (possibly with some fields absent)."""

    provider_id: ProviderId
    fields: RawFieldSet
    duration_ms: float

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ProviderFailure:
    """A provider timed out or raised. Distinct from 'no data available'."""

    provider_id: ProviderId
    reason: FailureReason
    error: str
    message: str
    duration_ms: float

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict[str, object]:
        return {
            "provider": self.provider_id,
            "reason": self.reason.value,
            "error": self.error,
            "message": self.message,
            "duration_ms": round(self.duration_ms, 1),
        }


ProviderOutcome = Union[ProviderSuccess, ProviderFailure]


class ProviderClient(Protocol):
    """Hands the engine raw field text for one ticker.

    Implementations raise on failure; the orchestrator turns exceptions and
    timeouts into ProviderFailure outcomes.
    """

    provider_id: ProviderId
    source: str

    async def fetch_raw_fields(
        self, ticker: str, asset_type: str, timeout: float
    ) -> RawFieldSet: ...

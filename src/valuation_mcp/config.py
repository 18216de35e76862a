"""Engine configuration read from the environment."""

import os
from dataclasses import dataclass, field

DEFAULT_PROVIDERS = ("investidor10", "yahoo")
DEFAULT_UNRELIABLE_SECTORS = (
    "bancos",
    "seguros",
    "financeiro",
    "intermediarios financeiros",
    "previdencia e seguros",
)


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class MacroParams:
    """Macro constants used by the valuation formulas.

    Rates are percentages (6.0 means 6%). The Bazin target yield is a
    fraction (0.06 means 6%); 0.06 is the active default, 0.08 is the
    stricter variant some investors use.
    """

    current_benchmark_rate: float = 6.0
    historical_average_rate: float = 4.4
    base_pe: float = 8.5
    fallback_growth_rate: float = 5.0
    bazin_target_yield: float = 0.06

    @classmethod
    def from_env(cls) -> "MacroParams":
        return cls(
            current_benchmark_rate=_env_float("CURRENT_BENCHMARK_RATE", 6.0),
            historical_average_rate=_env_float("HISTORICAL_AVERAGE_RATE", 4.4),
            base_pe=_env_float("GRAHAM_BASE_PE", 8.5),
            fallback_growth_rate=_env_float("FALLBACK_GROWTH_RATE", 5.0),
            bazin_target_yield=_env_float("BAZIN_TARGET_YIELD", 0.06),
        )


@dataclass(frozen=True)
class EngineConfig:
    """Immutable engine settings. Built once per process via from_env()."""

    providers: tuple[str, ...] = DEFAULT_PROVIDERS
    primary_provider: str = "investidor10"
    provider_timeout_ms: int = 45_000
    macro: MacroParams = field(default_factory=MacroParams)
    unreliable_sectors: tuple[str, ...] = DEFAULT_UNRELIABLE_SECTORS

    def __post_init__(self) -> None:
        if not self.providers:
            raise ValueError("At least one provider must be configured")
        if self.primary_provider not in self.providers:
            raise ValueError(
                f"Primary provider '{self.primary_provider}' is not in providers {self.providers}"
            )
        if self.provider_timeout_ms <= 0:
            raise ValueError("provider_timeout_ms must be positive")

    @property
    def provider_timeout_seconds(self) -> float:
        return self.provider_timeout_ms / 1000.0

    @property
    def secondary_providers(self) -> tuple[str, ...]:
        return tuple(p for p in self.providers if p != self.primary_provider)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        return cls(
            providers=_env_list("PROVIDERS", DEFAULT_PROVIDERS),
            primary_provider=os.environ.get("PRIMARY_PROVIDER", "investidor10").strip(),
            provider_timeout_ms=_env_int("PROVIDER_TIMEOUT_MS", 45_000),
            macro=MacroParams.from_env(),
            unreliable_sectors=_env_list("UNRELIABLE_SECTORS", DEFAULT_UNRELIABLE_SECTORS),
        )


# Transport settings shared by the provider clients
PROVIDER_MAX_WORKERS = _env_int("PROVIDER_MAX_WORKERS", 8)
PROVIDER_MAX_RETRIES = _env_int("PROVIDER_MAX_RETRIES", 2)
PROVIDER_BASE_DELAY = _env_float("PROVIDER_BASE_DELAY", 0.5)  # seconds
PROVIDER_MAX_DELAY = _env_float("PROVIDER_MAX_DELAY", 5.0)  # seconds

SESSION_POOL_SIZE = _env_int("SESSION_POOL_SIZE", 4)
SESSION_MAX_USES = _env_int("SESSION_MAX_USES", 50)
SESSION_MAX_AGE = _env_float("SESSION_MAX_AGE", 600.0)  # seconds

INVESTIDOR10_BASE_URL = os.environ.get("INVESTIDOR10_BASE_URL", "https://investidor10.com.br")
YAHOO_SUFFIX = os.environ.get("YAHOO_SUFFIX", ".SA")

"""Validation utilities and parameter classes."""

import operator
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

# Asset types and the spellings accepted for each
ASSET_TYPES = {"acao", "fii"}
ASSET_TYPE_ALIASES = {
    "acao": "acao",
    "acoes": "acao",
    "stock": "acao",
    "fii": "fii",
    "fiis": "fii",
    "reit": "fii",
}

_TICKER_RE = re.compile(r"^[A-Z0-9]{1,12}$")


@dataclass(frozen=True)
class AggregateRequest:
    """Immutable aggregate request. Validated before any provider is called."""

    ticker: str
    asset_type: str = "acao"

    def __post_init__(self) -> None:
        if not isinstance(self.ticker, str):
            raise ValueError("Ticker must be a string")

        # Normalize ticker: uppercase, strip whitespace
        ticker = self.ticker.strip().upper()
        if not ticker:
            raise ValueError("Ticker is required")
        if not _TICKER_RE.match(ticker):
            raise ValueError(f"Invalid ticker '{self.ticker}'. Use letters and digits only.")

        asset_type = ASSET_TYPE_ALIASES.get(str(self.asset_type or "acao").lower().strip())
        if asset_type is None:
            raise ValueError(
                f"Invalid asset_type '{self.asset_type}'. Must be one of: {sorted(ASSET_TYPES)}"
            )

        object.__setattr__(self, "ticker", ticker)
        object.__setattr__(self, "asset_type", asset_type)

    @classmethod
    def from_payload(cls, payload: Any) -> "AggregateRequest":
        """Build from a decoded JSON body or query mapping."""
        if not isinstance(payload, dict):
            raise ValueError("Request body must be a JSON object")
        ticker = payload.get("ticker")
        if ticker is None:
            raise ValueError("Ticker is required")
        return cls(ticker=ticker, asset_type=payload.get("asset_type") or "acao")


def check_rule(
    value: float | None,
    threshold: float,
    comparator: Callable[[float, float], bool] = operator.gt,
) -> bool | None:
    """
    Check a rule with nullable boolean semantics.

    If value is None, returns None (not False).

    Args:
        value: The value to check (may be None)
        threshold: The threshold to compare against
        comparator: Comparison function (default: operator.gt)

    Returns:
        True/False if value is not None, None otherwise
    """
    if value is None:
        return None
    return comparator(value, threshold)


def check_rule_expr(
    value1: float | None,
    value2: float | None,
    comparator: Callable[[float, float], bool] = operator.gt,
) -> bool | None:
    """
    Check a rule comparing two values with nullable boolean semantics.

    If either value is None, returns None (not False).

    Args:
        value1: First value (may be None)
        value2: Second value (may be None)
        comparator: Comparison function (default: operator.gt)

    Returns:
        True/False if both values are not None, None otherwise
    """
    if value1 is None or value2 is None:
        return None
    return comparator(value1, value2)

"""Valuation formulas: Graham, Bazin, revised Graham and the FII magic number.

Every formula is independently null-guarded. A missing or non-positive
required input yields a None estimate for that formula only; nothing here
divides by a non-positive denominator or returns inf/NaN.
"""

from __future__ import annotations

import math
import operator
from collections.abc import Iterable
from dataclasses import dataclass

from valuation_mcp.config import MacroParams
from valuation_mcp.utils.sanitize import fold_label
from valuation_mcp.utils.validators import check_rule_expr
from valuation_mcp.utils.verdicts import Verdict

GRAHAM_CONSTANT = 22.5

GRAHAM = "graham"
BAZIN = "bazin"
BAZIN_5Y = "bazin_5y"
GRAHAM_REVISED = "graham_revised"

FORMULAS = {
    GRAHAM: "sqrt(22.5 * EPS * BVPS)",
    BAZIN: "price * (DY / 100) / target_yield",
    BAZIN_5Y: "price * (DY_5y_avg / 100) / target_yield",
    GRAHAM_REVISED: "EPS * (base_pe + 2 * g) * (historical_rate / current_rate)",
}

STOCK_ESTIMATES = (GRAHAM, BAZIN, BAZIN_5Y, GRAHAM_REVISED)
FII_ESTIMATES = (BAZIN, BAZIN_5Y)


@dataclass(frozen=True)
class Fundamentals:
    """Normalized inputs for the formulas. Any field may be None."""

    price: float | None = None
    earnings_per_share: float | None = None
    book_value_per_share: float | None = None
    dividend_yield: float | None = None
    dividend_yield_5y_avg: float | None = None
    earnings_growth: float | None = None
    last_dividend: float | None = None


@dataclass(frozen=True)
class ValuationEstimate:
    """A suggested fair/ceiling price and how it compares with the current price."""

    name: str
    formula: str
    value: float | None
    verdict: Verdict


def _is_pos(x: float | None) -> bool:
    """Check if value is positive (not None and > 0)."""
    return x is not None and x > 0


def graham_fair_value(eps: float | None, bvps: float | None) -> float | None:
    """sqrt(22.5 * EPS * BVPS). Both operands must be strictly positive."""
    if not (_is_pos(eps) and _is_pos(bvps)):
        return None
    return math.sqrt(GRAHAM_CONSTANT * eps * bvps)


def bazin_ceiling_price(
    price: float | None,
    dividend_yield: float | None,
    target_yield: float,
) -> float | None:
    """price * (DY/100) / target_yield, i.e. the price at which DY equals the target."""
    if not (_is_pos(price) and _is_pos(dividend_yield) and _is_pos(target_yield)):
        return None
    return price * (dividend_yield / 100.0) / target_yield


def revised_graham_value(
    eps: float | None,
    growth_rate: float | None,
    macro: MacroParams,
) -> float | None:
    """
    Graham's revised formula: EPS * (base_pe + 2g) * (historical_rate / current_rate).

    Growth falls back to macro.fallback_growth_rate when trailing growth is
    None or non-positive.
    """
    if not _is_pos(eps) or not _is_pos(macro.current_benchmark_rate):
        return None
    g = growth_rate if _is_pos(growth_rate) else macro.fallback_growth_rate
    value = eps * (macro.base_pe + 2.0 * g) * (
        macro.historical_average_rate / macro.current_benchmark_rate
    )
    return value if value > 0 else None


def magic_number(price: float | None, last_dividend: float | None) -> int | None:
    """Quotas needed for one month of income to buy one more quota."""
    if not (_is_pos(price) and _is_pos(last_dividend)):
        return None
    return math.ceil(price / last_dividend)


def magic_number_capital(price: float | None, last_dividend: float | None) -> float | None:
    """Capital needed to reach the magic number at the current price."""
    quotas = magic_number(price, last_dividend)
    if quotas is None:
        return None
    return quotas * price


def estimate_verdict(price: float | None, estimate: float | None) -> Verdict:
    """Favorable when price is strictly below the estimate, unfavorable otherwise."""
    if not _is_pos(estimate):
        return Verdict.NEUTRAL
    below = check_rule_expr(price, estimate, operator.lt)
    if below is None:
        return Verdict.NEUTRAL
    return Verdict.FAVORABLE if below else Verdict.UNFAVORABLE


def compute_estimates(
    fundamentals: Fundamentals,
    macro: MacroParams,
    asset_type: str = "acao",
) -> dict[str, ValuationEstimate]:
    """
    Compute every applicable valuation estimate.

    Args:
        fundamentals: Normalized primary-provider inputs
        macro: Macro constants (rates, base P/E, Bazin target yield)
        asset_type: "acao" runs all formulas, "fii" only the Bazin variants

    Returns:
        Estimates keyed by formula name, in a fixed order
    """
    values: dict[str, float | None] = {
        GRAHAM: graham_fair_value(
            fundamentals.earnings_per_share, fundamentals.book_value_per_share
        ),
        BAZIN: bazin_ceiling_price(
            fundamentals.price, fundamentals.dividend_yield, macro.bazin_target_yield
        ),
        BAZIN_5Y: bazin_ceiling_price(
            fundamentals.price, fundamentals.dividend_yield_5y_avg, macro.bazin_target_yield
        ),
        GRAHAM_REVISED: revised_graham_value(
            fundamentals.earnings_per_share, fundamentals.earnings_growth, macro
        ),
    }
    names = FII_ESTIMATES if asset_type == "fii" else STOCK_ESTIMATES
    return {
        name: ValuationEstimate(
            name=name,
            formula=FORMULAS[name],
            value=values[name],
            verdict=estimate_verdict(fundamentals.price, values[name]),
        )
        for name in names
    }


def unreliable_formula_warnings(
    declared: Iterable[str | None],
    unreliable: Iterable[str],
) -> list[str]:
    """
    Advisory warnings for sectors/segments where the formulas mislead.

    Matching is case- and accent-insensitive. Estimates are never suppressed.
    """
    flagged = {fold_label(u) for u in unreliable if u}
    warnings: list[str] = []
    for label in declared:
        if not label:
            continue
        if fold_label(label) in flagged:
            warnings.append(
                f"Graham/Bazin estimates are unreliable for '{label}' companies; "
                "use them as a rough reference only"
            )
    return warnings

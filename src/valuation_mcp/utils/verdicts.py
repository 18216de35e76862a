"""Rule-based favorable/unfavorable/neutral classification of indicators."""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum

from valuation_mcp.utils import fields as f
from valuation_mcp.utils.normalize import normalize_number
from valuation_mcp.utils.sanitize import fold_label
from valuation_mcp.utils.validators import check_rule


class Verdict(str, Enum):
    FAVORABLE = "favorable"
    UNFAVORABLE = "unfavorable"
    NEUTRAL = "neutral"


Predicate = Callable[[float], bool]


def _rule(threshold: float, comparator: Callable[[float, float], bool]) -> Predicate:
    return lambda v: bool(check_rule(v, threshold, comparator))


def _between(low: float, high: float) -> Predicate:
    return lambda v: low <= v <= high


def _open_between(low: float, high: float) -> Predicate:
    return lambda v: low < v < high


@dataclass(frozen=True)
class IndicatorRule:
    """Favorable/unfavorable predicates for one indicator. Anything else is neutral."""

    favorable: Predicate
    unfavorable: Predicate
    description: str = ""


# Thresholds are part of the report contract; changing one changes user-facing verdicts.
RULES: dict[str, IndicatorRule] = {
    f.PRICE_TO_BOOK: IndicatorRule(
        _rule(1.0, operator.lt), _rule(1.5, operator.gt), "fav < 1.0, unfav > 1.5"
    ),
    f.PRICE_TO_EARNINGS: IndicatorRule(
        _open_between(0.0, 10.0), _rule(20.0, operator.gt), "fav 0 < v < 10, unfav > 20"
    ),
    f.DIVIDEND_YIELD: IndicatorRule(
        _rule(6.0, operator.ge), _rule(4.0, operator.lt), "fav >= 6, unfav < 4"
    ),
    f.RETURN_ON_EQUITY: IndicatorRule(
        _rule(15.0, operator.ge), _rule(8.0, operator.lt), "fav >= 15, unfav < 8"
    ),
    f.RETURN_ON_INVESTED_CAPITAL: IndicatorRule(
        _rule(10.0, operator.ge), _rule(5.0, operator.lt), "fav >= 10, unfav < 5"
    ),
    f.NET_MARGIN: IndicatorRule(
        _rule(15.0, operator.ge), _rule(5.0, operator.lt), "fav >= 15, unfav < 5"
    ),
    f.EBITDA_MARGIN: IndicatorRule(
        _rule(20.0, operator.ge), _rule(10.0, operator.lt), "fav >= 20, unfav < 10"
    ),
    f.NET_DEBT_TO_EBIT: IndicatorRule(
        _rule(1.0, operator.le), _rule(3.0, operator.gt), "fav <= 1.0, unfav > 3.0"
    ),
    f.NET_DEBT_TO_EBITDA: IndicatorRule(
        _rule(2.0, operator.le), _rule(4.0, operator.gt), "fav <= 2.0, unfav > 4.0"
    ),
    f.CURRENT_LIQUIDITY: IndicatorRule(
        _rule(1.5, operator.ge), _rule(1.0, operator.lt), "fav >= 1.5, unfav < 1.0"
    ),
    f.PAYOUT_RATIO: IndicatorRule(
        _between(25.0, 75.0), _rule(100.0, operator.gt), "fav 25..75, unfav > 100"
    ),
    f.UPSIDE_POTENTIAL: IndicatorRule(
        _rule(15.0, operator.gt), _rule(0.0, operator.lt), "fav > 15, unfav < 0"
    ),
    f.RISK_SCORE: IndicatorRule(
        _rule(25.0, operator.le), _rule(50.0, operator.gt), "fav <= 25, unfav > 50"
    ),
    f.EARNINGS_CAGR: IndicatorRule(
        _rule(10.0, operator.ge), _rule(5.0, operator.lt), "fav >= 10, unfav < 5"
    ),
}

# Labels used by pages and people for the same indicators
INDICATOR_ALIASES: dict[str, str] = {
    "price/book": f.PRICE_TO_BOOK,
    "p/vp": f.PRICE_TO_BOOK,
    "price/earnings": f.PRICE_TO_EARNINGS,
    "p/l": f.PRICE_TO_EARNINGS,
    "dividend yield": f.DIVIDEND_YIELD,
    "dy": f.DIVIDEND_YIELD,
    "return on equity": f.RETURN_ON_EQUITY,
    "roe": f.RETURN_ON_EQUITY,
    "return on invested capital": f.RETURN_ON_INVESTED_CAPITAL,
    "roic": f.RETURN_ON_INVESTED_CAPITAL,
    "net margin": f.NET_MARGIN,
    "margem liquida": f.NET_MARGIN,
    "ebitda margin": f.EBITDA_MARGIN,
    "margem ebitda": f.EBITDA_MARGIN,
    "net debt/ebit": f.NET_DEBT_TO_EBIT,
    "divida liquida/ebit": f.NET_DEBT_TO_EBIT,
    "net debt/ebitda": f.NET_DEBT_TO_EBITDA,
    "divida liquida/ebitda": f.NET_DEBT_TO_EBITDA,
    "current liquidity": f.CURRENT_LIQUIDITY,
    "liquidez corrente": f.CURRENT_LIQUIDITY,
    "payout ratio": f.PAYOUT_RATIO,
    "payout": f.PAYOUT_RATIO,
    "upside potential": f.UPSIDE_POTENTIAL,
    "risk score": f.RISK_SCORE,
    "earnings growth": f.EARNINGS_CAGR,
    "earnings growth (cagr)": f.EARNINGS_CAGR,
    "cagr lucros": f.EARNINGS_CAGR,
    "cagr lucros 5 anos": f.EARNINGS_CAGR,
}


def resolve_indicator(name: str) -> str | None:
    """Map an indicator name or alias to its canonical rule key."""
    if not isinstance(name, str):
        return None
    key = fold_label(name)
    if key in RULES:
        return key
    # "net debt / ebitda" and "net debt/ebitda" are the same label
    compact = key.replace(" / ", "/")
    return INDICATOR_ALIASES.get(compact)


def classify(indicator: str, value: float | None) -> Verdict:
    """
    Classify a normalized indicator value.

    Unknown indicators and None values are always neutral. Favorable is
    checked first; the rule tables never overlap, so order only matters
    for malformed custom rules.
    """
    if value is None:
        return Verdict.NEUTRAL
    key = resolve_indicator(indicator)
    if key is None:
        return Verdict.NEUTRAL
    rule = RULES[key]
    if rule.favorable(value):
        return Verdict.FAVORABLE
    if rule.unfavorable(value):
        return Verdict.UNFAVORABLE
    return Verdict.NEUTRAL


def classify_text(indicator: str, raw: str | None) -> Verdict:
    """Normalize provider text and classify it."""
    return classify(indicator, normalize_number(raw))


@dataclass(frozen=True)
class ClassifiedField:
    """One provider field after normalization and classification."""

    name: str
    raw: str | None
    value: float | None
    verdict: Verdict


def classify_fields(field_set: Mapping[str, str | None]) -> dict[str, ClassifiedField]:
    """Normalize and classify every field of a provider field set.

    Text-only fields (sector, recommendation) are kept raw with no number.
    """
    out: dict[str, ClassifiedField] = {}
    for name, raw in field_set.items():
        value = None if name in f.TEXT_FIELDS else normalize_number(raw)
        out[name] = ClassifiedField(
            name=name,
            raw=raw,
            value=value,
            verdict=classify(name, value),
        )
    return out

"""Report assembly: pure composition of classified fields and estimates."""

from collections.abc import Iterable, Mapping
from typing import Any

from valuation_mcp.data.base import ProviderId
from valuation_mcp.utils import fields as f
from valuation_mcp.utils.normalize import ABSENT, format_brl, is_absent
from valuation_mcp.utils.valuation import ValuationEstimate
from valuation_mcp.utils.verdicts import ClassifiedField, Verdict

# Display order is part of the response; providers never influence it
STOCK_INDICATORS: tuple[str, ...] = (
    f.PRICE,
    f.PRICE_TO_EARNINGS,
    f.PRICE_TO_BOOK,
    f.DIVIDEND_YIELD,
    f.DIVIDEND_YIELD_5Y_AVG,
    f.BOOK_VALUE_PER_SHARE,
    f.EARNINGS_PER_SHARE,
    f.RETURN_ON_EQUITY,
    f.RETURN_ON_INVESTED_CAPITAL,
    f.NET_MARGIN,
    f.EBITDA_MARGIN,
    f.NET_DEBT_TO_EBIT,
    f.NET_DEBT_TO_EBITDA,
    f.CURRENT_LIQUIDITY,
    f.PAYOUT_RATIO,
    f.EARNINGS_CAGR,
    f.TARGET_PRICE,
    f.UPSIDE_POTENTIAL,
    f.RECOMMENDATION,
    f.ANALYST_COUNT,
    f.RISK_SCORE,
    f.SECTOR,
    f.SEGMENT,
)

FII_INDICATORS: tuple[str, ...] = (
    f.PRICE,
    f.DIVIDEND_YIELD,
    f.DIVIDEND_YIELD_5Y_AVG,
    f.PRICE_TO_BOOK,
    f.LAST_DIVIDEND,
    f.YIELD_1M,
    f.TARGET_PRICE,
    f.UPSIDE_POTENTIAL,
    f.RECOMMENDATION,
    f.SEGMENT,
)

# Keys the report reserves for itself; indicators never overwrite them
RESERVED_KEYS = frozenset({"ticker", "asset_type", "valuations", "warnings"})


def display_indicators(asset_type: str) -> tuple[str, ...]:
    return FII_INDICATORS if asset_type == "fii" else STOCK_INDICATORS


def indicator_entry(raw: str | None, verdict: Verdict) -> dict[str, str]:
    """{"value": raw text or "-", "class": verdict}."""
    return {
        "value": ABSENT if is_absent(raw) else raw,
        "class": verdict.value,
    }


def pick_field(
    name: str,
    primary: Mapping[str, ClassifiedField],
    secondaries: Mapping[ProviderId, Mapping[str, ClassifiedField]],
) -> ClassifiedField | None:
    """First present field: primary first, then secondaries in their given order."""
    sources = [primary, *secondaries.values()]
    for source in sources:
        field = source.get(name)
        if field is not None and not is_absent(field.raw):
            return field
    return None


def valuation_entry(estimate: ValuationEstimate) -> dict[str, str]:
    return {
        "value": format_brl(estimate.value),
        "class": estimate.verdict.value,
        "formula": estimate.formula,
    }


def assemble(
    ticker: str,
    primary: Mapping[str, ClassifiedField],
    secondaries: Mapping[ProviderId, Mapping[str, ClassifiedField]],
    estimates: Mapping[str, ValuationEstimate],
    warnings: Iterable[str],
    asset_type: str = "acao",
    extra_indicators: Mapping[str, dict[str, str]] | None = None,
) -> dict[str, Any]:
    """
    Compose the aggregated report.

    Args:
        ticker: Request ticker; always emitted uppercased
        primary: Classified primary-provider fields
        secondaries: Classified fields per secondary provider, in configured order
        estimates: Valuation estimates keyed by formula name
        warnings: Advisory warnings (deduplicated and sorted)
        asset_type: "acao" or "fii", selects the indicator list
        extra_indicators: Computed entries appended after the provider indicators

    Returns:
        Report dict: ticker, indicators, valuations, warnings
    """
    report: dict[str, Any] = {
        "ticker": ticker.strip().upper(),
        "asset_type": asset_type,
    }

    for name in display_indicators(asset_type):
        field = pick_field(name, primary, secondaries)
        if field is None:
            report[name] = indicator_entry(None, Verdict.NEUTRAL)
        else:
            report[name] = indicator_entry(field.raw, field.verdict)

    for name, entry in (extra_indicators or {}).items():
        if name in RESERVED_KEYS:
            continue
        report[name] = entry

    report["valuations"] = {name: valuation_entry(est) for name, est in estimates.items()}
    report["warnings"] = sorted(set(warnings))
    return report

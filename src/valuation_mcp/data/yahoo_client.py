"""Yahoo Finance client: the analyst-consensus secondary provider.

yfinance returns numbers, not page text. They are rendered to the same
pt-BR text form the scraped providers produce, so every provider honours
one RawFieldSet contract and one normalizer.
"""

import logging
import math
from typing import Any

import pandas as pd
import yfinance as yf

from valuation_mcp.config import YAHOO_SUFFIX
from valuation_mcp.data.base import RawFieldSet, make_field_set
from valuation_mcp.data.transport import retry_with_backoff
from valuation_mcp.errors import ProviderError
from valuation_mcp.utils import fields as f
from valuation_mcp.utils.normalize import format_brl, format_decimal, format_percent
from valuation_mcp.utils.sanitize import sanitize_text

logger = logging.getLogger(__name__)

PROVIDER_ID = "yahoo"

# overallRisk is a 1-10 governance risk grade; the report scores risk 0-100
RISK_SCALE = 10.0


def _has_value(v: Any) -> bool:
    """
    Check if a value is truly present (not None, NaN, or empty string).

    yfinance often uses float("nan") for missing numerics, which passes
    `is not None` but should be treated as missing.
    """
    if v is None:
        return False
    if isinstance(v, float) and math.isnan(v):
        return False
    if isinstance(v, str) and v.strip() == "":
        return False
    return True


def _safe_float(value: Any) -> float | None:
    """Convert to float or return None."""
    if not _has_value(value):
        return None
    try:
        result = float(value)
    except (ValueError, TypeError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def average_dividend_yield(
    dividends: pd.Series | None,
    price: float | None,
    years: int = 5,
    now: pd.Timestamp | None = None,
) -> float | None:
    """
    Trailing average dividend yield (percent) from the payment history.

    Sums payments over the last `years` years, averages per year and divides
    by the current price. None when there is no history or no price.
    """
    if dividends is None or dividends.empty or price is None or price <= 0:
        return None

    tz = getattr(dividends.index, "tz", None)
    if now is None:
        now = pd.Timestamp.now(tz=tz)
    elif tz is not None and now.tzinfo is None:
        now = now.tz_localize(tz)
    cutoff = now - pd.DateOffset(years=years)

    recent = dividends[dividends.index >= cutoff]
    if recent.empty:
        return None
    annual = float(recent.sum()) / years
    return annual / price * 100.0


def build_yahoo_fields(
    info: dict[str, Any],
    dividends: pd.Series | None = None,
) -> dict[str, str | None]:
    """Render the quote and analyst-consensus subset of a yfinance info dict as text."""
    price = _safe_float(info.get("currentPrice")) or _safe_float(info.get("regularMarketPrice"))
    target = _safe_float(info.get("targetMeanPrice"))

    upside = None
    if target is not None and price is not None and price > 0:
        upside = (target / price - 1.0) * 100.0

    avg_yield = _safe_float(info.get("fiveYearAvgDividendYield"))
    if avg_yield is None:
        avg_yield = average_dividend_yield(dividends, price)

    risk = _safe_float(info.get("overallRisk"))
    analysts = _safe_float(info.get("numberOfAnalystOpinions"))
    recommendation = info.get("recommendationKey")

    return {
        f.PRICE: format_brl(price) if price is not None else None,
        f.TARGET_PRICE: format_brl(target) if target is not None else None,
        f.UPSIDE_POTENTIAL: format_percent(upside) if upside is not None else None,
        f.RECOMMENDATION: (
            sanitize_text(str(recommendation)) if _has_value(recommendation) else None
        ),
        f.ANALYST_COUNT: format_decimal(analysts, 0) if analysts is not None else None,
        f.RISK_SCORE: format_decimal(risk * RISK_SCALE, 0) if risk is not None else None,
        f.DIVIDEND_YIELD_5Y_AVG: format_percent(avg_yield) if avg_yield is not None else None,
    }


class YahooClient:
    """Quote plus target price, upside, recommendation and 5y average yield."""

    provider_id = PROVIDER_ID
    source = "yfinance"

    def __init__(self, suffix: str = YAHOO_SUFFIX):
        self.suffix = suffix

    def symbol_for(self, ticker: str) -> str:
        return f"{ticker.upper()}{self.suffix}"

    async def fetch_raw_fields(self, ticker: str, asset_type: str, timeout: float) -> RawFieldSet:
        """
        Fetch the quote and analyst consensus for a B3 ticker.

        yfinance manages its own HTTP session; the per-provider timeout is
        enforced by the orchestrator.

        Raises:
            ProviderError: Yahoo returned no usable info for the symbol
        """
        symbol = self.symbol_for(ticker)

        def _fetch() -> dict[str, str | None]:
            yt = yf.Ticker(symbol)
            info = yt.info
            if not info or len(info) <= 1:
                raise ProviderError(PROVIDER_ID, f"No data returned for {symbol}")
            dividends = None
            if not _has_value(info.get("fiveYearAvgDividendYield")):
                dividends = yt.dividends
            return build_yahoo_fields(info, dividends)

        retry_result = await retry_with_backoff(f"{PROVIDER_ID}({symbol})", _fetch)
        return make_field_set(retry_result.result)

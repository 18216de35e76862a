"""Response metadata, per-provider provenance and error shapes."""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

import pytz

from valuation_mcp import SCHEMA_VERSION, SERVER_VERSION

# B3 quotes are stamped in exchange time
MARKET_TZ = "America/Sao_Paulo"

# error_type -> HTTP status for the route layer
ERROR_STATUS = {
    "invalid_request": 400,
    "not_found": 404,
    "internal_error": 500,
}


def market_now(tz: str = MARKET_TZ) -> datetime:
    """Current time in the exchange timezone."""
    return datetime.now(pytz.timezone(tz))


def build_meta(tool: str, duration_ms: float | None = None) -> dict[str, Any]:
    """
    Versions and timing attached to every response.

    Args:
        tool: Name of the tool producing this response
        duration_ms: Execution time in milliseconds (optional)
    """
    meta: dict[str, Any] = {
        "server_version": SERVER_VERSION,
        "schema_version": SCHEMA_VERSION,
        "tool": tool,
    }
    if duration_ms is not None:
        meta["duration_ms"] = round(duration_ms, 1)
    return meta


def build_provenance(
    source: str,
    as_of: datetime | str | None = None,
    missing_fields: Iterable[str] = (),
    warnings: Iterable[str] = (),
) -> dict[str, Any]:
    """
    Provenance block for one provider.

    Args:
        source: Where the fields came from (e.g., "investidor10.com.br", "yfinance")
        as_of: When they were fetched; omitted for failed providers
        missing_fields: Fields the provider returned without a value
        warnings: Failure or quality notes for this provider

    Returns:
        {"source", "as_of"?, "missing_fields"?, "warnings"}
    """
    prov: dict[str, Any] = {"source": source}
    if isinstance(as_of, datetime):
        prov["as_of"] = as_of.isoformat()
    elif as_of is not None:
        prov["as_of"] = as_of

    missing = sorted(missing_fields)
    if missing:
        prov["missing_fields"] = missing
    prov["warnings"] = list(warnings)
    return prov


def build_error_response(
    error_type: str,
    message: str,
    ticker: str | None = None,
) -> dict[str, Any]:
    """
    Error body shared by the MCP tool and the HTTP routes.

    Args:
        error_type: invalid_request, not_found or internal_error
        message: Caller-safe message; never exception text for internal errors
        ticker: Canonical ticker, when the request got far enough to have one
    """
    response: dict[str, Any] = {
        "error": message,
        "error_type": error_type,
        "meta": build_meta("error"),
    }
    if ticker is not None:
        response["ticker"] = ticker
    return response


def error_status(response: dict[str, Any]) -> int:
    """HTTP status for a tool response (200 when it is not an error)."""
    if "error" not in response:
        return 200
    return ERROR_STATUS.get(response.get("error_type", ""), 500)

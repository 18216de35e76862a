"""Ticker Valuation MCP Server using FastMCP."""

import json
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from valuation_mcp import SCHEMA_VERSION, SERVER_VERSION
from valuation_mcp.data.session_pool import session_pool
from valuation_mcp.data.transport import shutdown_executor
from valuation_mcp.tools import aggregate_ticker
from valuation_mcp.utils.provenance import build_error_response, error_status
from valuation_mcp.utils.validators import AggregateRequest

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=getattr(logging, log_level, logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Release provider sessions and the executor on shutdown."""
    try:
        yield
    finally:
        await session_pool.close()
        await shutdown_executor()


# Create FastMCP server instance
mcp = FastMCP(
    name="ticker-valuation",
    lifespan=lifespan,
)


# ============================================================================
# TOOLS
# ============================================================================


@mcp.tool
async def get_ticker_report(ticker: str, asset_type: str = "acao") -> str:
    """
    Aggregate indicators and valuation estimates for a B3 ticker.

    Combines the primary fundamentals provider with analyst-consensus
    providers, classifies each indicator as favorable/unfavorable/neutral
    and computes Graham, Bazin and revised Graham estimates (or the
    magic number for real-estate funds).

    Args:
        ticker: Ticker symbol, any casing (e.g., PETR4, hglg11)
        asset_type: "acao" for stocks (default) or "fii" for real-estate funds

    Returns:
        JSON report, or JSON with "error" and "error_type"
    """
    result = await aggregate_ticker(ticker=ticker, asset_type=asset_type)
    return json.dumps(result, indent=2, default=str, ensure_ascii=False)


# ============================================================================
# HTTP ROUTES
# ============================================================================


async def _request_payload(request: Request) -> dict[str, Any]:
    if request.method == "POST":
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValueError("Request body must be valid JSON")
        return payload
    return dict(request.query_params)


@mcp.custom_route("/aggregate", methods=["GET", "POST"])
async def aggregate_route(request: Request) -> JSONResponse:
    """GET /aggregate?ticker=PETR4 or POST /aggregate {"ticker": "PETR4"}."""
    try:
        payload = await _request_payload(request)
        params = AggregateRequest.from_payload(payload)
    except ValueError as e:
        result = build_error_response(error_type="invalid_request", message=str(e))
        return JSONResponse(result, status_code=error_status(result))

    result = await aggregate_ticker(ticker=params.ticker, asset_type=params.asset_type)
    return JSONResponse(result, status_code=error_status(result))


@mcp.custom_route("/health", methods=["GET"])
async def health_route(request: Request) -> JSONResponse:
    return JSONResponse(
        {
            "status": "ok",
            "server_version": SERVER_VERSION,
            "schema_version": SCHEMA_VERSION,
            "sessions": session_pool.stats(),
        }
    )


# ============================================================================
# ENTRY POINT
# ============================================================================


def main() -> None:
    """Run the MCP server (stdio by default, MCP_TRANSPORT=http for the HTTP routes)."""
    transport = os.environ.get("MCP_TRANSPORT", "stdio").lower()
    logger.info(
        f"Starting Ticker Valuation MCP Server v{SERVER_VERSION} "
        f"(schema v{SCHEMA_VERSION}, transport={transport})"
    )
    if transport == "stdio":
        mcp.run()
    else:
        mcp.run(
            transport=transport,
            host=os.environ.get("HOST", "127.0.0.1"),
            port=int(os.environ.get("PORT", "3000")),
        )


if __name__ == "__main__":
    main()

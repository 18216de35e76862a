"""Ticker aggregation and valuation MCP server."""

import os


def get_server_version() -> str:
    """Get version with fallback for dev mode."""
    if version := os.environ.get("SERVER_VERSION"):
        return version
    try:
        from importlib.metadata import version as pkg_version

        return pkg_version("valuation-mcp")
    except Exception:
        return "dev"


SERVER_VERSION = get_server_version()
# Bump when output schema changes materially (new fields, renamed fields, structure changes)
# v1: Initial report schema (indicators, valuations, warnings)
# v2: Added data_quality.provider_failures and FII magic number fields
SCHEMA_VERSION = "2"

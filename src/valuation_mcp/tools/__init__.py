"""Aggregation tools."""

from valuation_mcp.tools.aggregate import aggregate_ticker, build_orchestrator, build_report
from valuation_mcp.tools.orchestrator import ProviderOrchestrator
from valuation_mcp.tools.report import assemble

__all__ = [
    "aggregate_ticker",
    "assemble",
    "build_orchestrator",
    "build_report",
    "ProviderOrchestrator",
]

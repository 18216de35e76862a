"""Utility modules."""

from valuation_mcp.utils.normalize import format_brl, format_percent, normalize_number
from valuation_mcp.utils.provenance import build_error_response, build_meta, build_provenance
from valuation_mcp.utils.sanitize import fold_label, sanitize_text
from valuation_mcp.utils.validators import AggregateRequest, check_rule, check_rule_expr
from valuation_mcp.utils.valuation import ValuationEstimate, compute_estimates
from valuation_mcp.utils.verdicts import Verdict, classify, classify_fields

__all__ = [
    "format_brl",
    "format_percent",
    "normalize_number",
    "build_error_response",
    "build_meta",
    "build_provenance",
    "fold_label",
    "sanitize_text",
    "AggregateRequest",
    "check_rule",
    "check_rule_expr",
    "ValuationEstimate",
    "compute_estimates",
    "Verdict",
    "classify",
    "classify_fields",
]

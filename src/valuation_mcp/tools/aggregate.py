"""Aggregate tool: fetch, normalize, classify, value and assemble one ticker."""

import logging
from collections.abc import Mapping
from functools import lru_cache
from time import perf_counter
from typing import Any

from valuation_mcp.config import EngineConfig
from valuation_mcp.data.base import ProviderFailure, ProviderId, ProviderOutcome, ProviderSuccess
from valuation_mcp.data.registry import build_provider_clients
from valuation_mcp.errors import EssentialDataMissingError
from valuation_mcp.tools.orchestrator import ProviderOrchestrator
from valuation_mcp.tools.report import assemble, pick_field
from valuation_mcp.utils import fields as f
from valuation_mcp.utils.normalize import format_brl, format_decimal
from valuation_mcp.utils.provenance import (
    build_error_response,
    build_meta,
    build_provenance,
    market_now,
)
from valuation_mcp.utils.validators import AggregateRequest
from valuation_mcp.utils.valuation import (
    Fundamentals,
    compute_estimates,
    magic_number,
    magic_number_capital,
    unreliable_formula_warnings,
)
from valuation_mcp.utils.verdicts import ClassifiedField, Verdict, classify_fields

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Ticker not found or essential data missing."
INTERNAL_ERROR_MESSAGE = "Internal error while processing data."


@lru_cache(maxsize=1)
def get_config() -> EngineConfig:
    """Process-wide configuration, read from the environment once."""
    return EngineConfig.from_env()


@lru_cache(maxsize=1)
def get_orchestrator() -> ProviderOrchestrator:
    """Process-wide orchestrator built from get_config()."""
    config = get_config()
    return build_orchestrator(config)


def build_orchestrator(config: EngineConfig) -> ProviderOrchestrator:
    return ProviderOrchestrator(
        clients=build_provider_clients(config.providers),
        primary=config.primary_provider,
        timeout_seconds=config.provider_timeout_seconds,
    )


def _value(
    name: str,
    primary: Mapping[str, ClassifiedField],
    secondaries: Mapping[ProviderId, Mapping[str, ClassifiedField]],
) -> float | None:
    field = pick_field(name, primary, secondaries)
    return field.value if field is not None else None


def _raw(name: str, primary: Mapping[str, ClassifiedField]) -> str | None:
    field = primary.get(name)
    return field.raw if field is not None else None


def build_report(
    request: AggregateRequest,
    orchestrator: ProviderOrchestrator,
    outcomes: Mapping[ProviderId, ProviderOutcome],
    config: EngineConfig,
) -> dict[str, Any]:
    """
    Turn provider outcomes into a report. CPU-only; runs after the join.

    Raises:
        EssentialDataMissingError: Primary failed or has no price
    """
    primary_fields = orchestrator.require_primary(request.ticker, outcomes)
    primary = classify_fields(primary_fields)

    secondaries: dict[ProviderId, dict[str, ClassifiedField]] = {}
    for provider_id in orchestrator.secondary_ids:
        outcome = outcomes.get(provider_id)
        if isinstance(outcome, ProviderSuccess):
            secondaries[provider_id] = classify_fields(outcome.fields)

    # Formula inputs come from the primary; secondaries only fill gaps (5y average yield)
    fundamentals = Fundamentals(
        price=_value(f.PRICE, primary, {}),
        earnings_per_share=_value(f.EARNINGS_PER_SHARE, primary, {}),
        book_value_per_share=_value(f.BOOK_VALUE_PER_SHARE, primary, {}),
        dividend_yield=_value(f.DIVIDEND_YIELD, primary, {}),
        dividend_yield_5y_avg=_value(f.DIVIDEND_YIELD_5Y_AVG, primary, secondaries),
        earnings_growth=_value(f.EARNINGS_CAGR, primary, {}),
        last_dividend=_value(f.LAST_DIVIDEND, primary, {}),
    )
    estimates = compute_estimates(fundamentals, config.macro, request.asset_type)
    warnings = unreliable_formula_warnings(
        [_raw(f.SECTOR, primary), _raw(f.SEGMENT, primary)],
        config.unreliable_sectors,
    )

    extra: dict[str, dict[str, str]] = {}
    if request.asset_type == "fii":
        quotas = magic_number(fundamentals.price, fundamentals.last_dividend)
        capital = magic_number_capital(fundamentals.price, fundamentals.last_dividend)
        extra["magic_number"] = {
            "value": format_decimal(quotas, 0) if quotas is not None else "-",
            "class": Verdict.NEUTRAL.value,
        }
        extra["magic_number_capital"] = {
            "value": format_brl(capital),
            "class": Verdict.NEUTRAL.value,
        }

    return assemble(
        ticker=request.ticker,
        primary=primary,
        secondaries=secondaries,
        estimates=estimates,
        warnings=warnings,
        asset_type=request.asset_type,
        extra_indicators=extra,
    )


def build_data_quality(
    orchestrator: ProviderOrchestrator,
    outcomes: Mapping[ProviderId, ProviderOutcome],
) -> dict[str, Any]:
    providers = {
        provider_id: {
            "ok": outcome.ok,
            "role": "primary" if provider_id == orchestrator.primary else "secondary",
        }
        for provider_id, outcome in outcomes.items()
    }
    failures = [o.to_dict() for o in outcomes.values() if isinstance(o, ProviderFailure)]
    return {"providers": providers, "provider_failures": failures}


def build_data_provenance(
    orchestrator: ProviderOrchestrator,
    outcomes: Mapping[ProviderId, ProviderOutcome],
) -> dict[str, Any]:
    as_of = market_now()
    provenance: dict[str, Any] = {}
    for provider_id, outcome in outcomes.items():
        client = orchestrator.clients[provider_id]
        if isinstance(outcome, ProviderSuccess):
            missing = sorted(k for k, v in outcome.fields.items() if v is None)
            provenance[provider_id] = build_provenance(
                source=client.source,
                as_of=as_of,
                missing_fields=missing,
            )
        else:
            provenance[provider_id] = build_provenance(
                source=client.source,
                warnings=[f"{outcome.reason.value}: {outcome.message}"],
            )
    return provenance


async def aggregate_ticker(
    ticker: str,
    asset_type: str = "acao",
    *,
    config: EngineConfig | None = None,
    orchestrator: ProviderOrchestrator | None = None,
) -> dict[str, Any]:
    """
    Aggregate indicators and valuation estimates for one ticker.

    Args:
        ticker: Ticker symbol, any casing (e.g., "petr4")
        asset_type: "acao" (stock) or "fii" (real-estate fund)
        config: Engine configuration (default: from environment)
        orchestrator: Provider orchestrator (default: built from config)

    Returns:
        Report dict, or an error dict with error_type invalid_request,
        not_found or internal_error
    """
    start_time = perf_counter()

    try:
        request = AggregateRequest(ticker=ticker, asset_type=asset_type)
    except ValueError as e:
        return build_error_response(error_type="invalid_request", message=str(e))

    logger.info(f"Aggregating {request.ticker} ({request.asset_type})")

    try:
        if orchestrator is None:
            orchestrator = build_orchestrator(config) if config is not None else get_orchestrator()
        config = config if config is not None else get_config()
        outcomes = await orchestrator.fetch_all(request.ticker, request.asset_type)
        report = build_report(request, orchestrator, outcomes, config)
        report["data_quality"] = build_data_quality(orchestrator, outcomes)
        report["data_provenance"] = build_data_provenance(orchestrator, outcomes)
    except EssentialDataMissingError as e:
        logger.info(f"{request.ticker}: {e}")
        return build_error_response(
            error_type="not_found",
            message=NOT_FOUND_MESSAGE,
            ticker=request.ticker,
        )
    except Exception:
        logger.exception(f"{request.ticker}: unexpected failure during aggregation")
        return build_error_response(
            error_type="internal_error",
            message=INTERNAL_ERROR_MESSAGE,
            ticker=request.ticker,
        )

    duration_ms = (perf_counter() - start_time) * 1000
    report["meta"] = build_meta("aggregate_ticker", duration_ms)
    return report

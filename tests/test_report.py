"""Tests for report assembly."""

from valuation_mcp.config import MacroParams
from valuation_mcp.tools.report import (
    FII_INDICATORS,
    STOCK_INDICATORS,
    assemble,
    indicator_entry,
    pick_field,
)
from valuation_mcp.utils import fields as f
from valuation_mcp.utils.valuation import GRAHAM, Fundamentals, compute_estimates
from valuation_mcp.utils.verdicts import Verdict, classify_fields


def _assemble(primary_fields, secondaries=None, **kwargs):
    primary = classify_fields(primary_fields)
    classified = {pid: classify_fields(fs) for pid, fs in (secondaries or {}).items()}
    return assemble(
        ticker=kwargs.pop("ticker", "PETR4"),
        primary=primary,
        secondaries=classified,
        estimates=kwargs.pop("estimates", {}),
        warnings=kwargs.pop("warnings", []),
        **kwargs,
    )


class TestIndicatorEntry:
    """Tests for indicator_entry function."""

    def test_present(self) -> None:
        assert indicator_entry("0,80", Verdict.FAVORABLE) == {"value": "0,80", "class": "favorable"}

    def test_absent_renders_dash(self) -> None:
        assert indicator_entry(None, Verdict.NEUTRAL) == {"value": "-", "class": "neutral"}
        assert indicator_entry("  ", Verdict.NEUTRAL)["value"] == "-"


class TestPickField:
    """Tests for pick_field function."""

    def test_primary_wins(self) -> None:
        primary = classify_fields({f.DIVIDEND_YIELD_5Y_AVG: "7,00%"})
        secondary = {"consensus": classify_fields({f.DIVIDEND_YIELD_5Y_AVG: "9,00%"})}
        assert pick_field(f.DIVIDEND_YIELD_5Y_AVG, primary, secondary).raw == "7,00%"

    def test_secondary_fills_gap(self) -> None:
        primary = classify_fields({f.DIVIDEND_YIELD_5Y_AVG: "-"})
        secondary = {"consensus": classify_fields({f.DIVIDEND_YIELD_5Y_AVG: "9,00%"})}
        assert pick_field(f.DIVIDEND_YIELD_5Y_AVG, primary, secondary).raw == "9,00%"

    def test_secondaries_in_given_order(self) -> None:
        secondaries = {
            "first": classify_fields({f.TARGET_PRICE: "R$ 11,00"}),
            "second": classify_fields({f.TARGET_PRICE: "R$ 13,00"}),
        }
        assert pick_field(f.TARGET_PRICE, {}, secondaries).raw == "R$ 11,00"

    def test_nowhere(self) -> None:
        assert pick_field(f.TARGET_PRICE, {}, {}) is None


class TestAssemble:
    """Tests for assemble function."""

    def test_ticker_uppercased(self, stock_fields) -> None:
        report = _assemble(stock_fields, ticker="petr4")
        assert report["ticker"] == "PETR4"

    def test_every_display_indicator_present(self, stock_fields) -> None:
        report = _assemble(stock_fields)
        for name in STOCK_INDICATORS:
            assert set(report[name]) == {"value", "class"}

    def test_display_order_is_fixed(self, stock_fields, consensus_fields) -> None:
        report = _assemble(stock_fields, {"consensus": consensus_fields})
        keys = [k for k in report if k in STOCK_INDICATORS]
        assert keys == list(STOCK_INDICATORS)

    def test_failed_secondary_renders_dash(self, stock_fields) -> None:
        """A secondary with no outcome leaves its indicators as '-' / neutral."""
        report = _assemble(stock_fields, {})
        assert report[f.TARGET_PRICE] == {"value": "-", "class": "neutral"}
        assert report[f.UPSIDE_POTENTIAL] == {"value": "-", "class": "neutral"}
        assert report[f.PRICE]["value"] == "R$ 10,00"

    def test_verdicts_flow_through(self, stock_fields, consensus_fields) -> None:
        report = _assemble(stock_fields, {"consensus": consensus_fields})
        assert report[f.PRICE_TO_BOOK]["class"] == "favorable"
        assert report[f.UPSIDE_POTENTIAL]["class"] == "favorable"
        assert report[f.RETURN_ON_INVESTED_CAPITAL] == {"value": "-", "class": "neutral"}

    def test_secondary_order_does_not_change_output(self, stock_fields, consensus_fields) -> None:
        """Providers with disjoint fields can arrive in any order."""
        other = {f.RISK_SCORE: "-", "free_float": "40,00%"}
        a = _assemble(stock_fields, {"consensus": consensus_fields, "other": other})
        b = _assemble(stock_fields, {"other": other, "consensus": consensus_fields})
        assert list(a.items()) == list(b.items())

    def test_fii_indicator_list(self) -> None:
        report = _assemble({f.PRICE: "R$ 160,00"}, asset_type="fii", ticker="hglg11")
        assert report["asset_type"] == "fii"
        assert [k for k in report if k in FII_INDICATORS] == list(FII_INDICATORS)
        assert f.RETURN_ON_EQUITY not in report

    def test_valuations(self, stock_fields) -> None:
        fundamentals = Fundamentals(price=10.0, earnings_per_share=1.8, book_value_per_share=8.0)
        estimates = compute_estimates(fundamentals, MacroParams())
        report = _assemble(stock_fields, estimates=estimates)

        graham = report["valuations"][GRAHAM]
        assert graham["value"] == "R$ 18,00"
        assert graham["class"] == "favorable"
        assert "22.5" in graham["formula"]
        assert report["valuations"]["bazin"]["value"] == "-"

    def test_warnings_deduplicated_and_sorted(self, stock_fields) -> None:
        report = _assemble(stock_fields, warnings=["b", "a", "b"])
        assert report["warnings"] == ["a", "b"]

    def test_extra_indicators_never_overwrite_reserved_keys(self, stock_fields) -> None:
        extra = {
            "ticker": {"value": "HACK", "class": "neutral"},
            "magic_number": {"value": "125", "class": "neutral"},
        }
        report = _assemble(stock_fields, extra_indicators=extra, ticker="petr4")
        assert report["ticker"] == "PETR4"
        assert report["magic_number"]["value"] == "125"

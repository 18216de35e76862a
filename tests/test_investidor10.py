"""Tests for the Investidor10 page client."""

import asyncio
from unittest.mock import patch

import pytest
import requests

from valuation_mcp.data.investidor10 import (
    Investidor10Client,
    parse_fii_page,
    parse_stock_page,
)
from valuation_mcp.data.session_pool import SessionPool
from valuation_mcp.utils import fields as f


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """requests.Session stand-in replaying queued responses."""

    def __init__(self, responses: list[FakeResponse]):
        self.responses = list(responses)
        self.urls: list[str] = []
        self.closed = False

    def get(self, url: str, timeout: float | None = None) -> FakeResponse:
        self.urls.append(url)
        return self.responses.pop(0)

    def close(self) -> None:
        self.closed = True


class TestParseStockPage:
    """Tests for parse_stock_page function."""

    def test_cards(self, stock_page_html) -> None:
        fields = parse_stock_page(stock_page_html)
        assert fields[f.PRICE] == "R$ 38,50"
        assert fields[f.DIVIDEND_YIELD] == "14,20%"

    def test_table_values(self, stock_page_html) -> None:
        fields = parse_stock_page(stock_page_html)
        assert fields[f.BOOK_VALUE_PER_SHARE] == "36,51"
        assert fields[f.EARNINGS_PER_SHARE] == "9,34"
        assert fields[f.RETURN_ON_EQUITY] == "25,60%"
        assert fields[f.EARNINGS_CAGR] == "35,06%"

    def test_table_preferred_over_card(self, stock_page_html) -> None:
        fields = parse_stock_page(stock_page_html)
        assert fields[f.PRICE_TO_EARNINGS] == "4,12"
        assert fields[f.PRICE_TO_BOOK] == "1,06"

    def test_labels_match_across_case_accents_and_line_breaks(self, stock_page_html) -> None:
        fields = parse_stock_page(stock_page_html)
        assert fields[f.NET_MARGIN] == "20,11%"
        assert fields[f.NET_DEBT_TO_EBITDA] == "1,02"

    def test_missing_labels_are_none(self, stock_page_html) -> None:
        fields = parse_stock_page(stock_page_html)
        assert fields[f.RETURN_ON_INVESTED_CAPITAL] is None
        assert fields[f.CURRENT_LIQUIDITY] is None

    def test_dash_is_kept_as_text(self, stock_page_html) -> None:
        """The normalizer, not the parser, decides that '-' is absent."""
        assert parse_stock_page(stock_page_html)[f.PAYOUT_RATIO] == "-"

    def test_company_info(self, stock_page_html) -> None:
        fields = parse_stock_page(stock_page_html)
        assert fields[f.SECTOR] == "Petróleo, Gás e Biocombustíveis"
        assert fields[f.SEGMENT] == "Exploração, Refino e Distribuição"

    def test_card_fallback(self) -> None:
        html = """
        <section id="cards-ticker">
          <div class="_card cotacao"><div class="_card-body"><span>R$ 9,00</span></div></div>
          <div class="_card val"><div class="_card-body"><span>7,70</span></div></div>
          <div class="_card vp"><div class="_card-body"><span>0,90</span></div></div>
        </section>
        """
        fields = parse_stock_page(html)
        assert fields[f.PRICE_TO_EARNINGS] == "7,70"
        assert fields[f.PRICE_TO_BOOK] == "0,90"

    def test_empty_page(self) -> None:
        fields = parse_stock_page("<html><body><p>Página não encontrada</p></body></html>")
        assert all(v is None for v in fields.values())


class TestParseFiiPage:
    """Tests for parse_fii_page function."""

    def test_fields(self, fii_page_html) -> None:
        fields = parse_fii_page(fii_page_html)
        assert fields == {
            f.PRICE: "R$ 160,00",
            f.DIVIDEND_YIELD: "9,60%",
            f.PRICE_TO_BOOK: "1,02",
            f.LAST_DIVIDEND: "R$ 1,10",
            f.YIELD_1M: "0,69%",
            f.SEGMENT: "Logística",
        }


class TestInvestidor10Client:
    """Tests for Investidor10Client."""

    def test_page_url(self) -> None:
        client = Investidor10Client(base_url="https://example.test/")
        assert client.page_url("PETR4", "acao") == "https://example.test/acoes/petr4/"
        assert client.page_url("HGLG11", "fii") == "https://example.test/fiis/hglg11/"

    def test_fetch_stock(self, stock_page_html) -> None:
        session = FakeSession([FakeResponse(stock_page_html)])
        pool = SessionPool(max_size=1, factory=lambda: session)
        client = Investidor10Client(pool=pool, base_url="https://example.test")

        fields = asyncio.run(client.fetch_raw_fields("PETR4", "acao", timeout=5.0))

        assert fields[f.PRICE] == "R$ 38,50"
        assert session.urls == ["https://example.test/acoes/petr4/"]
        with pytest.raises(TypeError):
            fields[f.PRICE] = "R$ 0,00"  # type: ignore[index]

    def test_fetch_fii(self, fii_page_html) -> None:
        session = FakeSession([FakeResponse(fii_page_html)])
        client = Investidor10Client(
            pool=SessionPool(max_size=1, factory=lambda: session),
            base_url="https://example.test",
        )
        fields = asyncio.run(client.fetch_raw_fields("HGLG11", "fii", timeout=5.0))
        assert fields[f.LAST_DIVIDEND] == "R$ 1,10"

    def test_not_found_is_not_retried(self) -> None:
        session = FakeSession([FakeResponse("", status_code=404)])
        client = Investidor10Client(
            pool=SessionPool(max_size=1, factory=lambda: session),
            base_url="https://example.test",
        )
        with pytest.raises(requests.HTTPError):
            asyncio.run(client.fetch_raw_fields("XXXX3", "acao", timeout=5.0))
        assert len(session.urls) == 1

    def test_server_error_is_retried(self, stock_page_html) -> None:
        session = FakeSession([FakeResponse("", status_code=503), FakeResponse(stock_page_html)])
        client = Investidor10Client(
            pool=SessionPool(max_size=1, factory=lambda: session),
            base_url="https://example.test",
        )
        with patch("valuation_mcp.data.transport.calculate_backoff", return_value=0.0):
            fields = asyncio.run(client.fetch_raw_fields("PETR4", "acao", timeout=5.0))

        assert fields[f.PRICE] == "R$ 38,50"
        assert len(session.urls) == 2

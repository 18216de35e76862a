"""Pytest configuration and fixtures."""

import asyncio
from collections.abc import Mapping

import pytest

from valuation_mcp.config import EngineConfig, MacroParams
from valuation_mcp.data.base import RawFieldSet, make_field_set
from valuation_mcp.tools.orchestrator import ProviderOrchestrator
from valuation_mcp.utils import fields as f


class FakeProvider:
    """In-memory provider client: returns fixed fields, sleeps or raises on demand."""

    def __init__(
        self,
        provider_id: str,
        fields: Mapping[str, str | None] | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
    ):
        self.provider_id = provider_id
        self.source = f"fake:{provider_id}"
        self.fields = dict(fields or {})
        self.delay = delay
        self.error = error
        self.calls: list[tuple[str, str]] = []
        self.completed = False

    async def fetch_raw_fields(self, ticker: str, asset_type: str, timeout: float) -> RawFieldSet:
        self.calls.append((ticker, asset_type))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.completed = True
        return make_field_set(self.fields)


def make_orchestrator(*providers: FakeProvider, timeout: float = 1.0) -> ProviderOrchestrator:
    """Orchestrator over fakes; the first provider is the primary."""
    return ProviderOrchestrator(
        clients={p.provider_id: p for p in providers},
        primary=providers[0].provider_id,
        timeout_seconds=timeout,
    )


@pytest.fixture
def stock_fields() -> dict[str, str | None]:
    """Primary-provider fields for a stock, as page text."""
    return {
        f.PRICE: "R$ 10,00",
        f.PRICE_TO_EARNINGS: "5,00",
        f.PRICE_TO_BOOK: "0,80",
        f.DIVIDEND_YIELD: "9,00%",
        f.BOOK_VALUE_PER_SHARE: "8,00",
        f.EARNINGS_PER_SHARE: "2,00",
        f.RETURN_ON_EQUITY: "25,00%",
        f.RETURN_ON_INVESTED_CAPITAL: "-",
        f.NET_MARGIN: "12,00%",
        f.EBITDA_MARGIN: "30,00%",
        f.NET_DEBT_TO_EBIT: "0,50",
        f.NET_DEBT_TO_EBITDA: "0,40",
        f.CURRENT_LIQUIDITY: "1,20",
        f.PAYOUT_RATIO: "45,00%",
        f.EARNINGS_CAGR: "-",
        f.SECTOR: "Petróleo, Gás e Biocombustíveis",
        f.SEGMENT: "Exploração, Refino e Distribuição",
    }


@pytest.fixture
def consensus_fields() -> dict[str, str | None]:
    """Secondary-provider (analyst consensus) fields."""
    return {
        f.TARGET_PRICE: "R$ 12,00",
        f.UPSIDE_POTENTIAL: "20,00%",
        f.RECOMMENDATION: "buy",
        f.ANALYST_COUNT: "12",
        f.RISK_SCORE: "30",
        f.DIVIDEND_YIELD_5Y_AVG: "12,00%",
    }


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(
        providers=("primary", "consensus"),
        primary_provider="primary",
        provider_timeout_ms=1000,
        macro=MacroParams(),
    )


STOCK_PAGE_HTML = """
<html><body>
<section id="cards-ticker">
  <div class="_card cotacao">
    <div class="_card-header"><span>PETR4 Cotação</span></div>
    <div class="_card-body"><span>R$ 38,50</span></div>
  </div>
  <div class="_card val">
    <div class="_card-header"><span>P/L</span></div>
    <div class="_card-body"><span>4,10</span></div>
  </div>
  <div class="_card vp">
    <div class="_card-header"><span>P/VP</span></div>
    <div class="_card-body"><span>1,05</span></div>
  </div>
  <div class="_card dy">
    <div class="_card-header"><span>DY</span></div>
    <div class="_card-body"><span>14,20%</span></div>
  </div>
</section>
<div id="table-indicators">
  <div class="cell">
    <span class="d-flex justify-content-between align-items-center">P/L</span>
    <div class="value d-flex"><span>4,12</span></div>
  </div>
  <div class="cell">
    <span class="d-flex justify-content-between align-items-center">P/VP</span>
    <div class="value d-flex"><span>1,06</span></div>
  </div>
  <div class="cell">
    <span>VPA</span>
    <div class="value d-flex"><span>36,51</span></div>
  </div>
  <div class="cell">
    <span>LPA</span>
    <div class="value d-flex"><span>9,34</span></div>
  </div>
  <div class="cell">
    <span>ROE</span>
    <div class="value d-flex"><span>25,60%</span></div>
  </div>
  <div class="cell">
    <span>
      Margem
      Líquida
    </span>
    <div class="value d-flex"><span>20,11%</span></div>
  </div>
  <div class="cell">
    <span>DÍVIDA LÍQUIDA / EBITDA</span>
    <div class="value d-flex"><span>1,02</span></div>
  </div>
  <div class="cell">
    <span>Payout</span>
    <div class="value d-flex"><span>-</span></div>
  </div>
  <div class="cell">
    <span>CAGR Lucros 5 Anos</span>
    <div class="value d-flex"><span>35,06%</span></div>
  </div>
</div>
<div id="table-indicators-company">
  <div class="cell">
    <span class="title">Setor:</span>
    <span class="value">Petróleo, Gás e Biocombustíveis</span>
  </div>
  <div class="cell">
    <span class="title">Segmento:</span>
    <span class="value">Exploração, Refino e Distribuição</span>
  </div>
</div>
</body></html>
"""

FII_PAGE_HTML = """
<html><body>
<section id="cards-ticker">
  <div class="_card cotacao"><div class="_card-body"><span>R$ 160,00</span></div></div>
  <div class="_card dy"><div class="_card-body"><span>9,60%</span></div></div>
  <div class="_card vp"><div class="_card-body"><span>1,02</span></div></div>
</section>
<div id="dividends-section">
  <div class="content--info">
    <div class="content--info--item">
      <span class="content--info--item--title">Yield 1 Mês</span>
      <span class="content--info--item--value">0,69%</span>
    </div>
  </div>
  <div class="dividends-summary">
    <div class="desc">
      <span class="name">Último Rendimento</span>
      <div class="value"><span>R$ 1,10</span></div>
    </div>
  </div>
</div>
<div id="table-indicators">
  <div class="cell">
    <span class="title">Segmento:</span>
    <span class="value">Logística</span>
  </div>
</div>
</body></html>
"""


@pytest.fixture
def stock_page_html() -> str:
    return STOCK_PAGE_HTML


@pytest.fixture
def fii_page_html() -> str:
    return FII_PAGE_HTML

"""Investidor10 page client: the primary fundamentals provider.

Pages are fetched with a leased requests.Session on the provider executor
and reduced to a RawFieldSet with BeautifulSoup. All page-structure
knowledge (card classes, table labels) lives in this module; nothing
downstream depends on it.
"""

import logging
from typing import Any

from bs4 import BeautifulSoup, Tag

from valuation_mcp.config import INVESTIDOR10_BASE_URL
from valuation_mcp.data.base import RawFieldSet, make_field_set
from valuation_mcp.data.session_pool import SessionPool, session_pool
from valuation_mcp.data.transport import retry_with_backoff
from valuation_mcp.utils import fields as f
from valuation_mcp.utils.sanitize import fold_label, sanitize_text

logger = logging.getLogger(__name__)

PROVIDER_ID = "investidor10"

# Indicators table: field -> label shown in the first span of each ".cell"
STOCK_TABLE_LABELS: dict[str, str] = {
    f.PRICE_TO_EARNINGS: "P/L",
    f.PRICE_TO_BOOK: "P/VP",
    f.BOOK_VALUE_PER_SHARE: "VPA",
    f.EARNINGS_PER_SHARE: "LPA",
    f.RETURN_ON_EQUITY: "ROE",
    f.RETURN_ON_INVESTED_CAPITAL: "ROIC",
    f.NET_MARGIN: "Margem Líquida",
    f.EBITDA_MARGIN: "Margem EBITDA",
    f.NET_DEBT_TO_EBIT: "Dívida Líquida / EBIT",
    f.NET_DEBT_TO_EBITDA: "Dívida Líquida / EBITDA",
    f.CURRENT_LIQUIDITY: "Liquidez Corrente",
    f.PAYOUT_RATIO: "Payout",
    f.EARNINGS_CAGR: "CAGR Lucros 5 Anos",
}

# Company data block: field -> ".title" text
INFO_LABELS: dict[str, str] = {
    f.SECTOR: "Setor",
    f.SEGMENT: "Segmento",
}


def _text(node: Tag | None) -> str | None:
    if node is None:
        return None
    return sanitize_text(node.get_text(" ", strip=True))


def card_value(soup: BeautifulSoup, card_class: str) -> str | None:
    """Value of a header card, e.g. card_value(soup, "cotacao")."""
    return _text(soup.select_one(f"#cards-ticker ._card.{card_class} ._card-body span"))


def table_value(soup: BeautifulSoup, label: str) -> str | None:
    """Value of the indicators-table cell whose first span matches label."""
    wanted = fold_label(label)
    for cell in soup.select(".cell"):
        name = cell.find("span")
        if name is None or fold_label(name.get_text(" ", strip=True)) != wanted:
            continue
        return _text(cell.select_one(".value span"))
    return None


def info_value(soup: BeautifulSoup, label: str) -> str | None:
    """Value of a company-data cell ("Setor:", "Segmento:")."""
    wanted = fold_label(label)
    for cell in soup.select(".cell"):
        title = cell.select_one(".title")
        if title is None:
            continue
        if fold_label(title.get_text(" ", strip=True)).rstrip(":").strip() != wanted:
            continue
        return _text(cell.select_one(".value"))
    return None


def labelled_value(
    soup: BeautifulSoup, label_selector: str, label: str, value_selector: str
) -> str | None:
    """Value next to a free-standing label (used by the FII page blocks)."""
    wanted = fold_label(label)
    for node in soup.select(label_selector):
        if fold_label(node.get_text(" ", strip=True)) != wanted:
            continue
        parent = node.parent
        if parent is None:
            return None
        return _text(parent.select_one(value_selector))
    return None


def parse_stock_page(html: str) -> dict[str, str | None]:
    """Extract stock fields from an /acoes/<ticker>/ page."""
    soup = BeautifulSoup(html, "html.parser")
    out: dict[str, str | None] = {
        f.PRICE: card_value(soup, "cotacao"),
        f.DIVIDEND_YIELD: card_value(soup, "dy"),
    }
    for field_name, label in STOCK_TABLE_LABELS.items():
        out[field_name] = table_value(soup, label)
    # P/L and P/VP also have header cards; prefer the table, fall back to the card
    if out[f.PRICE_TO_EARNINGS] is None:
        out[f.PRICE_TO_EARNINGS] = card_value(soup, "val")
    if out[f.PRICE_TO_BOOK] is None:
        out[f.PRICE_TO_BOOK] = card_value(soup, "vp")
    for field_name, label in INFO_LABELS.items():
        out[field_name] = info_value(soup, label)
    return out


def parse_fii_page(html: str) -> dict[str, str | None]:
    """Extract real-estate fund fields from an /fiis/<ticker>/ page."""
    soup = BeautifulSoup(html, "html.parser")
    return {
        f.PRICE: card_value(soup, "cotacao"),
        f.DIVIDEND_YIELD: card_value(soup, "dy"),
        f.PRICE_TO_BOOK: card_value(soup, "vp"),
        f.LAST_DIVIDEND: labelled_value(
            soup, ".desc .name", "Último Rendimento", ".value span"
        ),
        f.YIELD_1M: labelled_value(
            soup,
            ".content--info--item--title",
            "Yield 1 Mês",
            ".content--info--item--value",
        ),
        f.SEGMENT: info_value(soup, "Segmento"),
    }


class Investidor10Client:
    """Primary provider: quote, multiples, profitability, debt, sector."""

    provider_id = PROVIDER_ID
    source = "investidor10.com.br"

    def __init__(self, pool: SessionPool | None = None, base_url: str = INVESTIDOR10_BASE_URL):
        self.pool = pool if pool is not None else session_pool
        self.base_url = base_url.rstrip("/")

    def page_url(self, ticker: str, asset_type: str) -> str:
        section = "fiis" if asset_type == "fii" else "acoes"
        return f"{self.base_url}/{section}/{ticker.lower()}/"

    async def fetch_raw_fields(self, ticker: str, asset_type: str, timeout: float) -> RawFieldSet:
        """
        Fetch and parse the ticker page.

        Args:
            ticker: Uppercase ticker (e.g., PETR4)
            asset_type: "acao" or "fii"
            timeout: Per-request HTTP timeout in seconds

        Returns:
            Frozen field set; fields the page does not show are None

        Raises:
            requests.HTTPError: Page missing (404) or server errors after retries
            ServerShuttingDownError: If server is shutting down
        """
        url = self.page_url(ticker, asset_type)
        parse = parse_fii_page if asset_type == "fii" else parse_stock_page

        async with self.pool.lease() as session:

            def _fetch() -> dict[str, Any]:
                resp = session.get(url, timeout=timeout)
                resp.raise_for_status()
                return parse(resp.text)

            logger.info(f"Fetching {url}")
            retry_result = await retry_with_backoff(f"{PROVIDER_ID}({ticker})", _fetch)

        fields = retry_result.result
        found = sum(1 for v in fields.values() if v is not None)
        logger.debug(
            f"{PROVIDER_ID}({ticker}): {found}/{len(fields)} fields present "
            f"after {retry_result.attempts} attempt(s)"
        )
        return make_field_set(fields)

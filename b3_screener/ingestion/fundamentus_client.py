"""
Fundamentus result-page scrapers: the primary bulk source for stocks and funds.

Both pages are a single HTML table with one row per ticker and Brazilian
number formatting ("1.234,56", "12,5%"). Columns are read by index.

Stocks   ``#resultado``        https://www.fundamentus.com.br/resultado.php
Funds    ``#tabelaResultado``  https://www.fundamentus.com.br/fii_resultado.php

Fundamentus does not publish a payout ratio; it is approximated as
``DY × P/E`` (percent) when both are positive.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from b3_screener.ingestion.base import (
    DEFAULT_TIMEOUT_SECONDS,
    FundAdapter,
    SourceUnavailableError,
    StockAdapter,
    build_async_client,
    fetch_text,
)
from b3_screener.models.asset import RawFundRecord, RawStockRecord
from b3_screener.utils.parsing import parse_br_number

logger = logging.getLogger(__name__)

STOCKS_URL = "https://www.fundamentus.com.br/resultado.php"
FUNDS_URL = "https://www.fundamentus.com.br/fii_resultado.php"

# column index → RawStockRecord field
_STOCK_COLUMNS: dict[int, str] = {
    1: "cotacao",
    2: "pl",
    3: "p_vp",
    4: "psr",
    5: "dividend_yield",
    10: "ev_ebit",
    12: "mrg_ebit",
    13: "mrg_liq",
    15: "roic",
    16: "roe",
    17: "liq_2meses",
    19: "div_br_patrim",
    20: "cresc_5a",
}

# column index → RawFundRecord field (0 = ticker, 1 = segment)
_FUND_COLUMNS: dict[int, str] = {
    2: "price",
    3: "ffo_yield",
    4: "dy",
    5: "p_vp",
    6: "market_cap",
    7: "liquidity",
    8: "num_properties",
    11: "cap_rate",
    12: "vacancy",
}


def _table_rows(html: str, table_id: str) -> list[list[str]]:
    """Return the stripped cell texts of every body row in ``#table_id``."""
    soup = BeautifulSoup(html, "html.parser")
    table = soup.find("table", id=table_id)
    if table is None:
        return []
    body = table.find("tbody") or table
    rows: list[list[str]] = []
    for tr in body.find_all("tr"):
        cells = [td.get_text(strip=True) for td in tr.find_all("td")]
        if cells:
            rows.append(cells)
    return rows


def _cell(cells: list[str], index: int) -> str:
    return cells[index] if index < len(cells) else ""


def derive_payout(dividend_yield: float, pl: float) -> float:
    """Payout percent approximated as ``DY × P/E``; 0 when either input is ≤ 0.

    DY% × P/E equals dividends over earnings × 100, so 8% at P/E 10 is 80%.
    """
    if pl > 0 and dividend_yield > 0:
        return dividend_yield * pl
    return 0.0


def parse_stock_table(html: str) -> list[RawStockRecord]:
    """Parse the Fundamentus stock result page into raw records."""
    records: list[RawStockRecord] = []
    for cells in _table_rows(html, "resultado"):
        ticker = _cell(cells, 0)
        if not ticker:
            continue
        values = {
            field: parse_br_number(_cell(cells, idx))
            for idx, field in _STOCK_COLUMNS.items()
        }
        values["payout"] = derive_payout(values["dividend_yield"], values["pl"])
        records.append(RawStockRecord(ticker=ticker, **values))
    return records


def parse_fund_table(html: str) -> list[RawFundRecord]:
    """Parse the Fundamentus fund result page into raw records."""
    records: list[RawFundRecord] = []
    for cells in _table_rows(html, "tabelaResultado"):
        ticker = _cell(cells, 0)
        if not ticker:
            continue
        values = {
            field: parse_br_number(_cell(cells, idx))
            for idx, field in _FUND_COLUMNS.items()
        }
        records.append(RawFundRecord(ticker=ticker, segment=_cell(cells, 1), **values))
    return records


class FundamentusStockAdapter(StockAdapter):
    """Primary stock source."""

    source_name = "fundamentus-stocks"

    def __init__(
        self,
        url: str = STOCKS_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self.url = url

    async def fetch_stocks(self) -> list[RawStockRecord]:
        async with build_async_client(self.timeout, self.transport) as client:
            html = await fetch_text(client, self.url, self.source_name)
        records = parse_stock_table(html)
        if not records:
            raise SourceUnavailableError(self.source_name, "result table missing or empty")
        logger.info("Fundamentus: %d stocks parsed", len(records))
        return records


class FundamentusFundAdapter(FundAdapter):
    """Primary fund source (FII, Fiagro and part of FI-Infra)."""

    source_name = "fundamentus-funds"

    def __init__(
        self,
        url: str = FUNDS_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self.url = url

    async def fetch_funds(self) -> list[RawFundRecord]:
        async with build_async_client(self.timeout, self.transport) as client:
            html = await fetch_text(client, self.url, self.source_name)
        records = parse_fund_table(html)
        if not records:
            raise SourceUnavailableError(self.source_name, "result table missing or empty")
        logger.info("Fundamentus: %d funds parsed", len(records))
        return records

"""
Fixed-income context for the dashboard: Tesouro Direto rows, private
benchmarks derived from the Selic, and the curated ETF list.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from b3_screener.ingestion.base import (
    DEFAULT_TIMEOUT_SECONDS,
    build_async_client,
    fetch_text,
)
from b3_screener.models.market import EtfEntry, PrivateBenchmark, TreasuryBond

logger = logging.getLogger(__name__)

TESOURO_URL = "https://investidor10.com.br/tesouro-direto/"

CDI_SPREAD = 0.10
LCI_CDI_SHARE = 0.90
SAVINGS_FIXED_RATE = 6.17
SAVINGS_SELIC_THRESHOLD = 8.5
SAVINGS_SELIC_SHARE = 0.70
PREFIXED_SPREAD = 1.5

CURATED_ETFS: tuple[EtfEntry, ...] = (
    EtfEntry(ticker="IVVB11", name="S&P 500 Brazilian ETF", etf_type="International"),
    EtfEntry(ticker="BOVA11", name="Ibovespa Index ETF", etf_type="Index"),
    EtfEntry(ticker="SMAL11", name="Small Caps ETF", etf_type="Small Caps"),
    EtfEntry(ticker="HASH11", name="Crypto Index ETF", etf_type="Crypto"),
    EtfEntry(ticker="DIVO11", name="High Dividend ETF", etf_type="Diversified"),
)

_RANK_CELL = re.compile(r"^\d+$")


def parse_treasury_table(html: str) -> list[TreasuryBond]:
    """Pick Tesouro bond rows out of every table on the page.

    Columns are name, rate, minimum investment, price, maturity. Some
    layouts prepend a rank column; rows whose first cell is a number (or
    too short to be a name) are shifted by one.
    """
    soup = BeautifulSoup(html, "html.parser")
    bonds: list[TreasuryBond] = []
    for tr in soup.select("table tr"):
        cells = [td.get_text(strip=True) for td in tr.find_all("td")]
        if not cells:
            continue
        if _RANK_CELL.match(cells[0]) or len(cells[0]) < 3:
            cells = cells[1:]
        cells = cells + [""] * (5 - len(cells))
        name, rate, min_invest, price, maturity = cells[:5]
        if "Tesouro" in name:
            bonds.append(
                TreasuryBond(
                    name=name, rate=rate, min_invest=min_invest,
                    price=price, maturity=maturity,
                )
            )
    return bonds


async def fetch_treasury_bonds(
    url: str = TESOURO_URL,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> list[TreasuryBond]:
    """Scrape Tesouro Direto rates. Raises ``SourceUnavailableError``."""
    async with build_async_client(timeout, transport) as client:
        html = await fetch_text(client, url, "tesouro-direto")
    bonds = parse_treasury_table(html)
    logger.info("Tesouro Direto: %d bonds parsed", len(bonds))
    return bonds


def build_private_benchmarks(selic: float) -> list[PrivateBenchmark]:
    """Reference private fixed-income rates for a given Selic.

    CDI is approximated as Selic − 0.10. Savings pays 6.17% + TR while the
    Selic is above 8.5%, otherwise 70% of the Selic + TR.
    """
    cdi = selic - CDI_SPREAD
    if selic > SAVINGS_SELIC_THRESHOLD:
        savings = SAVINGS_FIXED_RATE
    else:
        savings = selic * SAVINGS_SELIC_SHARE
    return [
        PrivateBenchmark(name="CDB 100% CDI", rate=f"{cdi:.2f}%", kind="Pós-fixado"),
        PrivateBenchmark(
            name="LCI/LCA 90% CDI", rate=f"{cdi * LCI_CDI_SHARE:.2f}%", kind="Isento IR"
        ),
        PrivateBenchmark(name="Poupança (Est.)", rate=f"{savings:.2f}% + TR", kind="Isento IR"),
        PrivateBenchmark(
            name="CDB Pré-fixado (Est.)", rate=f"{selic + PREFIXED_SPREAD:.2f}%", kind="Prefixado"
        ),
    ]


def list_etfs() -> list[EtfEntry]:
    """The curated ETF list shown on the dashboard."""
    return list(CURATED_ETFS)

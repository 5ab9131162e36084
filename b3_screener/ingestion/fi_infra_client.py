"""
Curated list of incentivised infrastructure funds (Law 12.431 FI-Infra).

Fundamentus does not list these funds, so they are carried as a static
snapshot taken from Investidor10. Liquidity and market cap are not published
alongside that snapshot; the fixed placeholders below keep them out of the
illiquid and micro-cap penalty bands. The enrichment pass refreshes price,
yield and P/B for any ticker it can reach.
"""

from __future__ import annotations

import logging

from b3_screener.ingestion.base import FundAdapter
from b3_screener.models.asset import RawFundRecord

logger = logging.getLogger(__name__)

INFRA_SEGMENT = "Infraestrutura"
PLACEHOLDER_LIQUIDITY = 1_000_000.0
PLACEHOLDER_MARKET_CAP = 500_000_000.0

# (ticker, price, dy, p_vp)
FI_INFRA_SNAPSHOT: tuple[tuple[str, float, float, float], ...] = (
    ("CDII11", 106.64, 16.29, 1.03),
    ("KDIF11", 127.29, 12.18, 1.01),
    ("JURO11", 103.04, 11.64, 1.02),
    ("IFRA11", 101.50, 11.57, 1.01),
    ("BDIF11", 76.45, 13.27, 0.92),
    ("CPTI11", 89.91, 13.50, 0.95),
    ("IFRI11", 103.75, 13.99, 0.99),
    ("BODB11", 8.02, 12.88, 0.93),
    ("BINC11", 102.50, 15.07, 0.98),
    ("JMBI11", 92.67, 15.24, 0.91),
    ("XPID11", 52.96, 13.20, 0.56),
    ("DIVS11", 104.06, 12.68, 1.04),
    ("BIDB11", 79.91, 16.21, 0.97),
    ("NUIF11", 94.50, 14.87, 0.94),
    ("RBIF11", 79.83, 14.20, 0.89),
    ("SNID11", 11.24, 12.89, 1.08),
    ("VANG11", 100.57, 11.93, 1.00),
)


class FiInfraAdapter(FundAdapter):
    """Secondary fund source serving the static FI-Infra snapshot."""

    source_name = "fi-infra-static"

    async def fetch_funds(self) -> list[RawFundRecord]:
        records = [
            RawFundRecord(
                ticker=ticker,
                segment=INFRA_SEGMENT,
                price=price,
                dy=dy,
                p_vp=p_vp,
                liquidity=PLACEHOLDER_LIQUIDITY,
                market_cap=PLACEHOLDER_MARKET_CAP,
            )
            for ticker, price, dy, p_vp in FI_INFRA_SNAPSHOT
        ]
        logger.debug("FI-Infra: %d static records", len(records))
        return records

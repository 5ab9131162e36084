"""
Brapi.dev stock adapter: failover when Fundamentus is down.

Two requests: ``/quote/list`` for the universe, then one batched
``/quote/{t1,t2,...}?fundamental=true`` for the first ``max_tickers``
symbols. Brapi reports yields, margins and ROE as fractions; they are
converted to percent to match the Fundamentus vocabulary. Several fields are
approximations (ROA for ROIC, EV/EBITDA for EV/EBIT, quarterly earnings
growth for 5y growth) because Brapi publishes nothing closer.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from b3_screener.ingestion.base import (
    DEFAULT_TIMEOUT_SECONDS,
    SourceUnavailableError,
    StockAdapter,
    build_async_client,
    fetch_json,
)
from b3_screener.models.asset import RawStockRecord
from b3_screener.utils.parsing import to_float

logger = logging.getLogger(__name__)

BASE_URL = "https://brapi.dev/api"
MAX_BATCH_TICKERS = 100


def _pct(value: Any) -> float:
    return to_float(value) * 100.0


def transform_quote(quote: dict[str, Any]) -> Optional[RawStockRecord]:
    """Map one Brapi ``results[]`` entry to a ``RawStockRecord``.

    Returns ``None`` when the entry has no symbol.
    """
    symbol = quote.get("symbol")
    if not symbol:
        return None
    profile = quote.get("summaryProfile") or {}
    return RawStockRecord(
        ticker=symbol,
        cotacao=quote.get("regularMarketPrice"),
        pl=profile.get("trailingPE"),
        p_vp=profile.get("priceToBook"),
        psr=profile.get("priceToSalesTrailing12Months"),
        dividend_yield=_pct(profile.get("dividendYield")),
        ev_ebit=profile.get("enterpriseToEbitda"),
        mrg_ebit=_pct(profile.get("ebitdaMargins")),
        mrg_liq=_pct(profile.get("profitMargins")),
        roic=profile.get("returnOnAssets"),
        roe=_pct(profile.get("returnOnEquity")),
        liq_2meses=quote.get("averageDailyVolume10Day"),
        div_br_patrim=profile.get("debtToEquity"),
        cresc_5a=_pct(profile.get("earningsQuarterlyGrowth")),
    )


class BrapiStockAdapter(StockAdapter):
    """Failover stock source backed by the Brapi REST API."""

    source_name = "brapi-stocks"

    def __init__(
        self,
        base_url: str = BASE_URL,
        token: Optional[str] = None,
        max_tickers: int = MAX_BATCH_TICKERS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.max_tickers = max_tickers

    def _params(self, **extra: str) -> dict[str, str]:
        params = dict(extra)
        if self.token:
            params["token"] = self.token
        return params

    async def fetch_stocks(self) -> list[RawStockRecord]:
        async with build_async_client(self.timeout, self.transport) as client:
            listing = await fetch_json(
                client, f"{self.base_url}/quote/list", self.source_name,
                params=self._params(),
            )
            symbols = [
                entry.get("stock") if isinstance(entry, dict) else entry
                for entry in (listing or {}).get("stocks", [])
            ]
            symbols = [s for s in symbols if s][: self.max_tickers]
            if not symbols:
                raise SourceUnavailableError(self.source_name, "empty ticker list")

            details = await fetch_json(
                client,
                f"{self.base_url}/quote/{','.join(symbols)}",
                self.source_name,
                params=self._params(fundamental="true"),
            )

        records = [
            record
            for record in (transform_quote(q) for q in (details or {}).get("results", []))
            if record is not None
        ]
        logger.info("Brapi: %d stocks parsed", len(records))
        return records

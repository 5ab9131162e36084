"""
Investidor10 client: the slow, authoritative per-ticker metadata probe.

One ticker can live under several site sections, so the client probes
candidate paths in order until one yields usable data:

    stocks (ticker not ending in "11")   acoes/{t}/
    funds  (ticker ending in "11")       fiis/{t}/  →  fiagros/{t}/  →  fi-infra/{t}/

From each page it reads:
  - the description list (``.desc``): last distribution, fund type,
    segment, mandate;
  - the first row of the dividend table (the table whose text mentions both
    "DATA COM" and "PAGAMENTO"): ex-date and payment date;
  - the valuation cards (``._card``): price, DY, P/B, daily liquidity and
    vacancy, with ``K``/``M``/``B`` magnitude suffixes.

A page counts as a hit when it yields a fund type, a positive price or an
ex-date. When every path misses, ``EnrichmentRecord.empty(ticker)`` is
returned; the probe itself never raises.

Bulk fetches go through ``fetch_many()``, a fixed pool of cooperative
workers pulling from an ``asyncio.Queue`` under a ``RateLimitPolicy``.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Iterable, Optional

import httpx
from bs4 import BeautifulSoup, Tag

from b3_screener.config import EnrichmentConfig
from b3_screener.ingestion.base import BROWSER_HEADERS, build_async_client
from b3_screener.models.asset import EnrichmentRecord
from b3_screener.models.market import DividendEvent
from b3_screener.utils.parsing import normalize_text, parse_br_number, parse_suffixed_number

logger = logging.getLogger(__name__)

BASE_URL = "https://investidor10.com.br"
PROBE_TIMEOUT_SECONDS = 10.0
HISTORY_TIMEOUT_SECONDS = 15.0
PROGRESS_EVERY = 10

_HEADERS: dict[str, str] = {
    **BROWSER_HEADERS,
    "Referer": "https://investidor10.com.br/",
    "Upgrade-Insecure-Requests": "1",
}

# normalized ``.desc .name`` label → EnrichmentRecord field
_DESC_FIELDS: dict[str, str] = {
    "ultimo rendimento": "last_dividend",
    "tipo de fundo": "fund_type",
    "segmento": "segment",
    "mandato": "mandate",
}

# EnrichmentRecord field → normalized card header label
_CARD_FIELDS: dict[str, str] = {
    "price": "cotacao",
    "dy": "dy",
    "p_vp": "p/vp",
    "liquidity": "liquidez diaria",
    "vacancy": "vacancia",
}

_QUIET_STATUSES = {403, 404}


@dataclass(frozen=True)
class RateLimitPolicy:
    """Politeness settings for bulk enrichment.

    Attributes:
        concurrency:     Number of cooperative workers.
        delay_seconds:   Sleep after each ticker while work remains.
        timeout_seconds: Upper bound for one ticker's whole probe sequence.
    """

    concurrency: int = 5
    delay_seconds: float = 0.15
    timeout_seconds: float = 12.0

    @classmethod
    def from_config(cls, cfg: EnrichmentConfig) -> "RateLimitPolicy":
        return cls(
            concurrency=cfg.concurrency,
            delay_seconds=cfg.delay_ms / 1000.0,
            timeout_seconds=cfg.timeout_seconds,
        )


def candidate_paths(ticker: str) -> list[str]:
    """Site sections to probe for ``ticker``, most likely first."""
    t = ticker.lower()
    if not ticker.upper().endswith("11"):
        return [f"acoes/{t}/"]
    return [f"fiis/{t}/", f"fiagros/{t}/", f"fi-infra/{t}/"]


# ── HTML parsing ──────────────────────────────────────────────────────────────

def _find_dividend_table(soup: BeautifulSoup) -> Optional[Tag]:
    for table in soup.find_all("table"):
        text = table.get_text(" ", strip=True).upper()
        if "DATA COM" in text and "PAGAMENTO" in text:
            return table
    return None


def _body_rows(table: Tag) -> list[list[str]]:
    body = table.find("tbody") or table
    rows = []
    for tr in body.find_all("tr"):
        cells = [td.get_text(strip=True) for td in tr.find_all("td")]
        if cells:
            rows.append(cells)
    return rows


def _card_value(soup: BeautifulSoup, label: str) -> float:
    for card in soup.select("._card"):
        header = card.select_one("._card-header span")
        if header is None or label not in normalize_text(header.get_text()):
            continue
        value = card.select_one("._card-body span.value") or card.select_one(
            "._card-body span"
        )
        if value is not None:
            return parse_suffixed_number(value.get_text(strip=True))
    return 0.0


def parse_metadata_page(ticker: str, html: str) -> EnrichmentRecord:
    """Extract an ``EnrichmentRecord`` from one Investidor10 asset page.

    Missing sections leave their fields at the empty defaults; the caller
    decides whether the page was a hit via ``EnrichmentRecord.is_empty``.
    """
    soup = BeautifulSoup(html, "html.parser")
    values: dict[str, object] = {"ticker": ticker}

    for desc in soup.select(".desc"):
        name = desc.select_one(".name")
        value = desc.select_one(".value span")
        if name is None or value is None:
            continue
        field = _DESC_FIELDS.get(normalize_text(name.get_text()))
        if field is None:
            continue
        text = value.get_text(strip=True)
        values[field] = parse_suffixed_number(text) if field == "last_dividend" else text

    table = _find_dividend_table(soup)
    if table is not None:
        rows = _body_rows(table)
        if rows and len(rows[0]) >= 3:
            values["data_com"] = rows[0][1]
            values["data_pagamento"] = rows[0][2]

    for field, label in _CARD_FIELDS.items():
        values[field] = _card_value(soup, label)

    return EnrichmentRecord(**values)


def parse_dividend_history(html: str) -> list[DividendEvent]:
    """Every dated row of the dividend table (type, ex-date, payment, value)."""
    soup = BeautifulSoup(html, "html.parser")
    table = _find_dividend_table(soup)
    if table is None:
        return []
    events: list[DividendEvent] = []
    for cells in _body_rows(table):
        if len(cells) < 4:
            continue
        data_com = cells[1]
        if not data_com or data_com == "-":
            continue
        events.append(
            DividendEvent(
                dividend_type=cells[0],
                data_com=data_com,
                data_pagamento=cells[2],
                value=parse_br_number(cells[3]),
            )
        )
    return events


# ── Client ────────────────────────────────────────────────────────────────────

class Investidor10Client:
    """Async scraper for Investidor10 asset pages.

    Args:
        base_url:  Site root (overridable for tests and mirrors).
        transport: Optional ``httpx`` transport (``MockTransport`` in tests).
    """

    def __init__(
        self,
        base_url: str = BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.transport = transport

    @asynccontextmanager
    async def _session(
        self, client: Optional[httpx.AsyncClient]
    ) -> AsyncIterator[httpx.AsyncClient]:
        if client is not None:
            yield client
            return
        async with build_async_client(
            PROBE_TIMEOUT_SECONDS, self.transport, headers=_HEADERS
        ) as own:
            yield own

    async def _get_page(
        self,
        client: httpx.AsyncClient,
        ticker: str,
        path: str,
        timeout: float,
    ) -> Optional[str]:
        url = f"{self.base_url}/{path}"
        try:
            resp = await client.get(url, timeout=timeout)
        except httpx.HTTPError as exc:
            logger.warning(
                "Investidor10: %s on %s failed: %s", ticker, path, exc, extra={"ticker": ticker}
            )
            return None
        if resp.status_code != 200:
            if resp.status_code in _QUIET_STATUSES:
                logger.debug("Investidor10: %s not under %s (%d)", ticker, path, resp.status_code)
            else:
                logger.warning(
                    "Investidor10: %s on %s returned HTTP %d", ticker, path, resp.status_code,
                    extra={"ticker": ticker},
                )
            return None
        return resp.text

    async def fetch_metadata(
        self,
        ticker: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> EnrichmentRecord:
        """Probe every candidate path for ``ticker`` and return the first hit."""
        ticker = ticker.upper()
        async with self._session(client) as session:
            for path in candidate_paths(ticker):
                html = await self._get_page(session, ticker, path, PROBE_TIMEOUT_SECONDS)
                if html is None:
                    continue
                record = parse_metadata_page(ticker, html)
                if not record.is_empty:
                    return record
                logger.debug("Investidor10: %s page %s had no usable data", ticker, path)
        return EnrichmentRecord.empty(ticker)

    async def fetch_dividend_history(
        self,
        ticker: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> list[DividendEvent]:
        """Full distribution history for ``ticker``; ``[]`` when nothing found."""
        ticker = ticker.upper()
        async with self._session(client) as session:
            for path in candidate_paths(ticker):
                html = await self._get_page(session, ticker, path, HISTORY_TIMEOUT_SECONDS)
                if html is None:
                    continue
                events = parse_dividend_history(html)
                if events:
                    return events
        return []

    async def fetch_many(
        self,
        tickers: Iterable[str],
        policy: Optional[RateLimitPolicy] = None,
    ) -> dict[str, EnrichmentRecord]:
        """Enrich many tickers through a bounded worker pool.

        Every requested ticker gets an entry in the result; a probe that
        times out or errors yields ``EnrichmentRecord.empty``.
        """
        policy = policy or RateLimitPolicy()
        unique = list(dict.fromkeys(t.upper() for t in tickers if t))
        results: dict[str, EnrichmentRecord] = {}
        if not unique:
            return results

        queue: asyncio.Queue[str] = asyncio.Queue()
        for ticker in unique:
            queue.put_nowait(ticker)
        total = len(unique)
        logger.info(
            "Investidor10: enriching %d tickers (concurrency=%d, delay=%.3fs)",
            total, policy.concurrency, policy.delay_seconds,
        )

        async def worker(client: httpx.AsyncClient) -> None:
            while True:
                try:
                    ticker = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    results[ticker] = await asyncio.wait_for(
                        self.fetch_metadata(ticker, client),
                        timeout=policy.timeout_seconds,
                    )
                except asyncio.TimeoutError:
                    logger.warning(
                        "Investidor10: %s timed out after %.1fs", ticker, policy.timeout_seconds,
                        extra={"ticker": ticker},
                    )
                    results[ticker] = EnrichmentRecord.empty(ticker)
                except Exception as exc:
                    logger.warning(
                        "Investidor10: %s failed: %s", ticker, exc, extra={"ticker": ticker}
                    )
                    results[ticker] = EnrichmentRecord.empty(ticker)

                done = len(results)
                if done % PROGRESS_EVERY == 0 or done == total:
                    logger.info("Investidor10: progress %d/%d", done, total)

                if not queue.empty() and policy.delay_seconds > 0:
                    await asyncio.sleep(policy.delay_seconds)

        async with self._session(None) as client:
            workers = [worker(client) for _ in range(min(policy.concurrency, total))]
            await asyncio.gather(*workers)

        return results

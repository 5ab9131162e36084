"""
Macro rate sources: Selic target rate (BCB SGS series 432) and USD/BRL.

Both lookups degrade to ``None`` on any failure. The orchestrator owns the
fallback benchmark rate; this module never invents a value.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from b3_screener.ingestion.base import (
    DEFAULT_TIMEOUT_SECONDS,
    SourceUnavailableError,
    build_async_client,
    fetch_json,
)
from b3_screener.models.market import EconomySnapshot
from b3_screener.utils.parsing import to_float

logger = logging.getLogger(__name__)

SELIC_URL = "https://api.bcb.gov.br/dados/serie/bcdata.sgs.432/dados/ultimos/1?formato=json"
DOLLAR_URL = "https://economia.awesomeapi.com.br/last/USD-BRL"


class EconomyClient:
    """Fetches the benchmark rate and the dollar quote."""

    def __init__(
        self,
        selic_url: str = SELIC_URL,
        dollar_url: str = DOLLAR_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.selic_url = selic_url
        self.dollar_url = dollar_url
        self.timeout = timeout
        self.transport = transport

    async def fetch_selic(self) -> Optional[float]:
        """Current Selic target in percent, or ``None`` if unavailable."""
        async with build_async_client(self.timeout, self.transport) as client:
            try:
                data = await fetch_json(client, self.selic_url, "bcb-selic")
            except SourceUnavailableError as exc:
                logger.warning("Selic unavailable: %s", exc)
                return None
        try:
            rate = to_float(data[0]["valor"])
        except (IndexError, KeyError, TypeError) as exc:
            logger.warning("Selic payload malformed: %r (%s)", data, exc)
            return None
        return rate if rate > 0 else None

    async def fetch_dollar(self) -> Optional[float]:
        """USD/BRL bid, or ``None`` if unavailable."""
        async with build_async_client(self.timeout, self.transport) as client:
            try:
                data = await fetch_json(client, self.dollar_url, "awesomeapi-usdbrl")
            except SourceUnavailableError as exc:
                logger.warning("USD/BRL unavailable: %s", exc)
                return None
        try:
            bid = to_float(data["USDBRL"]["bid"])
        except (KeyError, TypeError) as exc:
            logger.warning("USD/BRL payload malformed: %r (%s)", data, exc)
            return None
        return bid if bid > 0 else None

    async def fetch_snapshot(self) -> EconomySnapshot:
        dollar, selic = await asyncio.gather(self.fetch_dollar(), self.fetch_selic())
        return EconomySnapshot(dollar=dollar, selic=selic)

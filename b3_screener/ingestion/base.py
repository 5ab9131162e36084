"""
Shared HTTP plumbing and adapter contracts for every market-data source.

Adapters are async, one per provider and asset class. They either return a
list of validated raw records or raise ``SourceUnavailableError``; it is the
orchestrator's job to turn that error into an empty result so sibling
adapters keep running.

Every client accepts an optional ``httpx`` transport. Production code leaves
it ``None``; tests pass ``httpx.MockTransport`` to serve canned payloads.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional

import httpx

from b3_screener.models.asset import RawFundRecord, RawStockRecord

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0

BROWSER_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,*/*;q=0.8"
    ),
    "Accept-Language": "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7",
}


class SourceUnavailableError(RuntimeError):
    """A provider could not be reached, answered non-2xx, or sent garbage."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


def build_async_client(
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    headers: Optional[dict[str, str]] = None,
) -> httpx.AsyncClient:
    """Return an ``AsyncClient`` with browser-like headers and redirects on."""
    return httpx.AsyncClient(
        headers=headers or BROWSER_HEADERS,
        timeout=timeout,
        follow_redirects=True,
        transport=transport,
    )


async def fetch_text(
    client: httpx.AsyncClient,
    url: str,
    source: str,
    **kwargs: Any,
) -> str:
    """GET ``url`` and return the body, mapping every failure to
    ``SourceUnavailableError``."""
    try:
        resp = await client.get(url, **kwargs)
        resp.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SourceUnavailableError(
            source, f"HTTP {exc.response.status_code} from {url}"
        ) from exc
    except httpx.HTTPError as exc:
        raise SourceUnavailableError(source, f"request to {url} failed: {exc}") from exc
    return resp.text


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    source: str,
    **kwargs: Any,
) -> Any:
    """GET ``url`` and decode JSON, mapping every failure to
    ``SourceUnavailableError``."""
    try:
        resp = await client.get(url, **kwargs)
        resp.raise_for_status()
        return resp.json()
    except httpx.HTTPStatusError as exc:
        raise SourceUnavailableError(
            source, f"HTTP {exc.response.status_code} from {url}"
        ) from exc
    except httpx.HTTPError as exc:
        raise SourceUnavailableError(source, f"request to {url} failed: {exc}") from exc
    except ValueError as exc:
        raise SourceUnavailableError(source, f"invalid JSON from {url}") from exc


# ── Adapter contracts ─────────────────────────────────────────────────────────

class StockAdapter(ABC):
    """A provider that lists every stock with its fundamentals."""

    source_name: ClassVar[str]

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.transport = transport

    @abstractmethod
    async def fetch_stocks(self) -> list[RawStockRecord]:
        """Return all stocks, or raise ``SourceUnavailableError``."""


class FundAdapter(ABC):
    """A provider that lists real-estate / agro / infra funds."""

    source_name: ClassVar[str]

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.transport = transport

    @abstractmethod
    async def fetch_funds(self) -> list[RawFundRecord]:
        """Return all funds, or raise ``SourceUnavailableError``."""

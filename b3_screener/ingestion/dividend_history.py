"""
On-disk dividend history cache: one ``{TICKER}.json`` per ticker.

File shape::

    {"ticker": "HGLG11", "updatedAt": "2026-01-05T12:00:00+00:00",
     "history": [{"type": "Dividendos", "data_com": "...", ...}, ...]}

A file is fresh while its modification time is younger than
``cache_hours``; fresh files are not re-fetched unless ``force`` is set.
The cache is advisory. A missing or stale file is simply re-fetched.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from b3_screener.ingestion.investidor10_client import Investidor10Client
from b3_screener.models.market import DividendEvent

logger = logging.getLogger(__name__)

DEFAULT_CACHE_HOURS = 24.0


@dataclass
class BackfillResult:
    """Outcome of one ``DividendHistoryStore.backfill`` call.

    Attributes:
        written: Tickers whose history file was (re)written.
        skipped: Tickers left alone because their file was fresh.
        empty:   Tickers for which the source returned no history.
    """

    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    empty:   list[str] = field(default_factory=list)


class DividendHistoryStore:
    """Reads and writes per-ticker dividend history files.

    Args:
        history_dir: Directory holding the ``{TICKER}.json`` files.
        client:      Investidor10 client used for backfills.
        cache_hours: Freshness window.
        delay_seconds: Pause between consecutive fetches during backfill.
    """

    def __init__(
        self,
        history_dir: Path,
        client: Optional[Investidor10Client] = None,
        cache_hours: float = DEFAULT_CACHE_HOURS,
        delay_seconds: float = 0.0,
    ) -> None:
        self.history_dir = Path(history_dir)
        self.client = client or Investidor10Client()
        self.cache_hours = cache_hours
        self.delay_seconds = delay_seconds

    def path_for(self, ticker: str) -> Path:
        return self.history_dir / f"{ticker.upper()}.json"

    def is_fresh(self, ticker: str, now: Optional[float] = None) -> bool:
        """True when the ticker's file exists and is younger than ``cache_hours``."""
        path = self.path_for(ticker)
        if not path.exists():
            return False
        age_hours = ((now or time.time()) - path.stat().st_mtime) / 3600.0
        return age_hours < self.cache_hours

    def save(self, ticker: str, events: list[DividendEvent]) -> Path:
        path = self.path_for(ticker)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "ticker": ticker.upper(),
            "updatedAt": datetime.now(tz=timezone.utc).isoformat(),
            "history": [e.model_dump(by_alias=True) for e in events],
        }
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    def load(self, ticker: str) -> list[DividendEvent]:
        """Cached events for ``ticker``; ``[]`` when no file exists."""
        path = self.path_for(ticker)
        if not path.exists():
            return []
        data = json.loads(path.read_text(encoding="utf-8"))
        return [DividendEvent.model_validate(row) for row in data.get("history", [])]

    async def backfill(self, tickers: Iterable[str], force: bool = False) -> BackfillResult:
        """Fetch and persist history for every stale (or, with ``force``, every) ticker."""
        result = BackfillResult()
        pending = list(dict.fromkeys(t.upper() for t in tickers if t))
        for i, ticker in enumerate(pending):
            if not force and self.is_fresh(ticker):
                logger.debug("Dividend history for %s is fresh; skipping", ticker)
                result.skipped.append(ticker)
                continue

            events = await self.client.fetch_dividend_history(ticker)
            if events:
                self.save(ticker, events)
                result.written.append(ticker)
                logger.info("Saved %d dividend events for %s", len(events), ticker)
            else:
                result.empty.append(ticker)
                logger.warning("No dividend history found for %s", ticker)

            if self.delay_seconds > 0 and i < len(pending) - 1:
                await asyncio.sleep(self.delay_seconds)
        return result

"""
Tests for b3_screener/ingestion/dividend_history.py.

What we test
------------
  - save → load keeps the dashboard ``type`` key and values.
  - Freshness window based on file mtime.
  - Backfill skips fresh files, rewrites with ``force``, reports empties.
"""

from __future__ import annotations

import asyncio
import json
import os
import time
from unittest.mock import AsyncMock

from b3_screener.ingestion.dividend_history import DividendHistoryStore
from b3_screener.models.market import DividendEvent

_EVENTS = [
    DividendEvent(dividend_type="Dividendos", data_com="31/01/2026", data_pagamento="14/02/2026", value=1.1),
    DividendEvent(dividend_type="Dividendos", data_com="30/12/2025", data_pagamento="14/01/2026", value=1.05),
]


def _store(tmp_path, histories: dict[str, list[DividendEvent]]) -> DividendHistoryStore:
    client = AsyncMock()
    client.fetch_dividend_history.side_effect = lambda t: histories.get(t, [])
    return DividendHistoryStore(tmp_path / "dividends", client=client, cache_hours=24)


class TestStoreFiles:
    def test_save_and_load(self, tmp_path):
        store = _store(tmp_path, {})
        path = store.save("hglg11", _EVENTS)
        assert path.name == "HGLG11.json"
        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw["ticker"] == "HGLG11"
        assert raw["history"][0]["type"] == "Dividendos"
        assert "updatedAt" in raw
        assert store.load("HGLG11") == _EVENTS

    def test_load_missing(self, tmp_path):
        assert _store(tmp_path, {}).load("NONE11") == []

    def test_freshness(self, tmp_path):
        store = _store(tmp_path, {})
        assert not store.is_fresh("HGLG11")
        path = store.save("HGLG11", _EVENTS)
        assert store.is_fresh("HGLG11")
        old = time.time() - 48 * 3600
        os.utime(path, (old, old))
        assert not store.is_fresh("HGLG11")


class TestBackfill:
    def test_skips_fresh_and_reports_empty(self, tmp_path):
        store = _store(tmp_path, {"HGLG11": _EVENTS, "KNRI11": _EVENTS})
        store.save("KNRI11", _EVENTS)
        result = asyncio.run(store.backfill(["hglg11", "KNRI11", "NONE11", "HGLG11"]))
        assert result.written == ["HGLG11"]
        assert result.skipped == ["KNRI11"]
        assert result.empty == ["NONE11"]
        assert store.client.fetch_dividend_history.await_count == 2

    def test_force_refetches_fresh(self, tmp_path):
        store = _store(tmp_path, {"KNRI11": _EVENTS})
        store.save("KNRI11", _EVENTS[:1])
        result = asyncio.run(store.backfill(["KNRI11"], force=True))
        assert result.written == ["KNRI11"]
        assert len(store.load("KNRI11")) == 2

"""
Dashboard snapshot and dated run history.

The dashboard is a static HTML page opened straight from disk, so the
snapshot is written as a script that assigns a global instead of a JSON file
(no fetch, no CORS)::

    window.INVEST_DATA = {"updatedAt": ..., "economy": {...}, "stocks": [...],
                          "fiis": [...], "etfs": [...],
                          "fixedIncome": {"tesouro": [...], "private": [...]}};

The snapshot is written to a sibling temp file and renamed over the target,
so a reader never sees a half-written file.

Run history files live in ``history_dir`` as
``{YYYY-MM-DD}-{type}-results.json`` with ``{date, count, economy, type, items}``.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from pydantic import BaseModel

from b3_screener.models.asset import ScoredFund, ScoredStock
from b3_screener.models.market import EconomySnapshot, EtfEntry, PrivateBenchmark, TreasuryBond

logger = logging.getLogger(__name__)

SNAPSHOT_GLOBAL = "window.INVEST_DATA"
HISTORY_SUFFIX = "-results.json"


def _dump(models: Iterable[BaseModel]) -> list[dict[str, Any]]:
    return [m.model_dump(mode="json", by_alias=True) for m in models]


def build_snapshot_payload(
    economy: EconomySnapshot,
    stocks: Sequence[ScoredStock],
    funds: Sequence[ScoredFund],
    etfs: Sequence[EtfEntry] = (),
    treasury: Sequence[TreasuryBond] = (),
    private: Sequence[PrivateBenchmark] = (),
    updated_at: Optional[datetime] = None,
) -> dict[str, Any]:
    """Assemble the dashboard payload from typed records."""
    stamp = updated_at or datetime.now(tz=timezone.utc)
    return {
        "updatedAt": stamp.isoformat(),
        "economy": economy.model_dump(mode="json"),
        "stocks": _dump(stocks),
        "fiis": _dump(funds),
        "etfs": _dump(etfs),
        "fixedIncome": {
            "tesouro": _dump(treasury),
            "private": _dump(private),
        },
    }


def render_snapshot(payload: dict[str, Any]) -> str:
    return f"{SNAPSHOT_GLOBAL} = {json.dumps(payload, indent=2, ensure_ascii=False)};\n"


def write_data_snapshot(payload: dict[str, Any], path: Path) -> Path:
    """Write ``payload`` as a browser-loadable script, atomically.

    Returns:
        ``path`` as written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(render_snapshot(payload), encoding="utf-8")
    os.replace(tmp, path)
    logger.info("Snapshot written to %s", path)
    return path


def read_data_snapshot(path: Path) -> dict[str, Any]:
    """Parse a snapshot written by ``write_data_snapshot`` back into a dict."""
    text = Path(path).read_text(encoding="utf-8").strip()
    prefix = f"{SNAPSHOT_GLOBAL} ="
    if not text.startswith(prefix):
        raise ValueError(f"{path} is not a dashboard snapshot.")
    return json.loads(text[len(prefix):].rstrip(";").strip())


def save_history(
    items: Sequence[BaseModel],
    asset_type: str,
    economy: Optional[EconomySnapshot],
    history_dir: Path,
    now: Optional[datetime] = None,
) -> Path:
    """Write one dated run file; a second run on the same day overwrites it."""
    stamp = now or datetime.now(tz=timezone.utc)
    history_dir = Path(history_dir)
    history_dir.mkdir(parents=True, exist_ok=True)
    path = history_dir / f"{stamp.date().isoformat()}-{asset_type}{HISTORY_SUFFIX}"
    data = {
        "date": stamp.isoformat(),
        "count": len(items),
        "economy": economy.model_dump(mode="json") if economy is not None else None,
        "type": asset_type,
        "items": _dump(items),
    }
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def list_history_files(history_dir: Path) -> list[Path]:
    """Dated run files in ``history_dir``, newest first. Per-ticker dividend
    files are ignored."""
    history_dir = Path(history_dir)
    if not history_dir.is_dir():
        return []
    files = [p for p in history_dir.iterdir() if p.is_file() and p.name.endswith(HISTORY_SUFFIX)]
    return sorted(files, key=lambda p: p.name, reverse=True)

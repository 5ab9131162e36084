"""
Full dashboard export: screening + market context → ``data.js``.

``SnapshotExportRun`` runs the reconciliation orchestrator for both asset
classes and gathers treasury rates concurrently, then writes the snapshot.

Total data loss guard
---------------------
If the run ends with zero stocks AND zero funds, the previous snapshot is
left untouched and the run reports ``status="failed"``. An empty snapshot
would otherwise silently replace the last good one.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable, Optional

from b3_screener.config import AppConfig
from b3_screener.ingestion.fixed_income import (
    build_private_benchmarks,
    fetch_treasury_bonds,
    list_etfs,
)
from b3_screener.models.market import TreasuryBond
from b3_screener.pipeline.orchestrator import ReconciliationOrchestrator, ScreeningResult
from b3_screener.reporting.snapshot import (
    build_snapshot_payload,
    save_history,
    write_data_snapshot,
)

logger = logging.getLogger(__name__)

TreasuryFetcher = Callable[[], Awaitable[list[TreasuryBond]]]


@dataclass
class ExportResult:
    """Outcome of one snapshot export.

    Attributes:
        status:         "success", "partial", or "failed".
        snapshot_path:  Path written, or None when the snapshot was not touched.
        history_files:  Dated history files written (when requested).
        stock_count:    Stocks in the snapshot.
        fund_count:     Funds in the snapshot.
        errors:         Accumulated error messages.
        screening:      The underlying orchestrator result.
    """

    status:        str                       = "started"
    snapshot_path: Optional[Path]            = None
    history_files: list[Path]                = field(default_factory=list)
    stock_count:   int                       = 0
    fund_count:    int                       = 0
    errors:        list[str]                 = field(default_factory=list)
    screening:     Optional[ScreeningResult] = None


class SnapshotExportRun:
    """Builds and writes the dashboard snapshot.

    Args:
        config:        AppConfig for this run.
        orchestrator:  Reconciliation orchestrator (defaults from config).
        treasury_fetcher: Coroutine factory returning Tesouro bonds.
        snapshot_path: Override of ``config.output.snapshot_path``.
    """

    def __init__(
        self,
        config: AppConfig,
        orchestrator: Optional[ReconciliationOrchestrator] = None,
        treasury_fetcher: Optional[TreasuryFetcher] = None,
        snapshot_path: Optional[Path] = None,
    ) -> None:
        self.config = config
        self.orchestrator = orchestrator or ReconciliationOrchestrator(config)
        self.treasury_fetcher = treasury_fetcher or self._default_treasury_fetcher
        self.snapshot_path = Path(snapshot_path or config.output.snapshot_path)

    async def _default_treasury_fetcher(self) -> list[TreasuryBond]:
        return await fetch_treasury_bonds(
            url=f"{self.config.sources.investidor10_base_url.rstrip('/')}/tesouro-direto/",
            timeout=self.config.sources.http_timeout_seconds,
        )

    async def _fetch_treasury(self, result: ExportResult) -> list[TreasuryBond]:
        try:
            return await self.treasury_fetcher()
        except Exception as exc:
            result.errors.append(f"tesouro-direto: {exc}")
            logger.warning("Tesouro Direto unavailable: %s", exc)
            return []

    def run_sync(self, save_history_files: bool = False) -> ExportResult:
        return asyncio.run(self.run(save_history_files=save_history_files))

    async def run(self, save_history_files: bool = False) -> ExportResult:
        """Screen everything and write the snapshot unless nothing was found."""
        result = ExportResult()
        screening, treasury = await asyncio.gather(
            self.orchestrator.run(include_stocks=True, include_funds=True),
            self._fetch_treasury(result),
        )
        result.screening = screening
        result.errors = screening.errors + result.errors
        result.stock_count = len(screening.stocks)
        result.fund_count = len(screening.funds)

        if screening.is_empty:
            result.status = "failed"
            result.errors.append("no stocks and no funds discovered; snapshot not written")
            logger.error(
                "Refusing to overwrite %s with empty data", self.snapshot_path
            )
            return result

        payload = build_snapshot_payload(
            economy=screening.economy,
            stocks=screening.stocks,
            funds=screening.funds,
            etfs=list_etfs(),
            treasury=treasury,
            private=build_private_benchmarks(screening.benchmark_rate),
            updated_at=screening.finished_at or datetime.now(tz=timezone.utc),
        )
        result.snapshot_path = write_data_snapshot(payload, self.snapshot_path)

        if save_history_files:
            history_dir = Path(self.config.output.history_dir)
            for asset_type, items in (("stock", screening.stocks), ("fii", screening.funds)):
                result.history_files.append(
                    save_history(items, asset_type, screening.economy, history_dir)
                )

        result.status = "partial" if result.errors else "success"
        logger.info(
            "Export %s | %d stocks, %d funds -> %s",
            result.status, result.stock_count, result.fund_count, result.snapshot_path,
        )
        return result

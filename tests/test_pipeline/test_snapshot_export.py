"""
Tests for b3_screener/pipeline/export.py.

What we test
------------
  - Zero stocks and zero funds → existing snapshot untouched, status failed.
  - Normal run writes the snapshot with every dashboard section.
  - Treasury failure is recorded but does not block the export (partial).
  - History files written on request, one per asset class.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from b3_screener.models.asset import ScoredFund, ScoredStock
from b3_screener.models.market import EconomySnapshot, TreasuryBond
from b3_screener.pipeline.export import SnapshotExportRun
from b3_screener.pipeline.orchestrator import ScreeningResult
from b3_screener.reporting.snapshot import read_data_snapshot
from b3_screener.taxonomy.asset_taxonomy import DisplayCategory, FundType


def _screening(stocks=(), funds=(), errors=()) -> ScreeningResult:
    return ScreeningResult(
        economy=EconomySnapshot(dollar=5.3, selic=14.25),
        benchmark_rate=14.25,
        stocks=list(stocks),
        funds=list(funds),
        errors=list(errors),
        status="success" if (stocks or funds) else "failed",
    )


def _orchestrator(screening: ScreeningResult) -> MagicMock:
    orchestrator = MagicMock()
    orchestrator.run = AsyncMock(return_value=screening)
    return orchestrator


def _stock() -> ScoredStock:
    return ScoredStock(
        ticker="BBAS3", liq_2meses=5e7, selic=14.25, score=9, category=DisplayCategory.STAR
    )


def _fund() -> ScoredFund:
    return ScoredFund(
        ticker="KNCR11", fund_type=FundType.PAPEL, score=8.0,
        category=DisplayCategory.OPPORTUNITY, selic=14.25,
        magic_number=96, magic_cost=9_984.0,
    )


async def _bonds() -> list[TreasuryBond]:
    return [TreasuryBond(name="Tesouro Selic 2029", rate="SELIC + 0,08%")]


class TestTotalDataLossGuard:
    def test_empty_run_keeps_previous_snapshot(self, app_config, tmp_path):
        target = tmp_path / "data.js"
        target.write_text("window.INVEST_DATA = {\"stocks\": [1]};\n", encoding="utf-8")
        before = target.read_bytes()

        run = SnapshotExportRun(
            app_config,
            orchestrator=_orchestrator(_screening(errors=["fundamentus-stocks: down"])),
            treasury_fetcher=_bonds,
        )
        result = run.run_sync()

        assert result.status == "failed"
        assert result.snapshot_path is None
        assert target.read_bytes() == before
        assert any("snapshot not written" in e for e in result.errors)

    def test_empty_run_writes_no_history(self, app_config, tmp_path):
        run = SnapshotExportRun(
            app_config, orchestrator=_orchestrator(_screening()), treasury_fetcher=_bonds
        )
        result = run.run_sync(save_history_files=True)
        assert result.history_files == []
        assert not (tmp_path / "data.js").exists()


class TestExport:
    def test_writes_all_sections(self, app_config, tmp_path):
        run = SnapshotExportRun(
            app_config,
            orchestrator=_orchestrator(_screening([_stock()], [_fund()])),
            treasury_fetcher=_bonds,
        )
        result = run.run_sync()

        assert result.status == "success"
        assert result.snapshot_path == tmp_path / "data.js"
        data = read_data_snapshot(result.snapshot_path)
        assert [s["ticker"] for s in data["stocks"]] == ["BBAS3"]
        assert data["fiis"][0]["type"] == "PAPEL"
        assert data["economy"] == {"dollar": 5.3, "selic": 14.25}
        assert len(data["etfs"]) == 5
        assert data["fixedIncome"]["tesouro"][0]["name"] == "Tesouro Selic 2029"
        assert data["fixedIncome"]["private"][0]["rate"] == "14.15%"

    def test_treasury_failure_is_partial(self, app_config):
        async def broken():
            raise RuntimeError("tesouro layout changed")

        run = SnapshotExportRun(
            app_config,
            orchestrator=_orchestrator(_screening([_stock()])),
            treasury_fetcher=broken,
        )
        result = run.run_sync()
        assert result.status == "partial"
        assert result.errors == ["tesouro-direto: tesouro layout changed"]
        assert read_data_snapshot(result.snapshot_path)["fixedIncome"]["tesouro"] == []

    def test_history_files(self, app_config, tmp_path):
        run = SnapshotExportRun(
            app_config,
            orchestrator=_orchestrator(_screening([_stock()], [_fund()])),
            treasury_fetcher=_bonds,
        )
        result = run.run_sync(save_history_files=True)
        names = sorted(p.name for p in result.history_files)
        assert len(names) == 2
        assert names[0].endswith("-fii-results.json")
        assert names[1].endswith("-stock-results.json")
        assert all(p.parent == tmp_path / "history" for p in result.history_files)

    def test_snapshot_path_override(self, app_config, tmp_path):
        target = tmp_path / "site" / "data.js"
        run = SnapshotExportRun(
            app_config,
            orchestrator=_orchestrator(_screening([_stock()])),
            treasury_fetcher=_bonds,
            snapshot_path=target,
        )
        assert run.run_sync().snapshot_path == target
        assert target.exists()

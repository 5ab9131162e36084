"""
Tests for b3_screener/pipeline/screener.py.

What we test
------------
Builder validation (before any I/O):
  - Invalid asset type raises ScreenerConfigError with the exact message.
  - Non-list excluded strategies raise ScreenerConfigError.
  - Setters chain and accumulate.
Filtering:
  - Inclusive bounds on liquidity, yield, P/B, debt and score.
  - Exclusion by strategy tag, and by category for untagged items.
Execution:
  - Asset type selects which asset class the orchestrator runs.
  - ``save()`` writes a dated history file with the attached economy.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from b3_screener.models.asset import ScoredFund, ScoredStock
from b3_screener.models.market import EconomySnapshot
from b3_screener.pipeline.orchestrator import ScreeningResult
from b3_screener.pipeline.screener import (
    Screener,
    ScreenerConfig,
    ScreenerConfigError,
    apply_filters,
)
from b3_screener.taxonomy.asset_taxonomy import (
    AssetType,
    DisplayCategory,
    FundStrategy,
    FundType,
    StockStrategy,
)


def _stock(ticker: str, **overrides) -> ScoredStock:
    fields = dict(
        ticker=ticker, liq_2meses=1_000_000, dividend_yield=8.0, p_vp=1.0,
        div_br_patrim=0.5, selic=10.0, score=7, category=DisplayCategory.STAR,
        strategies=(StockStrategy.VALUE,),
    )
    fields.update(overrides)
    return ScoredStock(**fields)


def _fund(ticker: str, **overrides) -> ScoredFund:
    fields = dict(
        ticker=ticker, liquidity=2_000_000, dy=11.0, p_vp=0.95,
        fund_type=FundType.PAPEL, score=8.0, category=DisplayCategory.STAR,
        selic=10.0, magic_number=110, magic_cost=11_000.0,
    )
    fields.update(overrides)
    return ScoredFund(**fields)


def _screener(app_config, stocks=(), funds=()) -> tuple[Screener, MagicMock]:
    orchestrator = MagicMock()
    orchestrator.run = AsyncMock(
        return_value=ScreeningResult(
            economy=EconomySnapshot(dollar=5.1, selic=14.25),
            stocks=list(stocks),
            funds=list(funds),
            status="success",
        )
    )
    factory = MagicMock(return_value=orchestrator)
    return Screener(app_config, orchestrator_factory=factory), orchestrator


# ── Builder validation ────────────────────────────────────────────────────────

class TestBuilder:
    def test_invalid_asset_type(self):
        with pytest.raises(ScreenerConfigError, match='Invalid asset type. Use "stock" or "fii".'):
            Screener().asset_type("bond")

    def test_asset_type_case_insensitive(self):
        assert Screener().asset_type(" FII ").config.asset_type == AssetType.FII

    @pytest.mark.parametrize("bad", ["DISTRESSED_RISK", None, {"VALUE"}])
    def test_exclusions_must_be_list(self, bad):
        with pytest.raises(ScreenerConfigError):
            Screener().exclude_strategies(bad)

    def test_chaining(self):
        screener = (
            Screener()
            .asset_type("stock")
            .min_liquidity(500_000)
            .min_yield(6)
            .max_p_vp(1.5)
            .min_p_vp(0.5)
            .max_debt_eq(1)
            .min_score(5)
            .exclude_strategies(["turnaround"])
            .save()
            .set_economy(5.2, 14.25)
        )
        cfg = screener.config
        assert cfg.min_liquidity == 500_000
        assert cfg.max_p_vp == 1.5
        assert cfg.excluded_strategies == ("TURNAROUND",)
        assert cfg.save is True
        assert cfg.economy == EconomySnapshot(dollar=5.2, selic=14.25)

    def test_screener_error_is_value_error(self):
        assert issubclass(ScreenerConfigError, ValueError)


# ── Filtering ─────────────────────────────────────────────────────────────────

class TestApplyFilters:
    def test_bounds_inclusive(self):
        cfg = ScreenerConfig(min_liquidity=1_000_000, min_yield=8.0, max_p_vp=1.0, min_score=7)
        assert apply_filters([_stock("EDGE3")], cfg) == [_stock("EDGE3")]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"liq_2meses": 499_999},
            {"dividend_yield": 5.0},
            {"p_vp": 2.0},
            {"p_vp": 0.2},
            {"div_br_patrim": 3.0},
            {"score": 2},
        ],
    )
    def test_each_bound_excludes(self, overrides):
        cfg = ScreenerConfig(
            min_liquidity=500_000, min_yield=6, max_p_vp=1.5, min_p_vp=0.5,
            max_debt_eq=2, min_score=5,
        )
        assert apply_filters([_stock("X3", **overrides)], cfg) == []

    def test_fund_fields(self):
        cfg = ScreenerConfig(asset_type=AssetType.FII, min_liquidity=1_000_000, min_yield=10)
        kept = apply_filters([_fund("GOOD11"), _fund("THIN11", liquidity=10_000)], cfg)
        assert [f.ticker for f in kept] == ["GOOD11"]

    def test_exclude_by_tag(self):
        cfg = ScreenerConfig(excluded_strategies=("DISTRESSED_RISK",))
        funds = [
            _fund("RISK11", strategies=(FundStrategy.DISTRESSED_RISK,)),
            _fund("SAFE11", strategies=(FundStrategy.PAPEL_CARRY,)),
        ]
        assert [f.ticker for f in apply_filters(funds, cfg)] == ["SAFE11"]

    def test_exclude_by_category_when_untagged(self):
        cfg = ScreenerConfig(excluded_strategies=("STANDARD",))
        funds = [_fund("PLAIN11", category=DisplayCategory.STANDARD), _fund("TOP11")]
        assert [f.ticker for f in apply_filters(funds, cfg)] == ["TOP11"]

    def test_order_preserved(self):
        stocks = [_stock("B3"), _stock("A3")]
        assert [s.ticker for s in apply_filters(stocks, ScreenerConfig())] == ["B3", "A3"]


# ── Execution ─────────────────────────────────────────────────────────────────

class TestRun:
    def test_stock_run(self, app_config):
        screener, orchestrator = _screener(app_config, stocks=[_stock("BBAS3")])
        result = screener.min_yield(5).run()
        assert [s.ticker for s in result] == ["BBAS3"]
        orchestrator.run.assert_awaited_once_with(include_stocks=True, include_funds=False)

    def test_fund_run(self, app_config):
        screener, orchestrator = _screener(app_config, funds=[_fund("KNCR11")])
        result = screener.asset_type("fii").run()
        assert [f.ticker for f in result] == ["KNCR11"]
        orchestrator.run.assert_awaited_once_with(include_stocks=False, include_funds=True)

    def test_save_writes_history(self, app_config, tmp_path):
        screener, _ = _screener(app_config, funds=[_fund("KNCR11")])
        screener.asset_type("fii").save().set_economy(5.0, 13.0).run()
        [path] = list((tmp_path / "history").glob("*-fii-results.json"))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["type"] == "fii"
        assert data["count"] == 1
        assert data["economy"] == {"dollar": 5.0, "selic": 13.0}
        assert data["items"][0]["type"] == "PAPEL"

    def test_save_uses_run_economy_by_default(self, app_config, tmp_path):
        screener, _ = _screener(app_config, stocks=[_stock("BBAS3")])
        screener.save().run()
        [path] = list((tmp_path / "history").glob("*-stock-results.json"))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["economy"]["selic"] == 14.25

    def test_no_save_writes_nothing(self, app_config, tmp_path):
        screener, _ = _screener(app_config, stocks=[_stock("BBAS3")])
        screener.run()
        assert not (tmp_path / "history").exists()

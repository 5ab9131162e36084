"""
Fluent screener builder for ad-hoc filtering runs.

Usage::

    results = (
        Screener(config)
        .asset_type("fii")
        .min_liquidity(1_000_000)
        .min_yield(9)
        .exclude_strategies(["DISTRESSED_RISK"])
        .save()
        .run()
    )

Every setter validates immediately, so a bad asset type or a non-list
``exclude_strategies`` argument raises ``ScreenerConfigError`` before any
network request is made.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict

from b3_screener.config import AppConfig
from b3_screener.models.asset import ScoredFund, ScoredStock
from b3_screener.models.market import EconomySnapshot
from b3_screener.pipeline.orchestrator import ReconciliationOrchestrator
from b3_screener.reporting.snapshot import save_history
from b3_screener.taxonomy.asset_taxonomy import AssetType

logger = logging.getLogger(__name__)

ScoredAsset = Union[ScoredStock, ScoredFund]


class ScreenerConfigError(ValueError):
    """Invalid screener option, raised before any I/O."""


class ScreenerConfig(BaseModel):
    """Filter options for one screener run (all bounds inclusive)."""

    model_config = ConfigDict(frozen=True)

    asset_type: AssetType = AssetType.STOCK
    min_liquidity: float = 0.0
    min_yield: float = 0.0
    max_p_vp: float = 999.0
    min_p_vp: float = 0.0
    excluded_strategies: tuple[str, ...] = ()
    min_score: float = 0.0
    max_debt_eq: float = 999.0
    save: bool = False
    economy: Optional[EconomySnapshot] = None


def _liquidity(item: ScoredAsset) -> float:
    return item.liq_2meses if isinstance(item, ScoredStock) else item.liquidity


def _yield(item: ScoredAsset) -> float:
    return item.dividend_yield if isinstance(item, ScoredStock) else item.dy


def _tags(item: ScoredAsset) -> list[str]:
    tags = [str(s) for s in item.strategies]
    if not tags and item.category is not None:
        tags = [str(item.category)]
    return tags


def apply_filters(items: list[ScoredAsset], cfg: ScreenerConfig) -> list[ScoredAsset]:
    """Keep the items that satisfy every bound in ``cfg``. Order is preserved."""
    excluded = set(cfg.excluded_strategies)
    kept: list[ScoredAsset] = []
    for item in items:
        if _liquidity(item) < cfg.min_liquidity:
            continue
        if _yield(item) < cfg.min_yield:
            continue
        if item.p_vp > cfg.max_p_vp or item.p_vp < cfg.min_p_vp:
            continue
        if isinstance(item, ScoredStock) and item.div_br_patrim > cfg.max_debt_eq:
            continue
        if item.score < cfg.min_score:
            continue
        if excluded and excluded.intersection(_tags(item)):
            continue
        kept.append(item)
    return kept


class Screener:
    """Builder over ``ScreenerConfig`` that runs the orchestrator and filters.

    Args:
        config:               Application config (thresholds, output paths).
        orchestrator_factory: Builds the orchestrator; tests pass a fake.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        orchestrator_factory: Optional[Callable[[AppConfig], ReconciliationOrchestrator]] = None,
    ) -> None:
        self.app_config = config or AppConfig()
        self._factory = orchestrator_factory or ReconciliationOrchestrator
        self.config = ScreenerConfig()

    def _update(self, **changes: Any) -> "Screener":
        self.config = self.config.model_copy(update=changes)
        return self

    # ── Builder methods ───────────────────────────────────────────────────────

    def asset_type(self, value: str) -> "Screener":
        normalized = str(value or "").strip().lower()
        try:
            kind = AssetType(normalized)
        except ValueError:
            raise ScreenerConfigError('Invalid asset type. Use "stock" or "fii".') from None
        return self._update(asset_type=kind)

    def min_liquidity(self, value: float) -> "Screener":
        return self._update(min_liquidity=float(value))

    def min_yield(self, value: float) -> "Screener":
        return self._update(min_yield=float(value))

    def max_p_vp(self, value: float) -> "Screener":
        return self._update(max_p_vp=float(value))

    def min_p_vp(self, value: float) -> "Screener":
        return self._update(min_p_vp=float(value))

    def max_debt_eq(self, value: float) -> "Screener":
        return self._update(max_debt_eq=float(value))

    def min_score(self, value: float) -> "Screener":
        return self._update(min_score=float(value))

    def exclude_strategies(self, strategies: list[str]) -> "Screener":
        if not isinstance(strategies, (list, tuple)):
            raise ScreenerConfigError(
                f"excluded strategies must be a list, got {type(strategies).__name__}."
            )
        return self._update(excluded_strategies=tuple(str(s).upper() for s in strategies))

    def save(self, should_save: bool = True) -> "Screener":
        return self._update(save=bool(should_save))

    def set_economy(self, dollar: Optional[float], selic: Optional[float]) -> "Screener":
        """Attach the economy snapshot recorded in saved history files."""
        return self._update(economy=EconomySnapshot(dollar=dollar, selic=selic))

    # ── Execution ─────────────────────────────────────────────────────────────

    async def run_async(self) -> list[ScoredAsset]:
        cfg = self.config
        is_stock = cfg.asset_type == AssetType.STOCK
        logger.info("Screener starting for %s", cfg.asset_type.value)

        orchestrator = self._factory(self.app_config)
        result = await orchestrator.run(include_stocks=is_stock, include_funds=not is_stock)
        assets: list[ScoredAsset] = list(result.stocks if is_stock else result.funds)
        logger.info("Screener: %d assets processed", len(assets))

        filtered = apply_filters(assets, cfg)
        logger.info("Screener: %d assets after filters", len(filtered))

        if cfg.save:
            economy = cfg.economy or result.economy
            path = save_history(
                filtered,
                cfg.asset_type.value,
                economy,
                Path(self.app_config.output.history_dir),
            )
            logger.info("History saved to %s", path)
        return filtered

    def run(self) -> list[ScoredAsset]:
        """Blocking entry point (``asyncio.run``)."""
        return asyncio.run(self.run_async())

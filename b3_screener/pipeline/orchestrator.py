"""
Reconciliation orchestrator: discovery → enrichment → re-scoring.

The ``ReconciliationOrchestrator`` runs one screening pass in three strictly
ordered phases:

  Phase 1 — Discovery:   Stock adapters are tried in order (primary, then
                         failover) until one returns data. Every fund adapter
                         runs concurrently and the results are unioned by
                         ticker, first adapter winning. The benchmark rate is
                         fetched alongside.
                         Funds get a cheap heuristic score (no enrichment)
                         and a looser filter to pick enrichment candidates.
  Phase 2 — Enrichment:  Candidate tickers go through the Investidor10 worker
                         pool. Every candidate ends up with a record, empty
                         when its probe failed.
  Phase 3 — Re-scoring:  Funds are classified and scored again with their
                         enrichment, filtered with the final threshold and
                         sorted. Stocks are scored, filtered and sorted;
                         optionally the top N are enriched for dividend dates.

Failure isolation
-----------------
- Adapter failure:     Logged at WARNING, recorded in ``errors``, treated as
                       an empty result. Siblings keep running.
- Selic unavailable:   Fallback benchmark rate from config.
- Enrichment failure:  Per ticker; that fund is classified from its raw
                       segment text only.
- Nothing discovered:  ``status="failed"``. The run itself never raises.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from b3_screener.config import AppConfig
from b3_screener.ingestion.base import FundAdapter, StockAdapter
from b3_screener.ingestion.brapi_client import BrapiStockAdapter
from b3_screener.ingestion.economy_client import EconomyClient
from b3_screener.ingestion.fi_infra_client import FiInfraAdapter
from b3_screener.ingestion.fundamentus_client import (
    FundamentusFundAdapter,
    FundamentusStockAdapter,
)
from b3_screener.ingestion.investidor10_client import Investidor10Client, RateLimitPolicy
from b3_screener.models.asset import (
    EnrichmentRecord,
    RawFundRecord,
    RawStockRecord,
    ScoredFund,
    ScoredStock,
)
from b3_screener.models.market import EconomySnapshot
from b3_screener.scoring.fund_rules import score_fund
from b3_screener.scoring.ranker import passes_fund_filter, rank_funds, rank_stocks
from b3_screener.scoring.stock_rules import resolve_benchmark_rate, score_stock

logger = logging.getLogger(__name__)


# ── Result types ──────────────────────────────────────────────────────────────

@dataclass
class ScreeningResult:
    """Complete result of one reconciliation run.

    Attributes:
        started_at:         UTC datetime when the run started.
        finished_at:        UTC datetime when the run finished.
        economy:            Dollar and Selic as fetched (either may be None).
        benchmark_rate:     Rate actually used for scoring (never None).
        stocks:             Ranked stocks (STAR first).
        funds:              Ranked funds that passed the final filter.
        enrichment:         Ticker → EnrichmentRecord for every enriched ticker.
        raw_stock_count:    Stocks returned by discovery.
        raw_fund_count:     Funds returned by discovery (after union).
        stock_source:       Adapter that supplied the stocks, if any.
        errors:             Accumulated adapter error messages.
        status:             "success", "partial", or "failed".
    """

    started_at:      Optional[datetime]  = None
    finished_at:     Optional[datetime]  = None
    economy:         EconomySnapshot     = field(default_factory=EconomySnapshot)
    benchmark_rate:  float               = 0.0
    stocks:          list[ScoredStock]   = field(default_factory=list)
    funds:           list[ScoredFund]    = field(default_factory=list)
    enrichment:      dict[str, EnrichmentRecord] = field(default_factory=dict)
    raw_stock_count: int                 = 0
    raw_fund_count:  int                 = 0
    stock_source:    Optional[str]       = None
    errors:          list[str]           = field(default_factory=list)
    status:          str                 = "started"

    @property
    def is_empty(self) -> bool:
        """True when neither stocks nor funds survived the run."""
        return not self.stocks and not self.funds


# ── Orchestrator ──────────────────────────────────────────────────────────────

class ReconciliationOrchestrator:
    """Coordinates discovery, enrichment and re-scoring for one run.

    Collaborators default to the production adapters built from ``config``;
    tests inject fakes.

    Args:
        config:             AppConfig for this run.
        stock_adapters:     Tried in order; first non-empty result wins.
        fund_adapters:      All run concurrently; results unioned by ticker.
        enrichment_client:  Investidor10 client (``fetch_many``).
        economy_client:     Selic / USD source.
    """

    def __init__(
        self,
        config: AppConfig,
        stock_adapters: Optional[Sequence[StockAdapter]] = None,
        fund_adapters: Optional[Sequence[FundAdapter]] = None,
        enrichment_client: Optional[Investidor10Client] = None,
        economy_client: Optional[EconomyClient] = None,
    ) -> None:
        self.config = config
        src = config.sources
        self.stock_adapters = list(stock_adapters) if stock_adapters is not None else [
            FundamentusStockAdapter(url=src.fundamentus_stocks_url, timeout=src.http_timeout_seconds),
            BrapiStockAdapter(
                base_url=src.brapi_base_url,
                token=src.brapi_token,
                timeout=src.http_timeout_seconds,
            ),
        ]
        self.fund_adapters = list(fund_adapters) if fund_adapters is not None else [
            FundamentusFundAdapter(url=src.fundamentus_funds_url, timeout=src.http_timeout_seconds),
            FiInfraAdapter(),
        ]
        self.enrichment_client = enrichment_client or Investidor10Client(
            base_url=src.investidor10_base_url
        )
        self.economy_client = economy_client or EconomyClient(
            selic_url=src.selic_url,
            dollar_url=src.dollar_url,
            timeout=src.http_timeout_seconds,
        )
        self.policy = RateLimitPolicy.from_config(config.enrichment)

    def run_sync(self, include_stocks: bool = True, include_funds: bool = True) -> ScreeningResult:
        """Blocking wrapper around ``run()`` for the CLI."""
        return asyncio.run(self.run(include_stocks=include_stocks, include_funds=include_funds))

    async def run(
        self,
        include_stocks: bool = True,
        include_funds: bool = True,
    ) -> ScreeningResult:
        """Execute one full screening pass.

        Args:
            include_stocks: Discover and score stocks.
            include_funds:  Discover, enrich and score funds.

        Returns:
            ScreeningResult; never raises for source failures.
        """
        result = ScreeningResult(started_at=datetime.now(tz=timezone.utc))
        screening = self.config.screening

        # ── Phase 1: Discovery (+ benchmark rate) ─────────────────────────────
        logger.info("[1/3] Discovery | stocks=%s funds=%s", include_stocks, include_funds)
        economy, raw_stocks, raw_funds = await asyncio.gather(
            self._fetch_economy(),
            self._discover_stocks(result) if include_stocks else _empty(),
            self._discover_funds(result) if include_funds else _empty(),
        )
        result.economy = economy
        result.benchmark_rate = resolve_benchmark_rate(
            economy.selic, screening.fallback_benchmark_rate
        )
        result.raw_stock_count = len(raw_stocks)
        result.raw_fund_count = len(raw_funds)
        if economy.selic is None:
            logger.warning(
                "Benchmark rate unavailable; using fallback %.2f%%", result.benchmark_rate
            )

        candidates = self._select_fund_candidates(raw_funds, result.benchmark_rate)
        logger.info(
            "Discovery done: %d stocks, %d funds (%d fund candidates), benchmark=%.2f%%",
            len(raw_stocks), len(raw_funds), len(candidates), result.benchmark_rate,
        )

        # ── Phase 2: Enrichment ───────────────────────────────────────────────
        logger.info("[2/3] Enrichment | %d tickers", len(candidates))
        result.enrichment = await self._enrich([f.ticker for f in candidates])

        # ── Phase 3: Re-scoring ───────────────────────────────────────────────
        logger.info("[3/3] Re-scoring")
        result.funds = self._rescore_funds(candidates, result.enrichment, result.benchmark_rate)
        result.stocks = self._score_stocks(raw_stocks, result.benchmark_rate)
        if self.config.enrichment.enrich_top_stocks > 0 and result.stocks:
            result.stocks = await self._enrich_top_stocks(result.stocks, result.enrichment)

        # ── Final status ──────────────────────────────────────────────────────
        if result.is_empty:
            result.status = "failed"
            logger.error("Screening produced no stocks and no funds")
        elif result.errors:
            result.status = "partial"
        else:
            result.status = "success"
        result.finished_at = datetime.now(tz=timezone.utc)
        logger.info(
            "Screening %s | %d stocks, %d funds, %d errors",
            result.status, len(result.stocks), len(result.funds), len(result.errors),
        )
        return result

    # ── Steps ─────────────────────────────────────────────────────────────────

    async def _fetch_economy(self) -> EconomySnapshot:
        try:
            return await self.economy_client.fetch_snapshot()
        except Exception as exc:
            logger.warning("Economy lookup failed: %s", exc)
            return EconomySnapshot()

    async def _discover_stocks(self, result: ScreeningResult) -> list[RawStockRecord]:
        for adapter in self.stock_adapters:
            name = adapter.source_name
            try:
                stocks = await adapter.fetch_stocks()
            except Exception as exc:
                result.errors.append(f"{name}: {exc}")
                logger.warning("Stock source %s failed: %s", name, exc, extra={"source": name})
                continue
            if stocks:
                result.stock_source = name
                logger.info("Stock source %s: %d records", name, len(stocks))
                return stocks
            logger.warning("Stock source %s returned no records", name, extra={"source": name})
        logger.error("Every stock source failed")
        return []

    async def _run_fund_adapter(
        self, adapter: FundAdapter, result: ScreeningResult
    ) -> list[RawFundRecord]:
        name = adapter.source_name
        try:
            funds = await adapter.fetch_funds()
        except Exception as exc:
            result.errors.append(f"{name}: {exc}")
            logger.warning("Fund source %s failed: %s", name, exc, extra={"source": name})
            return []
        logger.info("Fund source %s: %d records", name, len(funds))
        return funds

    async def _discover_funds(self, result: ScreeningResult) -> list[RawFundRecord]:
        batches = await asyncio.gather(
            *(self._run_fund_adapter(a, result) for a in self.fund_adapters)
        )
        merged: dict[str, RawFundRecord] = {}
        for batch in batches:
            for fund in batch:
                if fund.ticker and fund.ticker not in merged:
                    merged[fund.ticker] = fund
        return list(merged.values())

    def _select_fund_candidates(
        self, raw_funds: list[RawFundRecord], benchmark_rate: float
    ) -> list[RawFundRecord]:
        """Heuristic first pass: liquidity pre-filter plus the looser score bar."""
        screening = self.config.screening
        candidates: list[RawFundRecord] = []
        for raw in raw_funds:
            if raw.liquidity <= screening.fund_min_liquidity:
                continue
            heuristic = score_fund(raw, None, benchmark_rate, screening.fallback_benchmark_rate)
            if passes_fund_filter(heuristic, screening.fund_discovery_min_score):
                candidates.append(raw)
        return candidates

    async def _enrich(self, tickers: list[str]) -> dict[str, EnrichmentRecord]:
        if not tickers:
            return {}
        try:
            enrichment = await self.enrichment_client.fetch_many(tickers, self.policy)
        except Exception as exc:
            logger.warning("Bulk enrichment failed, continuing without it: %s", exc)
            enrichment = {}
        # every requested ticker gets a record
        return {t: enrichment.get(t) or EnrichmentRecord.empty(t) for t in tickers}

    def _rescore_funds(
        self,
        candidates: list[RawFundRecord],
        enrichment: dict[str, EnrichmentRecord],
        benchmark_rate: float,
    ) -> list[ScoredFund]:
        screening = self.config.screening
        scored = [
            score_fund(
                raw,
                enrichment.get(raw.ticker),
                benchmark_rate,
                screening.fallback_benchmark_rate,
            )
            for raw in candidates
        ]
        return rank_funds(scored, screening.fund_min_score)

    def _score_stocks(
        self, raw_stocks: list[RawStockRecord], benchmark_rate: float
    ) -> list[ScoredStock]:
        screening = self.config.screening
        scored = [
            score_stock(raw, benchmark_rate, screening.fallback_benchmark_rate)
            for raw in raw_stocks
        ]
        return rank_stocks(
            scored,
            min_liquidity=screening.stock_min_liquidity,
            star_min_liquidity=screening.stock_star_min_liquidity,
        )

    async def _enrich_top_stocks(
        self,
        stocks: list[ScoredStock],
        enrichment: dict[str, EnrichmentRecord],
    ) -> list[ScoredStock]:
        """Attach last distribution and dividend dates to the top-N stocks."""
        top_n = self.config.enrichment.enrich_top_stocks
        records = await self._enrich([s.ticker for s in stocks[:top_n]])
        enrichment.update(records)
        updated: list[ScoredStock] = []
        for stock in stocks:
            record = records.get(stock.ticker)
            if record is None or record.is_empty:
                updated.append(stock)
                continue
            updated.append(
                stock.model_copy(
                    update={
                        "last_dividend": record.last_dividend,
                        "data_com": record.data_com,
                        "data_pagamento": record.data_pagamento,
                    }
                )
            )
        return updated


async def _empty() -> list:
    return []

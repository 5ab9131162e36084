"""
Fund scoring: ``RawFundRecord`` (+ enrichment) → ``ScoredFund``.

Five independent signal groups are added together and the total is clamped
to [0, 10]. Liquidity and fund size are first-class signals so that a single
illiquid fund with an extreme yield cannot score its way to the top.

Signal groups
-------------
1. Valuation (P/B)
     brick    : 0.70 ≤ P/B < 0.95 → +2 ; 0.95 ≤ P/B ≤ 1.05 → +1
     non-brick: 0.90 ≤ P/B ≤ 1.02 → +2 ; 0 < P/B < 0.85 → −3 + DISTRESSED_RISK
2. Yield (DY capped at 14 for scoring)
     > 10 → +2 ; > 8 → +1 ; brick with raw DY ≥ 6 → +0.5
3. Liquidity (daily BRL volume)
     > 4M → +3 ; > 1.5M → +2 ; > 800k → +1 ; < 400k → −2
4. Size (market cap)
     > 2B → +2 ; > 1B → +1 ; < 400M → −1
5. Vacancy (brick only)
     < 3% → +1 ; > 15% → −2

Tags
----
TIJOLO_VALUE    brick, 0 < P/B < 0.90, market cap > 1B
PAPEL_CARRY     credit fund (PAPEL / AGRO / INFRA), DY > 11, P/B ≥ 0.95
DISTRESSED_RISK cautionary, from the valuation group

Category
--------
STAR        score ≥ 8 AND liquidity > 1M AND market cap > 1B
OPPORTUNITY score ≥ 6
STANDARD    otherwise

Enrichment
----------
Enrichment always feeds the type classifier. Its valuation snapshot only
fills raw fields that the bulk source left at 0 (price, DY, P/B, liquidity,
vacancy); it never overwrites a populated raw value.
"""

from __future__ import annotations

import math
from typing import Optional

from b3_screener.models.asset import EnrichmentRecord, RawFundRecord, ScoredFund
from b3_screener.scoring.fund_classifier import classify_fund
from b3_screener.scoring.stock_rules import DEFAULT_BENCHMARK_RATE, resolve_benchmark_rate
from b3_screener.taxonomy.asset_taxonomy import (
    CREDIT_FUND_TYPES,
    DisplayCategory,
    FundStrategy,
    FundType,
)

FUND_YIELD_CAP = 14.0
MIN_BRICK_YIELD = 6.0
MAGIC_NUMBER_SENTINEL = 9999
MIN_SCORE = 0.0
MAX_SCORE = 10.0

_GAP_FILL_FIELDS = ("price", "dy", "p_vp", "liquidity", "vacancy")


def magic_number(dividend_yield: float) -> int:
    """Shares whose monthly distributions buy one more share: ``ceil(1200 / DY)``.

    Assumes level monthly distributions. ``9999`` when DY ≤ 0.
    """
    if dividend_yield > 0:
        return math.ceil(1200.0 / dividend_yield)
    return MAGIC_NUMBER_SENTINEL


def apply_enrichment(
    raw: RawFundRecord,
    enrichment: Optional[EnrichmentRecord],
) -> RawFundRecord:
    """Fill zero-valued raw fields from the enrichment valuation snapshot."""
    if enrichment is None or enrichment.is_empty:
        return raw
    updates = {
        name: getattr(enrichment, name)
        for name in _GAP_FILL_FIELDS
        if getattr(raw, name) <= 0 and getattr(enrichment, name) > 0
    }
    if not raw.segment and enrichment.segment:
        updates["segment"] = enrichment.segment
    return raw.model_copy(update=updates) if updates else raw


# ── Signal groups ─────────────────────────────────────────────────────────────

def _valuation_points(p_vp: float, is_brick: bool) -> tuple[float, bool]:
    """Return ``(points, distressed)``."""
    if is_brick:
        if 0.70 <= p_vp < 0.95:
            return 2.0, False
        if 0.95 <= p_vp <= 1.05:
            return 1.0, False
        return 0.0, False
    if 0.90 <= p_vp <= 1.02:
        return 2.0, False
    if 0 < p_vp < 0.85:
        return -3.0, True
    return 0.0, False


def _yield_points(dy: float, is_brick: bool) -> float:
    points = 0.0
    capped = min(dy, FUND_YIELD_CAP)
    if capped > 10:
        points += 2.0
    elif capped > 8:
        points += 1.0
    if is_brick and dy >= MIN_BRICK_YIELD:
        points += 0.5
    return points


def _liquidity_points(liquidity: float) -> float:
    if liquidity > 4_000_000:
        return 3.0
    if liquidity > 1_500_000:
        return 2.0
    if liquidity > 800_000:
        return 1.0
    if liquidity < 400_000:
        return -2.0
    return 0.0


def _size_points(market_cap: float) -> float:
    if market_cap > 2_000_000_000:
        return 2.0
    if market_cap > 1_000_000_000:
        return 1.0
    if market_cap < 400_000_000:
        return -1.0
    return 0.0


def _vacancy_points(vacancy: float) -> float:
    if vacancy < 3:
        return 1.0
    if vacancy > 15:
        return -2.0
    return 0.0


def _category(score: float, f: RawFundRecord) -> DisplayCategory:
    if score >= 8 and f.liquidity > 1_000_000 and f.market_cap > 1_000_000_000:
        return DisplayCategory.STAR
    if score >= 6:
        return DisplayCategory.OPPORTUNITY
    return DisplayCategory.STANDARD


# ── Public entry point ────────────────────────────────────────────────────────

def score_fund(
    raw: RawFundRecord,
    enrichment: Optional[EnrichmentRecord],
    benchmark_rate: Optional[float],
    fallback_rate: float = DEFAULT_BENCHMARK_RATE,
) -> ScoredFund:
    """Classify and score one fund.

    Pure and deterministic. ``enrichment`` may be ``None`` or an empty record;
    either way classification falls back to the raw segment text.

    Args:
        raw:            Raw fundamentals from any fund adapter.
        enrichment:     Probe result for this ticker, if any.
        benchmark_rate: Selic-equivalent rate recorded on the result;
                        ``None``/NaN falls back to ``fallback_rate``.
        fallback_rate:  Rate used when ``benchmark_rate`` is unusable.

    Returns:
        A new ``ScoredFund`` with ``score`` in [0, 10].
    """
    rate = resolve_benchmark_rate(benchmark_rate, fallback_rate)
    f = apply_enrichment(raw, enrichment)
    fund_type = classify_fund(f.ticker, f.segment, enrichment)
    is_brick = fund_type == FundType.TIJOLO

    valuation, distressed = _valuation_points(f.p_vp, is_brick)
    score = valuation
    score += _yield_points(f.dy, is_brick)
    score += _liquidity_points(f.liquidity)
    score += _size_points(f.market_cap)
    if is_brick:
        score += _vacancy_points(f.vacancy)
    score = max(MIN_SCORE, min(MAX_SCORE, score))

    strategies: list[FundStrategy] = []
    if is_brick and 0 < f.p_vp < 0.90 and f.market_cap > 1_000_000_000:
        strategies.append(FundStrategy.TIJOLO_VALUE)
    if fund_type in CREDIT_FUND_TYPES and f.dy > 11 and f.p_vp >= 0.95:
        strategies.append(FundStrategy.PAPEL_CARRY)
    if distressed:
        strategies.append(FundStrategy.DISTRESSED_RISK)

    magic = magic_number(f.dy)
    has_enrichment = enrichment is not None and not enrichment.is_empty

    return ScoredFund(
        **f.model_dump(),
        fund_type=fund_type,
        strategies=tuple(strategies),
        score=score,
        category=_category(score, f),
        selic=rate,
        magic_number=magic,
        magic_cost=magic * f.price,
        mandate=enrichment.mandate if has_enrichment else None,
        last_dividend=enrichment.last_dividend if has_enrichment else 0.0,
        data_com=enrichment.data_com if has_enrichment else None,
        data_pagamento=enrichment.data_pagamento if has_enrichment else None,
    )

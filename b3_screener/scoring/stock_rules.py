"""
Stock classification and scoring: raw fundamentals → ``ScoredStock``.

Valuation anchors
-----------------
yield_threshold = max(6, benchmark_rate × 0.5)
    Dividend-sufficiency bar; rises with the macro rate environment.

graham_price = price × sqrt(22.5 / (P/E × P/B))          only if P/E > 0 and P/B > 0
bazin_price  = (DY% × price / 100) / (yield_threshold / 100)
    The price at which the current dividend per share pays exactly the
    threshold yield.
upside / bazin_upside = (anchor − price) / price × 100   0 when either is ≤ 0
peg_ratio    = P/E / 5y growth                            999 when either is ≤ 0

Perennial heuristic
-------------------
net margin > 15 AND ROE > 12 marks utility/insurer-like economics; it lifts
the DIVIDEND payout ceiling from 90% to 100% and waives the 80–90% payout
penalty.

Score (additive, capped at 10, no floor)
----------------------------------------
    +1  0 < P/E < 10          +1  0 < P/B < 1        +1  0 < EV/EBIT < 8
    +1  0 < PSR < 2           +2  ROE > 15 (else +1 if ROE > 10)
    +1  ROIC > 15             +1  net margin > 10
    +2  PEG < 0.5 (else +1 if PEG < 1)
    +1  min(DY, 16) > yield_threshold
    −3  5y growth < 0
    +1  debt/equity < 1       +1  liquidity > 1,000,000
    +1  Graham upside > 25 OR Bazin upside > 20
    payout (only when > 0, first match wins):
        30–60 → +2 | 60–80 → +1 | >150 → −5 | >100 → −4 | >90 → −2
        >80 and not perennial → −1

Category (first match wins)
---------------------------
    1. STAR        : (score ≥ 7 OR ≥ 3 tags) AND payout ≤ 100
    2. OPPORTUNITY : P/E > 0 AND debt/equity < 2.5 AND (ROE > 5 OR DY > 4)
                     AND (P/B < 0.95 OR P/E < 9 OR EV/EBIT < 10)
    3. Turnaround  : P/E < 0 AND EBIT margin > 0 AND price > 2 adds the
                     TURNAROUND tag and sets OPPORTUNITY if still uncategorized.
    4. None        : excluded downstream.

The tag count in rule 1 is taken before the TURNAROUND tag is appended, and
includes HIGH_VOLATILITY when present.
"""

from __future__ import annotations

import math
from typing import Optional

from b3_screener.models.asset import RawStockRecord, ScoredStock
from b3_screener.taxonomy.asset_taxonomy import DisplayCategory, StockStrategy

DEFAULT_BENCHMARK_RATE = 11.75
"""Selic-equivalent used when the caller has no usable rate."""

MIN_YIELD_THRESHOLD = 6.0
DIVIDEND_YIELD_CAP = 16.0
PEG_NOT_APPLICABLE = 999.0
GRAHAM_CONSTANT = 22.5
MAX_SCORE = 10


def resolve_benchmark_rate(
    rate: Optional[float],
    fallback: float = DEFAULT_BENCHMARK_RATE,
) -> float:
    """Return ``rate`` unless it is ``None``/NaN/non-finite, else ``fallback``."""
    if rate is None:
        return fallback
    try:
        value = float(rate)
    except (TypeError, ValueError):
        return fallback
    return value if math.isfinite(value) else fallback


def yield_threshold(benchmark_rate: float) -> float:
    """Dividend-sufficiency bar: ``max(6, benchmark_rate × 0.5)``."""
    return max(MIN_YIELD_THRESHOLD, benchmark_rate * 0.5)


def graham_fair_price(price: float, pl: float, p_vp: float) -> float:
    if pl > 0 and p_vp > 0:
        return price * math.sqrt(GRAHAM_CONSTANT / (pl * p_vp))
    return 0.0


def bazin_ceiling_price(price: float, dividend_yield: float, threshold: float) -> float:
    if threshold <= 0:
        return 0.0
    dividend_per_share = (dividend_yield / 100.0) * price
    return dividend_per_share / (threshold / 100.0)


def upside_pct(anchor: float, price: float) -> float:
    if anchor > 0 and price > 0:
        return (anchor - price) / price * 100.0
    return 0.0


def peg_ratio(pl: float, growth: float) -> float:
    if pl > 0 and growth > 0:
        return pl / growth
    return PEG_NOT_APPLICABLE


def is_likely_perennial(s: RawStockRecord) -> bool:
    """High net margin + stable ROE: utilities, insurers and similar."""
    return s.mrg_liq > 15 and s.roe > 12


# ── Strategy tags ─────────────────────────────────────────────────────────────

def _qualification_tags(s: RawStockRecord, threshold: float) -> list[StockStrategy]:
    tags: list[StockStrategy] = []

    if s.mrg_liq > 10 and s.div_br_patrim < 1 and s.cresc_5a > 5:
        capital_intensive = s.roe > 15 and s.roic > 10
        high_efficiency = s.roe > 12 and s.roic > 15
        if capital_intensive or high_efficiency:
            tags.append(StockStrategy.QUALITY)

    max_payout = 100.0 if is_likely_perennial(s) else 90.0
    if s.dividend_yield > threshold and s.mrg_liq > 10 and s.cresc_5a > 0:
        if s.payout <= 0 or s.payout <= max_payout:
            tags.append(StockStrategy.DIVIDEND)

    if 0 < s.pl < 10 and 0 < s.p_vp < 1.0:
        tags.append(StockStrategy.VALUE)

    if s.cresc_5a > 15 and s.roe > 10:
        tags.append(StockStrategy.GROWTH)

    if s.roic > 15 and 0 < s.ev_ebit < 10:
        tags.append(StockStrategy.MAGIC)

    if (
        s.dividend_yield > 6
        and s.div_br_patrim < 1
        and s.liq_2meses > 100_000
        and s.cresc_5a > -5
    ):
        tags.append(StockStrategy.BAZIN)

    return tags


def _is_turnaround(s: RawStockRecord) -> bool:
    return s.pl < 0 and s.mrg_ebit > 0 and s.cotacao > 2


# ── Score ─────────────────────────────────────────────────────────────────────

def _payout_points(payout: float, perennial: bool) -> int:
    if payout <= 0:
        return 0
    if 30 <= payout <= 60:
        return 2
    if 60 < payout <= 80:
        return 1
    if payout > 150:
        return -5
    if payout > 100:
        return -4
    if payout > 90:
        return -2
    if payout > 80 and not perennial:
        return -1
    return 0


def compute_stock_score(
    s: RawStockRecord,
    threshold: float,
    upside: float,
    bazin_upside: float,
    peg: float,
) -> int:
    """Additive 0–10 score (see module docstring). May be negative."""
    score = 0

    # Valuation
    if 0 < s.pl < 10:
        score += 1
    if 0 < s.p_vp < 1.0:
        score += 1
    if 0 < s.ev_ebit < 8:
        score += 1
    if 0 < s.psr < 2.0:
        score += 1

    # Profitability
    if s.roe > 15:
        score += 2
    elif s.roe > 10:
        score += 1
    if s.roic > 15:
        score += 1
    if s.mrg_liq > 10:
        score += 1

    # Growth at a reasonable price
    if peg < 0.5:
        score += 2
    elif peg < 1:
        score += 1

    # Income
    if min(s.dividend_yield, DIVIDEND_YIELD_CAP) > threshold:
        score += 1

    if s.cresc_5a < 0:
        score -= 3

    # Balance sheet and tradability
    if s.div_br_patrim < 1:
        score += 1
    if s.liq_2meses > 1_000_000:
        score += 1

    if upside > 25 or bazin_upside > 20:
        score += 1

    score += _payout_points(s.payout, is_likely_perennial(s))

    return min(score, MAX_SCORE)


def _is_opportunity(s: RawStockRecord) -> bool:
    healthy = s.pl > 0 and s.div_br_patrim < 2.5 and (s.roe > 5 or s.dividend_yield > 4)
    cheap = s.p_vp < 0.95 or s.pl < 9 or s.ev_ebit < 10
    return healthy and cheap


# ── Public entry point ────────────────────────────────────────────────────────

def score_stock(
    raw: RawStockRecord,
    benchmark_rate: Optional[float],
    fallback_rate: float = DEFAULT_BENCHMARK_RATE,
) -> ScoredStock:
    """Classify and score one stock.

    Pure and deterministic: identical inputs always give an identical
    ``ScoredStock``. Never raises for numeric content; absent fields are 0.

    Args:
        raw:            Raw fundamentals from any stock adapter.
        benchmark_rate: Selic-equivalent rate (percent). ``None``/NaN falls
                        back to ``fallback_rate``.
        fallback_rate:  Rate used when ``benchmark_rate`` is unusable.

    Returns:
        A new ``ScoredStock`` carrying the raw fields plus derived values.
    """
    rate = resolve_benchmark_rate(benchmark_rate, fallback_rate)
    threshold = yield_threshold(rate)

    graham = graham_fair_price(raw.cotacao, raw.pl, raw.p_vp)
    upside = upside_pct(graham, raw.cotacao)
    bazin = bazin_ceiling_price(raw.cotacao, raw.dividend_yield, threshold)
    bazin_upside = upside_pct(bazin, raw.cotacao)
    peg = peg_ratio(raw.pl, raw.cresc_5a)

    strategies = _qualification_tags(raw, threshold)
    if raw.dividend_yield > DIVIDEND_YIELD_CAP:
        strategies.append(StockStrategy.HIGH_VOLATILITY)

    score = compute_stock_score(raw, threshold, upside, bazin_upside, peg)

    category: Optional[DisplayCategory] = None
    unsustainable_payout = raw.payout > 100
    if (score >= 7 or len(strategies) >= 3) and not unsustainable_payout:
        category = DisplayCategory.STAR
    elif _is_opportunity(raw):
        category = DisplayCategory.OPPORTUNITY

    if _is_turnaround(raw):
        strategies.append(StockStrategy.TURNAROUND)
        if category is None:
            category = DisplayCategory.OPPORTUNITY

    return ScoredStock(
        **raw.model_dump(),
        graham_price=graham,
        upside=upside,
        bazin_price=bazin,
        bazin_upside=bazin_upside,
        peg_ratio=peg,
        selic=rate,
        score=score,
        strategies=tuple(strategies),
        category=category,
    )

"""
Post-scoring filters and final ordering for scored stocks and funds.

Stocks
------
1. Liquidity pre-filter (``liq_2meses > min_liquidity``).
2. Drop uncategorized stocks (``category is None``).
3. A STAR additionally needs ``liq_2meses > star_min_liquidity``; a STAR
   that fails the gate is dropped rather than demoted.
4. Sort: STAR before OPPORTUNITY, then score desc, then dividend yield desc.

Funds
-----
Keep a fund when it carries at least one strategy tag or its score reaches
``min_score``. A cautionary DISTRESSED_RISK tag keeps the fund visible as an
alert. Sort by score desc, then DY desc.
"""

from __future__ import annotations

from typing import Iterable

from b3_screener.models.asset import ScoredFund, ScoredStock
from b3_screener.taxonomy.asset_taxonomy import DisplayCategory

DEFAULT_STOCK_MIN_LIQUIDITY = 200_000.0
DEFAULT_STOCK_STAR_MIN_LIQUIDITY = 300_000.0
DEFAULT_FUND_MIN_SCORE = 5.5

_CATEGORY_RANK: dict[DisplayCategory, int] = {
    DisplayCategory.STAR: 0,
    DisplayCategory.OPPORTUNITY: 1,
    DisplayCategory.STANDARD: 2,
}


def stock_sort_key(stock: ScoredStock) -> tuple[int, int, float]:
    """Ascending sort key: category group, then score desc, then DY desc."""
    rank = _CATEGORY_RANK.get(stock.category, len(_CATEGORY_RANK))
    return (rank, -stock.score, -stock.dividend_yield)


def fund_sort_key(fund: ScoredFund) -> tuple[float, float]:
    return (-fund.score, -fund.dy)


def rank_stocks(
    stocks: Iterable[ScoredStock],
    min_liquidity: float = DEFAULT_STOCK_MIN_LIQUIDITY,
    star_min_liquidity: float = DEFAULT_STOCK_STAR_MIN_LIQUIDITY,
) -> list[ScoredStock]:
    """Filter and order scored stocks for display."""
    kept: list[ScoredStock] = []
    for stock in stocks:
        if stock.liq_2meses <= min_liquidity or stock.category is None:
            continue
        if stock.category == DisplayCategory.STAR and stock.liq_2meses <= star_min_liquidity:
            continue
        kept.append(stock)
    return sorted(kept, key=stock_sort_key)


def passes_fund_filter(fund: ScoredFund, min_score: float = DEFAULT_FUND_MIN_SCORE) -> bool:
    """True when the fund has any strategy tag or a high enough score."""
    return bool(fund.strategies) or fund.score >= min_score


def rank_funds(
    funds: Iterable[ScoredFund],
    min_score: float = DEFAULT_FUND_MIN_SCORE,
) -> list[ScoredFund]:
    """Filter and order scored funds for display."""
    kept = [f for f in funds if passes_fund_filter(f, min_score)]
    return sorted(kept, key=fund_sort_key)

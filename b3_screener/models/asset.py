"""
Asset records: raw provider output, enrichment metadata, and scored results.

Three-stage design:
  1. ``RawStockRecord`` / ``RawFundRecord`` — what an adapter hands over,
     already normalized to a common numeric vocabulary. Every numeric field
     defaults to ``0.0`` and is coerced with ``to_float`` so an absent or
     malformed provider value never reaches the scorer as ``None``/NaN.
  2. ``EnrichmentRecord`` — authoritative per-ticker metadata from the slow
     probe. ``EnrichmentRecord.empty(ticker)`` is the explicit "probe found
     nothing" value; callers never deal with a missing key.
  3. ``ScoredStock`` / ``ScoredFund`` — the raw record plus everything the
     scoring engine derived. Re-scoring produces a new instance.

All models are frozen. Field names follow the column vocabulary of the
Brazilian sources (``cotacao``, ``p_vp``, ``div_br_patrim``...) because the
dashboard consumes them under those keys.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from b3_screener.taxonomy.asset_taxonomy import (
    DisplayCategory,
    FundStrategy,
    FundType,
    StockStrategy,
)
from b3_screener.utils.parsing import to_float

_STOCK_NUMERIC_FIELDS = (
    "cotacao", "pl", "p_vp", "psr", "dividend_yield", "ev_ebit", "mrg_ebit",
    "mrg_liq", "roic", "roe", "liq_2meses", "div_br_patrim", "cresc_5a", "payout",
)

_FUND_NUMERIC_FIELDS = (
    "price", "ffo_yield", "dy", "p_vp", "market_cap", "liquidity",
    "num_properties", "cap_rate", "vacancy",
)

_ENRICHMENT_NUMERIC_FIELDS = (
    "price", "dy", "p_vp", "liquidity", "last_dividend", "vacancy",
)


def _normalize_ticker(value: Any) -> str:
    return str(value or "").strip().upper()


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class RawStockRecord(BaseModel):
    """One listed equity's fundamentals at fetch time.

    Attributes:
        ticker: B3 ticker symbol (e.g. ``"PETR4"``), upper-cased.
        cotacao: Last price (BRL).
        pl: Price / earnings.
        p_vp: Price / book value.
        psr: Price / sales.
        dividend_yield: Trailing dividend yield, percent.
        ev_ebit: Enterprise value / EBIT.
        mrg_ebit: EBIT margin, percent.
        mrg_liq: Net margin, percent.
        roic: Return on invested capital, percent.
        roe: Return on equity, percent.
        liq_2meses: Average daily traded volume over two months (BRL).
        div_br_patrim: Gross debt / equity.
        cresc_5a: 5-year revenue CAGR, percent.
        payout: Payout ratio, percent. ``0`` means "not available".
    """

    model_config = ConfigDict(frozen=True)

    ticker: str = ""
    cotacao: float = 0.0
    pl: float = 0.0
    p_vp: float = 0.0
    psr: float = 0.0
    dividend_yield: float = 0.0
    ev_ebit: float = 0.0
    mrg_ebit: float = 0.0
    mrg_liq: float = 0.0
    roic: float = 0.0
    roe: float = 0.0
    liq_2meses: float = 0.0
    div_br_patrim: float = 0.0
    cresc_5a: float = 0.0
    payout: float = 0.0

    @field_validator("ticker", mode="before")
    @classmethod
    def normalize_ticker(cls, v: Any) -> str:
        return _normalize_ticker(v)

    @field_validator(*_STOCK_NUMERIC_FIELDS, mode="before")
    @classmethod
    def coerce_numeric(cls, v: Any) -> float:
        return to_float(v)


class RawFundRecord(BaseModel):
    """One real-estate / agro / infra fund's fundamentals at fetch time.

    Attributes:
        ticker: Fund ticker (e.g. ``"HGLG11"``), upper-cased.
        segment: Free-text segment label as published by the source.
        price: Last price (BRL).
        ffo_yield: FFO yield, percent.
        dy: Trailing dividend yield, percent.
        p_vp: Price / book value.
        market_cap: Market capitalization (BRL).
        liquidity: Average daily traded volume (BRL).
        num_properties: Number of properties held (brick funds).
        cap_rate: Cap rate, percent.
        vacancy: Average vacancy, percent.
    """

    model_config = ConfigDict(frozen=True)

    ticker: str = ""
    segment: str = ""
    price: float = 0.0
    ffo_yield: float = 0.0
    dy: float = 0.0
    p_vp: float = 0.0
    market_cap: float = 0.0
    liquidity: float = 0.0
    num_properties: float = 0.0
    cap_rate: float = 0.0
    vacancy: float = 0.0

    @field_validator("ticker", mode="before")
    @classmethod
    def normalize_ticker(cls, v: Any) -> str:
        return _normalize_ticker(v)

    @field_validator("segment", mode="before")
    @classmethod
    def normalize_segment(cls, v: Any) -> str:
        return str(v or "").strip()

    @field_validator(*_FUND_NUMERIC_FIELDS, mode="before")
    @classmethod
    def coerce_numeric(cls, v: Any) -> float:
        return to_float(v)


class EnrichmentRecord(BaseModel):
    """Supplementary per-ticker metadata from the authoritative probe.

    Text labels are kept exactly as published (``"Fiagro"``, ``"Títulos e
    Val. Mob."``); the classifier normalizes them itself.
    """

    model_config = ConfigDict(frozen=True)

    ticker: str
    fund_type: Optional[str] = None
    segment: Optional[str] = None
    mandate: Optional[str] = None
    price: float = 0.0
    dy: float = 0.0
    p_vp: float = 0.0
    liquidity: float = 0.0
    last_dividend: float = 0.0
    vacancy: float = 0.0
    data_com: Optional[str] = None
    data_pagamento: Optional[str] = None

    @field_validator("ticker", mode="before")
    @classmethod
    def normalize_ticker(cls, v: Any) -> str:
        return _normalize_ticker(v)

    @field_validator(
        "fund_type", "segment", "mandate", "data_com", "data_pagamento", mode="before"
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator(*_ENRICHMENT_NUMERIC_FIELDS, mode="before")
    @classmethod
    def coerce_numeric(cls, v: Any) -> float:
        return to_float(v)

    @classmethod
    def empty(cls, ticker: str) -> "EnrichmentRecord":
        """The record used when every probe for ``ticker`` failed."""
        return cls(ticker=ticker)

    @property
    def is_empty(self) -> bool:
        """True when the probe found no label, no price and no ex-date."""
        return not (self.fund_type or self.price > 0 or self.data_com)


class ScoredStock(RawStockRecord):
    """A stock after classification and scoring.

    ``score`` is capped at 10 but has no floor: heavy penalties can push it
    negative. ``category`` is ``None`` for stocks that qualify as neither
    STAR nor OPPORTUNITY; those are dropped by the ranker.
    """

    graham_price: float = 0.0
    upside: float = 0.0
    bazin_price: float = 0.0
    bazin_upside: float = 0.0
    peg_ratio: float = 999.0
    selic: float
    score: int
    strategies: tuple[StockStrategy, ...] = ()
    category: Optional[DisplayCategory] = None
    last_dividend: float = 0.0
    data_com: Optional[str] = None
    data_pagamento: Optional[str] = None


class ScoredFund(RawFundRecord):
    """A fund after type classification and scoring (score in [0, 10])."""

    fund_type: FundType = Field(serialization_alias="type")
    strategies: tuple[FundStrategy, ...] = ()
    score: float
    category: DisplayCategory
    selic: float
    magic_number: int
    magic_cost: float
    mandate: Optional[str] = None
    last_dividend: float = 0.0
    data_com: Optional[str] = None
    data_pagamento: Optional[str] = None

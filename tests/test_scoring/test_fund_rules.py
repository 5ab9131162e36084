"""
Tests for b3_screener/scoring/fund_rules.py.

What we test
------------
  - Illiquid high-yield brick fund scores 1.5 and cannot be STAR.
  - Score clamping to [0, 10].
  - Category gates: STAR needs liquidity > 1M AND market cap > 1B.
  - Tags: TIJOLO_VALUE, PAPEL_CARRY (all credit types), DISTRESSED_RISK.
  - Magic number / magic cost.
  - Enrichment gap-fill never overwrites populated raw values.
  - Enrichment text fields propagate; missing enrichment leaves them unset.
"""

from __future__ import annotations

import pytest

from b3_screener.models.asset import EnrichmentRecord, RawFundRecord
from b3_screener.scoring.fund_rules import (
    MAGIC_NUMBER_SENTINEL,
    apply_enrichment,
    magic_number,
    score_fund,
)
from b3_screener.taxonomy.asset_taxonomy import (
    DisplayCategory,
    FundStrategy,
    FundType,
)


def _fund(**overrides) -> RawFundRecord:
    fields = {"ticker": "ABCD11", "segment": "Logística", "price": 100.0}
    fields.update(overrides)
    return RawFundRecord(**fields)


# ── Score and category ────────────────────────────────────────────────────────

class TestFundScore:
    def test_illiquid_outlier_cannot_reach_star(self):
        raw = _fund(p_vp=0.95, dy=16, liquidity=300_000, market_cap=100_000_000)
        scored = score_fund(raw, None, 10)
        assert scored.fund_type == FundType.TIJOLO
        # +1 valuation, +2.5 yield, -2 liquidity, -1 size, +1 vacancy
        assert scored.score == pytest.approx(1.5)
        assert scored.category == DisplayCategory.STANDARD

    def test_upper_clamp(self):
        raw = _fund(p_vp=0.8, dy=12, liquidity=6_000_000, market_cap=3e9, vacancy=1)
        scored = score_fund(raw, None, 10)
        assert scored.score == 10.0
        assert scored.category == DisplayCategory.STAR
        assert scored.strategies == (FundStrategy.TIJOLO_VALUE,)

    def test_lower_clamp_and_distressed(self):
        raw = _fund(
            segment="Títulos e Val. Mob.", p_vp=0.5, dy=0,
            liquidity=100_000, market_cap=100_000_000,
        )
        scored = score_fund(raw, None, 10)
        assert scored.score == 0.0
        assert scored.strategies == (FundStrategy.DISTRESSED_RISK,)

    def test_brick_not_penalised_for_discount(self):
        raw = _fund(p_vp=0.5, liquidity=1_000_000, market_cap=600_000_000, vacancy=5)
        scored = score_fund(raw, None, 10)
        assert FundStrategy.DISTRESSED_RISK not in scored.strategies
        assert scored.score == pytest.approx(1.0)

    def test_high_vacancy_penalty(self):
        base = score_fund(_fund(p_vp=1.0, liquidity=5e6, market_cap=3e9, vacancy=5), None, 10).score
        empty_space = score_fund(
            _fund(p_vp=1.0, liquidity=5e6, market_cap=3e9, vacancy=20), None, 10
        ).score
        assert base - empty_space == pytest.approx(2.0)

    def test_star_needs_market_cap(self):
        raw = _fund(p_vp=0.8, dy=12, liquidity=5_000_000, market_cap=800_000_000, vacancy=1)
        scored = score_fund(raw, None, 10)
        assert scored.score >= 8
        assert scored.category == DisplayCategory.OPPORTUNITY

    def test_star_needs_liquidity(self):
        raw = _fund(
            segment="Títulos e Val. Mob.", p_vp=1.0, dy=12,
            liquidity=900_000, market_cap=3e9,
        )
        scored = score_fund(raw, None, 10)
        assert scored.score == pytest.approx(7.0)
        assert scored.category == DisplayCategory.OPPORTUNITY

    def test_selic_fallback_recorded(self):
        scored = score_fund(_fund(), None, None, fallback_rate=12.0)
        assert scored.selic == 12.0


# ── Tags ──────────────────────────────────────────────────────────────────────

class TestFundTags:
    @pytest.mark.parametrize(
        "segment", ["Títulos e Val. Mob.", "Fiagro", "Infraestrutura"]
    )
    def test_carry_for_every_credit_type(self, segment):
        raw = _fund(segment=segment, p_vp=1.0, dy=12.5, liquidity=5e6, market_cap=3e9)
        scored = score_fund(raw, None, 10)
        assert FundStrategy.PAPEL_CARRY in scored.strategies

    def test_no_carry_below_par(self):
        raw = _fund(segment="Títulos e Val. Mob.", p_vp=0.9, dy=12.5)
        assert FundStrategy.PAPEL_CARRY not in score_fund(raw, None, 10).strategies

    def test_brick_never_carry(self):
        raw = _fund(p_vp=1.0, dy=13)
        assert FundStrategy.PAPEL_CARRY not in score_fund(raw, None, 10).strategies

    def test_tijolo_value_needs_size(self):
        raw = _fund(p_vp=0.8, market_cap=900_000_000)
        assert score_fund(raw, None, 10).strategies == ()


# ── Magic number ──────────────────────────────────────────────────────────────

class TestMagicNumber:
    @pytest.mark.parametrize(
        "dy, expected", [(12, 100), (7, 172), (0, MAGIC_NUMBER_SENTINEL), (-1, MAGIC_NUMBER_SENTINEL)]
    )
    def test_magic_number(self, dy, expected):
        assert magic_number(dy) == expected

    def test_magic_cost(self):
        scored = score_fund(_fund(dy=12, price=100), None, 10)
        assert scored.magic_number == 100
        assert scored.magic_cost == pytest.approx(10_000.0)


# ── Enrichment ────────────────────────────────────────────────────────────────

class TestEnrichment:
    def test_gap_fill_only(self, paper_enrichment):
        raw = RawFundRecord(ticker="KNCR11", price=0, dy=9.0, p_vp=0)
        filled = apply_enrichment(raw, paper_enrichment)
        assert filled.price == 104.0
        assert filled.p_vp == 1.01
        assert filled.dy == 9.0
        assert filled.segment == "Títulos e Val. Mob."

    def test_none_and_empty_are_identity(self, liquid_brick_fund):
        assert apply_enrichment(liquid_brick_fund, None) is liquid_brick_fund
        empty = EnrichmentRecord.empty(liquid_brick_fund.ticker)
        assert apply_enrichment(liquid_brick_fund, empty) is liquid_brick_fund

    def test_enrichment_fields_propagate(self, paper_enrichment):
        raw = RawFundRecord(ticker="KNCR11", segment="Outros", dy=12.5, p_vp=1.01)
        scored = score_fund(raw, paper_enrichment, 10)
        assert scored.fund_type == FundType.PAPEL
        assert scored.mandate == "Títulos e Valores Mobiliários"
        assert scored.last_dividend == 1.1
        assert scored.data_com == "31/01/2026"
        assert scored.data_pagamento == "14/02/2026"

    def test_failed_probe_same_as_no_probe(self, liquid_brick_fund):
        empty = EnrichmentRecord.empty(liquid_brick_fund.ticker)
        assert score_fund(liquid_brick_fund, empty, 10) == score_fund(
            liquid_brick_fund, None, 10
        )
        assert score_fund(liquid_brick_fund, empty, 10).data_com is None

    def test_serialized_type_key(self, liquid_brick_fund):
        dumped = score_fund(liquid_brick_fund, None, 10).model_dump(mode="json", by_alias=True)
        assert dumped["type"] == "TIJOLO"
        assert "fund_type" not in dumped

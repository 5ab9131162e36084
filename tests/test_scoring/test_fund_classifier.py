"""
Tests for b3_screener/scoring/fund_classifier.py.

What we test
------------
Cascade priority:
  - INFRA before AGRO before MULTI before PAPEL before TIJOLO before OUTROS.
  - Enrichment labels outrank the raw segment text.
  - Accent and case insensitivity of segment matching.
Static ticker lists:
  - NEVER_INFRA tickers are never INFRA, whatever the text says.
  - KNOWN_INFRAS forces INFRA; KNOWN_FIAGROS forces AGRO unless already INFRA.
Degradation:
  - ``None`` and an empty enrichment record both fall back to segment text.
"""

from __future__ import annotations

import pytest

from b3_screener.models.asset import EnrichmentRecord
from b3_screener.scoring.fund_classifier import classify_fund
from b3_screener.taxonomy.asset_taxonomy import NEVER_INFRA, FundType


def _enrichment(ticker: str, **fields) -> EnrichmentRecord:
    return EnrichmentRecord(ticker=ticker, **fields)


# ── Segment text ──────────────────────────────────────────────────────────────

class TestSegmentFallback:
    @pytest.mark.parametrize(
        "segment, expected",
        [
            ("Infraestrutura", FundType.INFRA),
            ("Energia", FundType.INFRA),
            ("Saneamento", FundType.INFRA),
            ("Fiagro", FundType.AGRO),
            ("Agronegócio", FundType.AGRO),
            ("Híbrido", FundType.MULTI),
            ("Fundo de Fundos", FundType.MULTI),
            ("Títulos e Val. Mob.", FundType.PAPEL),
            ("Recebíveis Imobiliários", FundType.PAPEL),
            ("Logística", FundType.TIJOLO),
            ("Shoppings", FundType.TIJOLO),
            ("Lajes Corporativas", FundType.TIJOLO),
            ("Hospital", FundType.TIJOLO),
            ("Outros", FundType.OUTROS),
            ("", FundType.OUTROS),
        ],
    )
    def test_segment_mapping(self, segment, expected):
        assert classify_fund("ABCD11", segment) == expected

    def test_case_and_accent_insensitive(self):
        assert classify_fund("ABCD11", "LOGÍSTICA") == FundType.TIJOLO
        assert classify_fund("ABCD11", "titulos e val. mob.") == FundType.PAPEL

    def test_infra_outranks_agro(self):
        assert classify_fund("ABCD11", "Agro Energia") == FundType.INFRA

    def test_empty_enrichment_same_as_none(self):
        empty = EnrichmentRecord.empty("ABCD11")
        assert classify_fund("ABCD11", "Logística", empty) == classify_fund(
            "ABCD11", "Logística", None
        )


# ── Enrichment labels ─────────────────────────────────────────────────────────

class TestEnrichmentLabels:
    def test_enrichment_type_outranks_segment(self):
        e = _enrichment("ABCD11", fund_type="Fundo de Papel")
        assert classify_fund("ABCD11", "Logística", e) == FundType.PAPEL

    def test_fiagro_label(self):
        e = _enrichment("ABCD11", fund_type="Fiagro")
        assert classify_fund("ABCD11", "", e) == FundType.AGRO

    def test_infra_label(self):
        e = _enrichment("ABCD11", fund_type="FI-Infra")
        assert classify_fund("ABCD11", "Outros", e) == FundType.INFRA

    def test_fund_of_funds_label(self):
        e = _enrichment("ABCD11", fund_type="Fundo de Fundos")
        assert classify_fund("ABCD11", "Títulos e Val. Mob.", e) == FundType.MULTI

    def test_brick_mandate(self):
        e = _enrichment("ABCD11", fund_type="Fundo de Tijolo", mandate="Renda")
        assert classify_fund("ABCD11", "", e) == FundType.TIJOLO

    def test_enrichment_segment_names_property_type(self):
        e = _enrichment("ABCD11", segment="Shoppings")
        assert classify_fund("ABCD11", "", e) == FundType.TIJOLO


# ── Static ticker lists ───────────────────────────────────────────────────────

class TestTickerLists:
    @pytest.mark.parametrize("ticker", sorted(NEVER_INFRA))
    def test_never_infra_holds_for_every_signal(self, ticker):
        e = _enrichment(ticker, fund_type="FI-Infra", segment="Infraestrutura")
        assert classify_fund(ticker, "Energia", e) != FundType.INFRA

    def test_known_infra_forced(self):
        assert classify_fund("JURO11", "Títulos e Val. Mob.") == FundType.INFRA

    def test_known_infra_case_insensitive_ticker(self):
        assert classify_fund("juro11", "") == FundType.INFRA

    def test_known_fiagro_forced(self):
        assert classify_fund("SNAG11", "Outros") == FundType.AGRO

    def test_known_fiagro_does_not_override_infra(self):
        e = _enrichment("SNAG11", fund_type="FI-Infra")
        assert classify_fund("SNAG11", "", e) == FundType.INFRA

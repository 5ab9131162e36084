"""
Shared pytest fixtures for the B3 screener test suite.

Provides:
  - ``app_config``: default ``AppConfig`` with output paths under ``tmp_path``.
  - Sample raw records covering the main scoring paths.
"""

from __future__ import annotations

import pytest

from b3_screener.config import AppConfig, EnrichmentConfig, OutputConfig
from b3_screener.models.asset import EnrichmentRecord, RawFundRecord, RawStockRecord


# ── Config ────────────────────────────────────────────────────────────────────

@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """Defaults, with every output file under ``tmp_path`` and no enrichment delay."""
    return AppConfig(
        enrichment=EnrichmentConfig(delay_ms=0, timeout_seconds=2.0),
        output=OutputConfig(
            snapshot_path=str(tmp_path / "data.js"),
            history_dir=str(tmp_path / "history"),
            csv_path=str(tmp_path / "bola_de_neve.csv"),
        ),
    )


# ── Sample records ────────────────────────────────────────────────────────────

@pytest.fixture
def quality_stock() -> RawStockRecord:
    """A cheap, profitable, liquid, low-debt dividend payer (scores 10, STAR)."""
    return RawStockRecord(
        ticker="BBAS3",
        cotacao=25.0,
        pl=5.0,
        p_vp=0.8,
        psr=1.0,
        dividend_yield=9.0,
        ev_ebit=5.0,
        mrg_ebit=25.0,
        mrg_liq=20.0,
        roic=18.0,
        roe=20.0,
        liq_2meses=50_000_000.0,
        div_br_patrim=0.5,
        cresc_5a=12.0,
        payout=45.0,
    )


@pytest.fixture
def liquid_brick_fund() -> RawFundRecord:
    """Large, liquid logistics fund at a modest discount to book."""
    return RawFundRecord(
        ticker="HGLG11",
        segment="Logística",
        price=160.0,
        dy=8.5,
        p_vp=0.92,
        market_cap=4_500_000_000.0,
        liquidity=6_000_000.0,
        vacancy=2.0,
    )


@pytest.fixture
def paper_enrichment() -> EnrichmentRecord:
    return EnrichmentRecord(
        ticker="KNCR11",
        fund_type="Fundo de Papel",
        segment="Títulos e Val. Mob.",
        mandate="Títulos e Valores Mobiliários",
        price=104.0,
        dy=12.5,
        p_vp=1.01,
        last_dividend=1.1,
        data_com="31/01/2026",
        data_pagamento="14/02/2026",
    )

"""
Market context records shown next to the screened assets: macro rates,
treasury bonds, private fixed-income benchmarks, ETFs and dividend events.

These are display records. Nothing in the scoring engine reads them except
the Selic rate, which the orchestrator resolves separately.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class EconomySnapshot(BaseModel):
    """USD/BRL quote and Selic target rate. Either may be ``None`` when the
    provider was unavailable."""

    model_config = ConfigDict(frozen=True)

    dollar: Optional[float] = None
    selic: Optional[float] = None


class TreasuryBond(BaseModel):
    """One Tesouro Direto bond row, kept as displayed text."""

    model_config = ConfigDict(frozen=True)

    name: str
    rate: str = ""
    min_invest: str = Field(default="", serialization_alias="minInvest")
    price: str = ""
    maturity: str = ""


class PrivateBenchmark(BaseModel):
    """A private fixed-income reference rate derived from the Selic."""

    model_config = ConfigDict(frozen=True)

    name: str
    rate: str
    kind: str = Field(serialization_alias="type")


class EtfEntry(BaseModel):
    """A curated ETF entry."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    name: str
    etf_type: str = Field(serialization_alias="type")


class DividendEvent(BaseModel):
    """One row of a ticker's distribution history."""

    model_config = ConfigDict(frozen=True)

    dividend_type: str = Field(
        default="",
        validation_alias=AliasChoices("dividend_type", "type"),
        serialization_alias="type",
    )
    data_com: str
    data_pagamento: str = ""
    value: float = 0.0

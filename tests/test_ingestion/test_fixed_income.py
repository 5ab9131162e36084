"""
Tests for b3_screener/ingestion/fixed_income.py.

What we test
------------
  - Treasury rows parsed with and without a leading rank column.
  - Non-Tesouro rows ignored.
  - Private benchmarks derived from the Selic, including the savings rule.
  - Curated ETF list.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from b3_screener.ingestion.base import SourceUnavailableError
from b3_screener.ingestion.fixed_income import (
    build_private_benchmarks,
    fetch_treasury_bonds,
    list_etfs,
    parse_treasury_table,
)

_TESOURO_PAGE = """
<table>
  <tr><th>Título</th><th>Taxa</th></tr>
  <tr><td>Tesouro Selic 2029</td><td>SELIC + 0,08%</td><td>R$ 160,12</td><td>R$ 16.012,00</td><td>01/03/2029</td></tr>
  <tr><td>1</td><td>Tesouro IPCA+ 2035</td><td>IPCA + 7,1%</td><td>R$ 38,00</td><td>R$ 1.900,00</td><td>15/05/2035</td></tr>
  <tr><td>CDB Banco X</td><td>110% CDI</td></tr>
</table>
"""


class TestTreasury:
    def test_parse(self):
        bonds = parse_treasury_table(_TESOURO_PAGE)
        assert [b.name for b in bonds] == ["Tesouro Selic 2029", "Tesouro IPCA+ 2035"]
        assert bonds[0].rate == "SELIC + 0,08%"
        assert bonds[0].min_invest == "R$ 160,12"
        assert bonds[1].maturity == "15/05/2035"

    def test_fetch(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, text=_TESOURO_PAGE))
        bonds = asyncio.run(fetch_treasury_bonds("https://t.test/", transport=transport))
        assert len(bonds) == 2

    def test_fetch_error(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(502))
        with pytest.raises(SourceUnavailableError):
            asyncio.run(fetch_treasury_bonds("https://t.test/", transport=transport))


class TestPrivateBenchmarks:
    def test_high_selic(self):
        rows = {b.name: b for b in build_private_benchmarks(15.0)}
        assert rows["CDB 100% CDI"].rate == "14.90%"
        assert rows["LCI/LCA 90% CDI"].rate == "13.41%"
        assert rows["Poupança (Est.)"].rate == "6.17% + TR"
        assert rows["CDB Pré-fixado (Est.)"].rate == "16.50%"
        assert rows["LCI/LCA 90% CDI"].kind == "Isento IR"

    def test_low_selic_savings(self):
        rows = {b.name: b for b in build_private_benchmarks(7.0)}
        assert rows["Poupança (Est.)"].rate == "4.90% + TR"


class TestEtfs:
    def test_curated(self):
        assert [e.ticker for e in list_etfs()] == ["IVVB11", "BOVA11", "SMAL11", "HASH11", "DIVO11"]

"""
Tests for b3_screener/utils/parsing.py.

What we test
------------
  - ``to_float`` is total: None, bool, NaN, garbage all become 0.0.
  - pt-BR number parsing ("1.234,56", "12,5%", "R$ 3,20").
  - Magnitude suffixes on card values ("1,5 M", "800 K", "2 B").
  - Accent stripping and case folding for classifier keywords.
"""

from __future__ import annotations

import pytest

from b3_screener.utils.parsing import (
    normalize_text,
    parse_br_number,
    parse_suffixed_number,
    to_float,
)


class TestToFloat:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, 0.0),
            (True, 0.0),
            (3, 3.0),
            (2.5, 2.5),
            (float("nan"), 0.0),
            (float("inf"), 0.0),
            ("12.5", 12.5),
            ("1.234,56", 1234.56),
            ("-", 0.0),
            ("", 0.0),
            ([1, 2], 0.0),
        ],
    )
    def test_total(self, value, expected):
        assert to_float(value) == pytest.approx(expected)


class TestBrazilianNumbers:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1.234,56", 1234.56),
            ("12,5%", 12.5),
            ("R$ 3,20", 3.2),
            ("-4,1%", -4.1),
            ("0,00", 0.0),
            ("abc", 0.0),
            (None, 0.0),
        ],
    )
    def test_parse_br_number(self, text, expected):
        assert parse_br_number(text) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("R$ 1,5 M", 1_500_000.0),
            ("800 K", 800_000.0),
            ("2,1 B", 2_100_000_000.0),
            ("8,2%", 8.2),
            ("R$ 98,40", 98.4),
            ("", 0.0),
            ("N/A", 0.0),
        ],
    )
    def test_parse_suffixed_number(self, text, expected):
        assert parse_suffixed_number(text) == pytest.approx(expected)


class TestNormalizeText:
    def test_strips_accents_and_folds_case(self):
        assert normalize_text("Logística") == "logistica"
        assert normalize_text("  TÍTULOS e Val. Mob. ") == "titulos e val. mob."

    def test_none_is_empty(self):
        assert normalize_text(None) == ""

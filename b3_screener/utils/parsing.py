"""
Total numeric and text coercion helpers.

Every provider in this project hands back numbers as loosely formatted text
("1.234,56", "12,5%", "R$ 1,2 M", "-", "") or as JSON values that may be
missing. Scoring must never see ``None`` / NaN, so all of these helpers are
total: malformed input yields ``0.0`` instead of raising.
"""

from __future__ import annotations

import math
import unicodedata
from typing import Any

_SUFFIX_MULTIPLIERS: dict[str, float] = {
    "K": 1_000.0,
    "M": 1_000_000.0,
    "B": 1_000_000_000.0,
}


def _finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def to_float(value: Any) -> float:
    """Coerce any provider value to a finite float, defaulting to ``0.0``.

    Strings are tried as plain floats first ("12.5") and then as Brazilian
    formatted numbers ("1.234,56", "12,5%").
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return _finite_or_zero(float(value))
    if isinstance(value, str):
        text = value.strip()
        try:
            return _finite_or_zero(float(text))
        except ValueError:
            return parse_br_number(text)
    return 0.0


def parse_br_number(text: str | None) -> float:
    """Parse a pt-BR formatted number: ``"1.234,56"`` → ``1234.56``.

    Thousands dots are dropped, the decimal comma becomes a point, and any
    ``R$`` prefix or ``%`` suffix is ignored.
    """
    if not text:
        return 0.0
    cleaned = (
        text.replace("R$", "")
        .replace(".", "")
        .replace(",", ".")
        .replace("%", "")
        .strip()
    )
    try:
        return _finite_or_zero(float(cleaned))
    except ValueError:
        return 0.0


def parse_suffixed_number(text: str | None) -> float:
    """Parse a card value that may carry a ``K``/``M``/``B`` magnitude suffix.

    ``"R$ 1,5 M"`` → ``1500000.0``; ``"8,2%"`` → ``8.2``.
    """
    if not text:
        return 0.0
    cleaned = (
        text.replace("R$", "")
        .replace(".", "")
        .replace(",", ".")
        .replace("%", "")
        .strip()
    )
    multiplier = 1.0
    suffix = cleaned[-1:].upper()
    if suffix in _SUFFIX_MULTIPLIERS:
        multiplier = _SUFFIX_MULTIPLIERS[suffix]
        cleaned = cleaned[:-1].strip()
    try:
        return _finite_or_zero(float(cleaned) * multiplier)
    except ValueError:
        return 0.0


def normalize_text(text: str | None) -> str:
    """Strip accents (NFD) and case-fold; ``None`` becomes ``""``.

    ``"Logística"`` → ``"logistica"``; ``"Títulos e Val. Mob."`` →
    ``"titulos e val. mob."``.
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold().strip()

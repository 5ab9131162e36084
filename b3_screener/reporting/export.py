"""
Snowball ("bola de neve") CSV export of scored funds.

Funds are grouped into the sections of a snowball plan, in this order, and
sorted by price inside each section:

  0  Destaques (Fiagro & Infra)            type AGRO or INFRA
  1  Base R$ 10 (Acessíveis)               price < 15
  2  Base R$ 20 - R$ 50 (Intermediários)   15 ≤ price < 70
  3  Base R$ 100+ (Premium/Tradicionais)   price ≥ 70

Text cells that a spreadsheet would evaluate as a formula (leading ``=``,
``+``, ``-``, ``@``, tab or carriage return) are prefixed with ``'``.
"""

from __future__ import annotations

import csv
from collections import Counter
from pathlib import Path
from typing import Any, Iterable

from b3_screener.models.asset import ScoredFund
from b3_screener.taxonomy.asset_taxonomy import FundType

SECTIONS: tuple[str, ...] = (
    "Destaques (Fiagro & Infra)",
    "Base R$ 10 (Acessíveis)",
    "Base R$ 20 - R$ 50 (Intermediários)",
    "Base R$ 100+ (Premium/Tradicionais)",
)

CSV_HEADERS: list[str] = [
    "Ticker",
    "Tipo",
    "Segmento",
    "Preço",
    "DY (%)",
    "P/VP",
    "Liquidez Diária (R$)",
    "Vacância (%)",
    "Score",
    "Estratégias",
    "Número Mágico",
    "Custo Mágico (R$)",
    "Seção Bola de Neve",
]

_INJECTION_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


def snowball_section(fund: ScoredFund) -> str:
    if fund.fund_type in (FundType.AGRO, FundType.INFRA):
        return SECTIONS[0]
    if fund.price < 15:
        return SECTIONS[1]
    if fund.price < 70:
        return SECTIONS[2]
    return SECTIONS[3]


def format_liquidity(value: float) -> str:
    """``1_250_000`` → ``"1.25M"``; ``0`` → ``"N/A"``."""
    if not value:
        return "N/A"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"{value / 1_000:.2f}K"
    return f"{value:.2f}"


def guard_cell(value: Any) -> Any:
    """Neutralize spreadsheet formula injection in text cells."""
    if isinstance(value, str) and value.startswith(_INJECTION_PREFIXES):
        return f"'{value}"
    return value


def build_snowball_rows(funds: Iterable[ScoredFund]) -> list[dict[str, Any]]:
    """One row dict per fund, ordered by section then price."""
    ordered = sorted(
        funds, key=lambda f: (SECTIONS.index(snowball_section(f)), f.price)
    )
    rows: list[dict[str, Any]] = []
    for f in ordered:
        has_magic = f.magic_number and f.dy > 0
        rows.append(
            {
                "Ticker":               f.ticker,
                "Tipo":                 str(f.fund_type),
                "Segmento":             f.segment or "N/A",
                "Preço":                f"{f.price:.2f}",
                "DY (%)":               f"{f.dy:.2f}",
                "P/VP":                 f"{f.p_vp:.2f}",
                "Liquidez Diária (R$)": format_liquidity(f.liquidity),
                "Vacância (%)":         f"{f.vacancy:.2f}",
                "Score":                f"{f.score:g}",
                "Estratégias":          "; ".join(str(s) for s in f.strategies),
                "Número Mágico":        f.magic_number if has_magic else "N/A",
                "Custo Mágico (R$)":    f"{f.magic_cost:.2f}" if has_magic else "N/A",
                "Seção Bola de Neve":   snowball_section(f),
            }
        )
    return rows


def export_snowball_csv(funds: Iterable[ScoredFund], path: Path) -> Path:
    """Write the snowball CSV (UTF-8, parent dirs created).

    Returns:
        ``path`` as written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = build_snowball_rows(funds)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_HEADERS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows({k: guard_cell(v) for k, v in row.items()} for row in rows)
    return path


def section_summary(rows: list[dict[str, Any]]) -> dict[str, int]:
    """Row count per section, in section order (empty sections omitted)."""
    counts = Counter(row["Seção Bola de Neve"] for row in rows)
    return {s: counts[s] for s in SECTIONS if counts[s]}

"""
ASCII terminal formatters for CLI commands.

All formatters accept typed records and return plain multi-line strings
suitable for ``typer.echo()``. No third-party dependencies.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from b3_screener.models.asset import ScoredFund, ScoredStock
from b3_screener.models.market import EconomySnapshot, EtfEntry
from b3_screener.taxonomy.asset_taxonomy import CAUTIONARY_TAGS


def _fmt_optional(value: Optional[float], fmt: str, unknown: str = "n/a") -> str:
    return unknown if value is None else format(value, fmt)


def _fmt_volume(value: float) -> str:
    if value >= 1_000_000_000:
        return f"{value / 1_000_000_000:.1f}B"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.0f}K"
    return f"{value:.0f}"


def _fmt_tags(tags: Sequence[str]) -> str:
    # cautionary tags are alerts, not qualifications
    return ", ".join(f"{t}!" if t in CAUTIONARY_TAGS else str(t) for t in tags)


# ── Economy ───────────────────────────────────────────────────────────────────


def format_economy_banner(economy: EconomySnapshot, benchmark_rate: float) -> str:
    """One-line macro banner. Flags when the benchmark is the fallback value."""
    selic = _fmt_optional(economy.selic, ".2f")
    dollar = _fmt_optional(economy.dollar, ".4f")
    line = f"  USD/BRL: {dollar}   Selic: {selic}%   Benchmark used: {benchmark_rate:.2f}%"
    if economy.selic is None:
        line += "  [FALLBACK]"
    return line


# ── Stocks ────────────────────────────────────────────────────────────────────


def format_stock_table(stocks: Sequence[ScoredStock], top: Optional[int] = None) -> str:
    """Ranked stocks with their category, score, key ratios and tags::

        #  Ticker   Cat    Score   Price    P/L   P/VP    DY%   Upside%  Tags
    """
    rows = list(stocks[:top] if top else stocks)
    lines = ["", f"=== Stocks ({len(rows)} of {len(stocks)}) ==="]
    if not rows:
        lines.append("  (no stocks passed the screen)")
        return "\n".join(lines)

    header = (
        f"  {'#':>3}  {'Ticker':<7}  {'Cat':<5}  {'Score':>5}  {'Price':>8}  "
        f"{'P/L':>6}  {'P/VP':>5}  {'DY%':>6}  {'Upside%':>8}  Tags"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) + 10))
    for i, s in enumerate(rows, start=1):
        cat = "STAR" if s.category == "STAR" else "OPP"
        lines.append(
            f"  {i:>3}  {s.ticker:<7}  {cat:<5}  {s.score:>5}  {s.cotacao:>8.2f}  "
            f"{s.pl:>6.2f}  {s.p_vp:>5.2f}  {s.dividend_yield:>6.2f}  {s.upside:>8.1f}  "
            f"{_fmt_tags(s.strategies)}"
        )
    return "\n".join(lines)


# ── Funds ─────────────────────────────────────────────────────────────────────


def format_fund_table(funds: Sequence[ScoredFund], top: Optional[int] = None) -> str:
    """Ranked funds with type, score, yield, P/VP, liquidity and magic number."""
    rows = list(funds[:top] if top else funds)
    lines = ["", f"=== Funds ({len(rows)} of {len(funds)}) ==="]
    if not rows:
        lines.append("  (no funds passed the screen)")
        return "\n".join(lines)

    header = (
        f"  {'#':>3}  {'Ticker':<7}  {'Type':<6}  {'Cat':<11}  {'Score':>5}  "
        f"{'Price':>8}  {'DY%':>6}  {'P/VP':>5}  {'Liq':>7}  {'Magic':>5}  Tags"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) + 10))
    for i, f in enumerate(rows, start=1):
        lines.append(
            f"  {i:>3}  {f.ticker:<7}  {str(f.fund_type):<6}  {str(f.category):<11}  "
            f"{f.score:>5.1f}  {f.price:>8.2f}  {f.dy:>6.2f}  {f.p_vp:>5.2f}  "
            f"{_fmt_volume(f.liquidity):>7}  {f.magic_number:>5}  "
            f"{_fmt_tags(f.strategies)}"
        )
    return "\n".join(lines)


# ── ETFs / history ────────────────────────────────────────────────────────────


def format_etf_table(etfs: Sequence[EtfEntry]) -> str:
    lines = ["", "=== ETFs ==="]
    for e in etfs:
        lines.append(f"  {e.ticker:<7}  {e.etf_type:<14}  {e.name}")
    return "\n".join(lines)


def format_history_list(files: Sequence[Path]) -> str:
    if not files:
        return "  (no saved runs)"
    return "\n".join(f"  {p.name}" for p in files)

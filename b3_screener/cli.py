"""
B3 Screener — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs (before any network request).
  4. Run the screening / export / backfill.
  5. Report the result to stdout; exit code 1 on failure.

Install and run::

    pip install -e .
    b3-screener --help
    b3-screener validate-config
    b3-screener screen fii --min-yield 9 --min-liquidity 1000000 --save
    b3-screener export-data --history
    b3-screener export-csv
    b3-screener backfill-dividends HGLG11 KNCA11 --force
    b3-screener history
    b3-screener dashboard --top 10
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer

app = typer.Typer(
    name="b3-screener",
    help="Brazilian stock and real-estate fund screener.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from b3_screener.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from b3_screener.utils.logging import configure_logging
    configure_logging(config.logging)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Fallback benchmark: {config.screening.fallback_benchmark_rate:.2f}%")
    typer.echo(
        f"  Enrichment:         concurrency={config.enrichment.concurrency} "
        f"delay={config.enrichment.delay_ms}ms timeout={config.enrichment.timeout_seconds}s"
    )
    typer.echo(f"  Snapshot path:      {config.output.snapshot_path}")
    typer.echo(f"  History dir:        {config.output.history_dir}")
    typer.echo(f"  Brapi token set:    {bool(config.sources.brapi_token)}")
    typer.echo(f"  Log level:          {config.logging.level}")
    typer.echo(f"  Debug mode:         {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        dumped = config.model_dump()
        dumped["sources"]["brapi_token"] = "***" if config.sources.brapi_token else None
        typer.echo(json.dumps(dumped, indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("screen")
def screen(
    asset_type: str = typer.Argument("stock", help='Asset class: "stock" or "fii".'),
    min_liquidity: float = typer.Option(0.0, "--min-liquidity", help="Minimum daily volume (BRL)."),
    min_yield: float = typer.Option(0.0, "--min-yield", help="Minimum dividend yield (%)."),
    max_p_vp: float = typer.Option(999.0, "--max-pvp", help="Maximum price/book."),
    min_p_vp: float = typer.Option(0.0, "--min-pvp", help="Minimum price/book."),
    max_debt_eq: float = typer.Option(999.0, "--max-debt", help="Maximum debt/equity (stocks only)."),
    min_score: float = typer.Option(0.0, "--min-score", help="Minimum score."),
    exclude: Optional[List[str]] = typer.Option(
        None,
        "--exclude",
        help="Strategy tag to exclude (repeatable), e.g. --exclude DISTRESSED_RISK.",
    ),
    save: bool = typer.Option(False, "--save", help="Write a dated history file."),
    top: int = typer.Option(20, "--top", help="Rows to print (0 = all)."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Run an ad-hoc filtered screen for one asset class."""
    from b3_screener.models.asset import ScoredStock
    from b3_screener.pipeline.screener import Screener, ScreenerConfigError
    from b3_screener.reporting.formatters import format_fund_table, format_stock_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        screener = (
            Screener(config)
            .asset_type(asset_type)
            .min_liquidity(min_liquidity)
            .min_yield(min_yield)
            .max_p_vp(max_p_vp)
            .min_p_vp(min_p_vp)
            .max_debt_eq(max_debt_eq)
            .min_score(min_score)
            .exclude_strategies(list(exclude or []))
            .save(save)
        )
    except ScreenerConfigError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"screen | type={screener.config.asset_type.value}")
    results = screener.run()
    limit = top or None
    if screener.config.asset_type.value == "stock":
        typer.echo(format_stock_table([r for r in results if isinstance(r, ScoredStock)], limit))
    else:
        typer.echo(format_fund_table([r for r in results if not isinstance(r, ScoredStock)], limit))
    typer.echo("")
    typer.echo(f"[OK] {len(results)} assets passed the screen.")


@app.command("export-data")
def export_data(
    output: Optional[str] = typer.Option(
        None, "--output", help="Override snapshot path (default from config)."
    ),
    history: bool = typer.Option(False, "--history", help="Also write dated history files."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Screen everything and write the dashboard snapshot (data.js).

    Exits with code 1 and leaves the existing snapshot untouched when no
    stocks and no funds could be discovered.
    """
    from b3_screener.pipeline.export import SnapshotExportRun

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    run = SnapshotExportRun(config, snapshot_path=Path(output) if output else None)
    result = run.run_sync(save_history_files=history)

    for err in result.errors:
        typer.echo(f"  [WARN] {err}", err=True)

    if result.status == "failed":
        typer.echo("[ERROR] No data discovered; snapshot was not overwritten.", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  Stocks: {result.stock_count}")
    typer.echo(f"  Funds:  {result.fund_count}")
    for path in result.history_files:
        typer.echo(f"  History: {path}")
    typer.echo(f"[OK] Snapshot written to {result.snapshot_path} (status={result.status}).")


@app.command("export-csv")
def export_csv(
    output: Optional[str] = typer.Option(
        None, "--output", help="Override CSV path (default from config)."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Export screened funds as a snowball ("bola de neve") CSV."""
    from b3_screener.pipeline.orchestrator import ReconciliationOrchestrator
    from b3_screener.reporting.export import (
        build_snowball_rows,
        export_snowball_csv,
        section_summary,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    result = ReconciliationOrchestrator(config).run_sync(include_stocks=False, include_funds=True)
    if not result.funds:
        typer.echo("[ERROR] No funds discovered; CSV not written.", err=True)
        raise typer.Exit(code=1)

    path = export_snowball_csv(result.funds, Path(output or config.output.csv_path))
    typer.echo(f"  Funds exported: {len(result.funds)}")
    for section, count in section_summary(build_snowball_rows(result.funds)).items():
        typer.echo(f"    {section}: {count}")
    typer.echo(f"[OK] CSV written to {path}.")


@app.command("backfill-dividends")
def backfill_dividends(
    tickers: List[str] = typer.Argument(..., help="Tickers to backfill, e.g. HGLG11 PETR4."),
    force: bool = typer.Option(False, "--force", help="Refetch even when the cache is fresh."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Fetch and cache full dividend history per ticker (history/{TICKER}.json)."""
    from b3_screener.ingestion.dividend_history import DividendHistoryStore
    from b3_screener.ingestion.investidor10_client import Investidor10Client

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    store = DividendHistoryStore(
        Path(config.output.history_dir),
        client=Investidor10Client(base_url=config.sources.investidor10_base_url),
        cache_hours=config.output.dividend_cache_hours,
        delay_seconds=config.enrichment.delay_ms / 1000.0,
    )
    result = asyncio.run(store.backfill(tickers, force=force))

    typer.echo(f"  Written: {', '.join(result.written) or '-'}")
    typer.echo(f"  Fresh (skipped): {', '.join(result.skipped) or '-'}")
    typer.echo(f"  No history: {', '.join(result.empty) or '-'}")
    if result.empty and not result.written and not result.skipped:
        typer.echo("[ERROR] No dividend history found for any ticker.", err=True)
        raise typer.Exit(code=1)
    typer.echo("[OK] Backfill complete.")


@app.command("history")
def history(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """List saved screening runs, newest first."""
    from b3_screener.reporting.formatters import format_history_list
    from b3_screener.reporting.snapshot import list_history_files

    config = _load_config_or_exit(config_path)
    history_dir = Path(config.output.history_dir)
    typer.echo(f"Saved runs in {history_dir}:")
    typer.echo(format_history_list(list_history_files(history_dir)))


@app.command("dashboard")
def dashboard(
    top: int = typer.Option(10, "--top", help="Rows per table."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Print economy, top stocks, top funds and ETFs to the console."""
    from b3_screener.ingestion.fixed_income import list_etfs
    from b3_screener.pipeline.orchestrator import ReconciliationOrchestrator
    from b3_screener.reporting.formatters import (
        format_economy_banner,
        format_etf_table,
        format_fund_table,
        format_stock_table,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    result = ReconciliationOrchestrator(config).run_sync()
    typer.echo("=== Economy ===")
    typer.echo(format_economy_banner(result.economy, result.benchmark_rate))
    typer.echo(format_stock_table(result.stocks, top))
    typer.echo(format_fund_table(result.funds, top))
    typer.echo(format_etf_table(list_etfs()))
    typer.echo("")
    if result.status == "failed":
        typer.echo("[ERROR] No data discovered.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"[OK] status={result.status}")


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()

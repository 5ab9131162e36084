"""
b3_screener.reporting — Snapshot persistence, CSV export and console formatting.

Modules:
  snapshot   — ``data.js`` dashboard snapshot and dated history files.
  export     — Snowball ("bola de neve") CSV export of scored funds.
  formatters — ASCII tables for Typer CLI commands.
"""

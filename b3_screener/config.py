"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``B3_SCREENER_*`` prefix (plus ``BRAPI_TOKEN``)

Entry point: ``load_config(config_path=None) -> AppConfig``

The orchestrator, the export run and every CLI command receive an
``AppConfig`` instance — never raw dicts or env var lookups scattered
through the codebase.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class SourcesConfig(BaseModel):
    """Provider endpoints and HTTP settings."""

    model_config = ConfigDict(frozen=True)

    fundamentus_stocks_url: str = "https://www.fundamentus.com.br/resultado.php"
    fundamentus_funds_url: str = "https://www.fundamentus.com.br/fii_resultado.php"
    brapi_base_url: str = "https://brapi.dev/api"
    investidor10_base_url: str = "https://investidor10.com.br"
    selic_url: str = (
        "https://api.bcb.gov.br/dados/serie/bcdata.sgs.432/dados/ultimos/1?formato=json"
    )
    dollar_url: str = "https://economia.awesomeapi.com.br/last/USD-BRL"
    http_timeout_seconds: float = 20.0
    brapi_token: Optional[str] = None


class EnrichmentConfig(BaseModel):
    """Bulk metadata fetch settings (Investidor10 worker pool)."""

    model_config = ConfigDict(frozen=True)

    concurrency: int = 5
    delay_ms: int = 150
    timeout_seconds: float = 12.0
    enrich_top_stocks: int = 0

    @field_validator("concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"concurrency must be >= 1, got {v}.")
        return v

    @field_validator("delay_ms", "enrich_top_stocks")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"value must be >= 0, got {v}.")
        return v


class ScreeningConfig(BaseModel):
    """Thresholds applied by the reconciliation orchestrator.

    The scoring tables themselves live in ``b3_screener.scoring`` and are not
    configurable; only the pre/post filters around them are.
    """

    model_config = ConfigDict(frozen=True)

    fallback_benchmark_rate: float = 11.75
    stock_min_liquidity: float = 200_000
    stock_star_min_liquidity: float = 300_000
    fund_min_liquidity: float = 200_000
    fund_discovery_min_score: float = 4.0
    fund_min_score: float = 5.5

    @field_validator("fallback_benchmark_rate")
    @classmethod
    def validate_rate(cls, v: float) -> float:
        if not 0.0 < v < 100.0:
            raise ValueError(f"fallback_benchmark_rate must be in (0, 100), got {v}.")
        return v


class OutputConfig(BaseModel):
    """Filesystem targets for snapshot, history and CSV output."""

    model_config = ConfigDict(frozen=True)

    snapshot_path: str = "data.js"
    history_dir: str = "history"
    csv_path: str = "bola_de_neve.csv"
    dividend_cache_hours: float = 24.0


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "logs/screener.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    ``AppConfig()`` with no arguments gives the built-in defaults, which is
    what the tests use.
    """

    model_config = ConfigDict(frozen=True)

    sources: SourcesConfig = SourcesConfig()
    enrichment: EnrichmentConfig = EnrichmentConfig()
    screening: ScreeningConfig = ScreeningConfig()
    output: OutputConfig = OutputConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply B3_SCREENER_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply environment overrides to the raw config dict.

    Supported overrides:
      B3_SCREENER_LOG_LEVEL      → raw["logging"]["level"]
      B3_SCREENER_HISTORY_DIR    → raw["output"]["history_dir"]
      B3_SCREENER_SNAPSHOT_PATH  → raw["output"]["snapshot_path"]
      B3_SCREENER_DEBUG          → raw["debug"]
      BRAPI_TOKEN                → raw["sources"]["brapi_token"]
    """
    if log_level := os.environ.get("B3_SCREENER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if history_dir := os.environ.get("B3_SCREENER_HISTORY_DIR"):
        raw.setdefault("output", {})["history_dir"] = history_dir

    if snapshot_path := os.environ.get("B3_SCREENER_SNAPSHOT_PATH"):
        raw.setdefault("output", {})["snapshot_path"] = snapshot_path

    if debug := os.environ.get("B3_SCREENER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    if token := os.environ.get("BRAPI_TOKEN"):
        raw.setdefault("sources", {})["brapi_token"] = token

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        sources=SourcesConfig(**raw.get("sources", {})),
        enrichment=EnrichmentConfig(**raw.get("enrichment", {})),
        screening=ScreeningConfig(**raw.get("screening", {})),
        output=OutputConfig(**raw.get("output", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )

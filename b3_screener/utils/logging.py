"""
Logging setup for the B3 screener.

``configure_logging(config)`` is called once by the CLI. Library modules only
do ``logger = logging.getLogger(__name__)``.

Provider failures carry their context as ``extra=`` fields so that a run over
several hundred tickers can be grepped by source or ticker::

    logger.warning("Fund source %s failed: %s", name, exc, extra={"source": name})

Text lines append the context after a bar::

    2026-03-02T12:00:00Z [WARNING] b3_screener.pipeline.orchestrator: Fund source fi-infra failed: boom | source=fi-infra

JSON lines (``json_format = true``) put it at the top level::

    {"ts": "2026-03-02T12:00:00Z", "level": "WARNING", "logger": "...",
     "msg": "...", "source": "fi-infra"}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from b3_screener.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Per-request lines from these would drown a screening run.
QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")

_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Fields passed through ``extra=``, in insertion order."""
    return {
        key: val
        for key, val in record.__dict__.items()
        if key not in _RESERVED and not key.startswith("_")
    }


class ContextTextFormatter(logging.Formatter):
    """Plain-text lines with ``| key=value`` context appended."""

    def __init__(self) -> None:
        super().__init__(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={val}" for key, val in context.items())
        head, sep, tail = line.partition("\n")
        return f"{head} | {pairs}{sep}{tail}"


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record: ``ts``, ``level``, ``logger``, ``msg``,
    ``exc`` when an exception is attached, then the ``extra=`` context."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        payload.update(record_context(record))
        return json.dumps(payload, default=str, ensure_ascii=False)


def _with(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(config: "LoggingConfig") -> None:
    """Configure the root logger from the ``[logging]`` config section.

    Always logs to stdout; also to ``config.log_file`` when set (its parent
    directory is created). ``config.json_format`` switches both handlers to
    JSON lines.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter: logging.Formatter = (
        JsonLineFormatter() if config.json_format else ContextTextFormatter()
    )

    handlers = [_with(logging.StreamHandler(sys.stdout), level, formatter)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _with(logging.FileHandler(log_path, encoding="utf-8"), level, formatter)
        )

    logging.basicConfig(level=level, handlers=handlers, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

"""
Logging setup for the tradesim engine.

Every line emitted while a backtest is running carries that run's short id
plus the strategy and ticker being replayed, so interleaved output from a
sweep can be split back into individual runs. Output is either a
human-readable line or one JSON object per line.
"""

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import UTC, datetime

HUMAN_FORMAT = "%(timestamp)s | %(levelname)-8s | %(name)s | %(run_tag)s%(message)s"

# Dependency loggers that are too chatty below WARNING
QUIET_LOGGERS = ("pandas",)


@dataclass(frozen=True)
class RunTag:
    """Identifies the backtest a log line belongs to."""

    run_id: str
    strategy: str = ""
    ticker: str = ""

    def label(self) -> str:
        if self.strategy or self.ticker:
            return f"{self.run_id} {self.strategy}/{self.ticker}"
        return self.run_id


current_run: ContextVar[RunTag | None] = ContextVar("current_run", default=None)


class TradesimFormatter(logging.Formatter):
    """
    Human-readable formatter.

    Adds `timestamp` (UTC ISO-8601) and `run_tag` ("[id strategy/ticker] "
    or empty outside a run) to the record before formatting.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.timestamp = datetime.now(UTC).isoformat()
        tag = current_run.get()
        record.run_tag = f"[{tag.label()}] " if tag else ""
        return super().format(record)


class JsonFormatter(logging.Formatter):
    """One JSON object per line for batch jobs and log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, str] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }
        tag = current_run.get()
        if tag is not None:
            payload["run_id"] = tag.run_id
            payload["strategy"] = tag.strategy
            payload["ticker"] = tag.ticker
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(level: str = "INFO", json_output: bool = False) -> logging.Logger:
    """
    Configure the root logger with a single stdout handler.

    Safe to call repeatedly; earlier handlers are replaced. Unknown level
    names fall back to INFO.

    Returns:
        Configured root logger
    """
    root = logging.getLogger()
    root.handlers.clear()

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(JsonFormatter() if json_output else TradesimFormatter(HUMAN_FORMAT))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module (pass __name__)."""
    return logging.getLogger(name)


@contextmanager
def run_context(run_id: str, strategy: str = "", ticker: str = "") -> Iterator[RunTag]:
    """Tag every log line emitted inside the block with the given run."""
    tag = RunTag(run_id, strategy, ticker)
    token = current_run.set(tag)
    try:
        yield tag
    finally:
        current_run.reset(token)

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator, Optional

# Context variables for structured logging
run_id_var: ContextVar[str] = ContextVar("run_id", default="-")
engine_var: ContextVar[str] = ContextVar("engine", default="-")


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_var.get()
        record.engine = engine_var.get()
        return True


class SimpleStructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
        msg = record.getMessage()
        return (
            f"{ts} level={record.levelname} logger={record.name} "
            f"run_id={getattr(record, 'run_id', '-')} engine={getattr(record, 'engine', '-')} "
            f"msg={msg}"
        )


def setup_logging(level: str = "INFO") -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(lvl)

    # Replace handlers (repeated CLI/test setup must not duplicate lines)
    root.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(lvl)
    handler.addFilter(ContextFilter())
    handler.setFormatter(SimpleStructuredFormatter())

    root.addHandler(handler)


def set_log_context(*, run_id: str, engine: Optional[str] = None) -> None:
    run_id_var.set(run_id)
    if engine is not None:
        engine_var.set(engine)


@contextmanager
def engine_context(engine_name: str) -> Iterator[None]:
    """Tag log lines with `engine_name` for the duration of one projection call."""
    token = engine_var.set(engine_name)
    try:
        yield
    finally:
        engine_var.reset(token)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

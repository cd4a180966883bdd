from __future__ import annotations

import logging

from finproj.core.config import load_settings
from finproj.utils.logging import ContextFilter, SimpleStructuredFormatter, engine_context, engine_var, set_log_context


def test_settings_from_yaml_with_env_override(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "app:\n  log_level: debug\n"
        "engine:\n  debt_max_months: 360\n  redistribution_epsilon: 0.05\n  combined_rate_weight: 0.7\n",
        encoding="utf-8",
    )
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("REDISTRIBUTION_EPSILON", raising=False)
    monkeypatch.setenv("DEBT_MAX_MONTHS", "120")
    monkeypatch.setenv("COMBINED_RATE_WEIGHT", "")

    s = load_settings(str(cfg))
    assert s.log_level == "DEBUG"
    assert s.debt_max_months == 120
    assert s.redistribution_epsilon == 0.05
    assert s.combined_rate_weight == 0.7


def test_settings_defaults_without_file(tmp_path, monkeypatch):
    for key in ("DEBT_MAX_MONTHS", "REDISTRIBUTION_EPSILON", "COMBINED_RATE_WEIGHT", "COLLECTION_PROBABILITY"):
        monkeypatch.delenv(key, raising=False)
    s = load_settings(str(tmp_path / "missing.yaml"))
    assert s.debt_max_months == 600
    assert s.redistribution_epsilon == 0.01
    assert s.combined_rate_weight == 0.5
    assert s.collection_probability == 0.8


def test_structured_log_line_carries_context():
    set_log_context(run_id="abc123", engine="savings")
    record = logging.LogRecord("savings_engine", logging.INFO, __file__, 1, "savings_projection years=5", None, None)
    ContextFilter().filter(record)
    line = SimpleStructuredFormatter().format(record)
    assert "run_id=abc123" in line
    assert "engine=savings" in line
    assert line.endswith("msg=savings_projection years=5")


def test_engine_context_is_scoped():
    set_log_context(run_id="abc123", engine="cli")
    with engine_context("debt_payoff"):
        assert engine_var.get() == "debt_payoff"
    assert engine_var.get() == "cli"

from __future__ import annotations

import json
import logging

import pytest

from finproj.tools.projection_tools import get_cache
from finproj.utils.projection_cli import EXIT_INVALID, EXIT_UNPAYABLE, main


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    get_cache().clear()
    yield
    root.handlers = handlers
    root.setLevel(level)


def _run(tmp_path, cmd, payload, *extra):
    path = tmp_path / "payload.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main(["--log-level", "ERROR", cmd, str(path), *extra])
    return exc.value.code


def test_savings_summary(tmp_path, capsys):
    rc = _run(tmp_path, "savings", {"initial_amount": 1000, "years": 1, "strategy": "moderate"})
    assert rc == 0
    out = capsys.readouterr().out
    assert "Future value: 1,061.68" in out


def test_debts_json_output(tmp_path, capsys):
    payload = {"debts": [{"id": "loan", "monto_actual": 1000, "tasa_interes": 12, "pagos_minimos": 100}],
               "start_date": "2025-01-01"}
    rc = _run(tmp_path, "debts", payload, "--json")
    assert rc == 0
    data = json.loads(capsys.readouterr().out)
    assert data["months_to_pay_off"] == 11
    assert data["payoff_date"] == "2025-12-01"


def test_unpayable_debts_exit_code(tmp_path, capsys):
    payload = {"debts": [{"id": "huge", "monto_actual": 100000, "tasa_interes": 100, "pagos_minimos": 1}]}
    rc = _run(tmp_path, "debts", payload)
    assert rc == EXIT_UNPAYABLE
    env = json.loads(capsys.readouterr().out)
    assert env["code"] == "UNPAYABLE_DEBT_SET"
    assert env["details"]["months"] == 600


def test_invalid_surplus_exit_code(tmp_path, capsys):
    payload = {
        "budget": {"category": "groceries", "amount": 500},
        "spent": 100,
        "strategy": {"type": "redistribute", "redistribution_targets": [{"category_id": "a", "percentage": 60}]},
    }
    rc = _run(tmp_path, "surplus", payload)
    assert rc == EXIT_INVALID
    env = json.loads(capsys.readouterr().out)
    assert env["code"] == "INVALID_PARAMETER"


def test_compare_debts_reports_unpayable_minimums(tmp_path, capsys):
    payload = {"debts": [{"id": "card", "monto_actual": 10000, "tasa_interes": 24, "pagos_minimos": 150}],
               "extra_payment": 300, "start_date": "2025-01-01"}
    rc = _run(tmp_path, "compare-debts", payload)
    assert rc == 0
    out = capsys.readouterr().out
    assert "Snowball (smallest balance first): 30 months" in out
    assert out.count("minimums alone never pay off") == 3


def test_non_numeric_extra_payment_exit_code(tmp_path, capsys):
    rc = _run(tmp_path, "debts", {"debts": [], "extra_payment": "abc"})
    assert rc == EXIT_INVALID
    env = json.loads(capsys.readouterr().out)
    assert env["code"] == "INVALID_PARAMETER"
    assert env["details"]["field"] == "extra_payment"

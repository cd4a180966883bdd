from __future__ import annotations

import pytest

from finproj.tools.projection_tools import (
    get_cache, tool_allocate_surplus, tool_compare_debt_strategies, tool_compare_savings_strategies,
    tool_project_collections, tool_project_debts, tool_project_savings,
)
from finproj.utils.errors import InvalidParameter

STORED_DEBTS = [
    {"id": "visa", "userId": "u1", "tipo": "credit_card", "monto": 6000, "monto_actual": 4500,
     "tasa_interes": 22.9, "pagos_minimos": 135, "fecha_vencimiento": "2026-11-05T00:00:00.000Z"},
    {"id": "car", "userId": "u1", "tipo": "car_loan", "monto": 18000, "monto_actual": 9200,
     "tasa_interes": 6.5, "pagos_minimos": 310},
]


@pytest.fixture(autouse=True)
def _fresh_cache():
    get_cache().clear()
    yield
    get_cache().clear()


def test_debts_tool_maps_stored_records():
    out = tool_project_debts({"debts": STORED_DEBTS, "extra_payment": 200, "strategy": "avalanche",
                              "start_date": "2025-01-01"})
    assert out["strategy"] == "avalanche"
    assert out["months_to_pay_off"] > 0
    assert out["payoff_date"].startswith("20")
    assert out["payoff_order"][0]["debt_id"] == "visa"


def test_debts_tool_memoizes_by_input():
    payload = {"debts": STORED_DEBTS, "extra_payment": 100, "start_date": "2025-01-01"}
    cache = get_cache()
    first = tool_project_debts(payload)
    hits = cache.hits
    first["months_to_pay_off"] = -1  # caller mutation must not leak into the cache
    second = tool_project_debts(dict(reversed(list(payload.items()))))
    assert cache.hits == hits + 1
    assert second["months_to_pay_off"] > 0


def test_debts_tool_rejects_malformed_payload():
    with pytest.raises(InvalidParameter):
        tool_project_debts({"debts": [{"monto_actual": "lots", "tasa_interes": 5, "pagos_minimos": 10}]})


def test_compare_debts_tool_returns_all_strategies():
    out = tool_compare_debt_strategies({"debts": STORED_DEBTS, "extra_payment": 150, "start_date": "2025-01-01"})
    assert [p["strategy"] for p in out["projections"]] == ["avalanche", "snowball", "combined"]
    assert all(s["months_saved"] >= 0 for s in out["savings_vs_minimum"])


def test_collections_tool_treats_records_as_incoming():
    out = tool_project_collections({
        "debts": [{"id": "ana", "tipo": "personal_loan", "monto_actual": 800, "pagos_minimos": 100}],
        "strategy": "conservative",
        "probability": 0.8,
        "start_date": "2025-01-01",
    })
    assert out["months_to_collect"] == 16
    assert out["completion_date"] == "2026-05-01"


def test_savings_tool_accepts_camel_case_and_custom_rate():
    out = tool_project_savings({"initialAmount": 1000, "monthlyContribution": 0, "years": 1, "strategy": "moderate",
                                "targetAmount": 1050})
    assert out["future_value"] == pytest.approx(1061.68, abs=0.01)
    assert out["years_to_target"] == 1
    assert out["months_to_target"] == 10

    slider = tool_project_savings({"initialAmount": 1000, "years": 1, "annualRatePercent": 6})
    assert slider["strategy"] == "custom"
    assert slider["future_value"] == out["future_value"]


def test_savings_tool_rejects_bad_horizon():
    with pytest.raises(InvalidParameter):
        tool_project_savings({"initialAmount": 1000, "years": 60})
    with pytest.raises(InvalidParameter):
        tool_project_savings({"initialAmount": 1000, "years": "ten"})


def test_compare_savings_tool():
    out = tool_compare_savings_strategies({"initial_amount": 1000, "monthly_contribution": 200, "years": 10})
    assert len(out["projections"]) == 3


def test_surplus_tool_parses_camel_case_strategy():
    out = tool_allocate_surplus({
        "budget": {"id": "b1", "category": "groceries", "amount": 500},
        "spent": 380,
        "strategy": {"type": "redistribute", "redistributionTargets": [
            {"categoryId": "fun", "percentage": 60},
            {"categoryId": "emergency", "percentage": 40},
        ]},
    })
    assert out["kind"] == "redistribute"
    assert [t["amount"] for t in out["transactions"]] == pytest.approx([72, 48])


def test_surplus_tool_uses_budget_strategy():
    out = tool_allocate_surplus({
        "budget": {"category": "fun", "amount": 200, "surplusStrategy": {"type": "rollover"}},
        "spent": 150,
        "next_period_amount": 250,
    })
    assert out["new_budget_amount"] == pytest.approx(300)


def test_surplus_tool_rejects_unknown_strategy_type():
    with pytest.raises(InvalidParameter):
        tool_allocate_surplus({"budget": {"category": "fun", "amount": 200}, "spent": 0, "strategy": {"type": "burn"}})


def test_compare_debts_tool_when_minimums_never_pay_off():
    payload = {"debts": [{"id": "card", "monto_actual": 10000, "tasa_interes": 24, "pagos_minimos": 150}],
               "extra_payment": 300, "start_date": "2025-01-01"}
    assert tool_project_debts(payload)["months_to_pay_off"] == 30
    out = tool_compare_debt_strategies(payload)
    assert len(out["projections"]) == 3
    assert all(s["baseline_unpayable"] for s in out["savings_vs_minimum"])
    assert all(s["months_saved"] is None for s in out["savings_vs_minimum"])


def test_non_numeric_scalars_are_invalid_parameters():
    with pytest.raises(InvalidParameter):
        tool_project_debts({"debts": [], "extra_payment": "abc"})
    with pytest.raises(InvalidParameter):
        tool_allocate_surplus({"budget": {"category": "food", "amount": 100}, "spent": "lots"})
    with pytest.raises(InvalidParameter):
        tool_allocate_surplus({"budget": {"category": "food", "amount": 100}, "spent": 10,
                               "strategy": {"type": "rollover"}, "next_period_amount": "NaN"})

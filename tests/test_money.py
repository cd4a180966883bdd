from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from finproj.utils.errors import InvalidParameter
from finproj.utils.money import add_months, monthly_rate_from_annual, require_non_negative, round_currency
from finproj.utils.validators import check_redistribution_targets, validate_redistribution_targets


def test_monthly_rate_from_annual():
    assert monthly_rate_from_annual(6) == Decimal("0.005")
    assert monthly_rate_from_annual("0") == 0
    with pytest.raises(InvalidParameter):
        monthly_rate_from_annual(-0.5)


@pytest.mark.parametrize("bad", ["abc", "", None, float("nan"), float("inf"), Decimal("NaN")])
def test_non_numeric_input_is_invalid_parameter(bad):
    with pytest.raises(InvalidParameter) as exc:
        require_non_negative(bad, "extra_payment")
    assert exc.value.field == "extra_payment"


def test_round_currency_half_up():
    assert round_currency("1061.675") == Decimal("1061.68")
    assert round_currency(2.344) == Decimal("2.34")


def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 3, 15), 12) == date(2025, 3, 15)


def _targets(*pcts):
    return [{"category_id": f"c{i}", "percentage": p} for i, p in enumerate(pcts)]


@pytest.mark.parametrize("pcts", [(100,), (60, 40), ("33.33", "33.33", "33.34"), ("50", "49.995"), ("50", "50.005")])
def test_accepts_targets_summing_to_100(pcts):
    assert validate_redistribution_targets(_targets(*pcts))


@pytest.mark.parametrize("pcts", [("50", "49.9"), ("50", "50.1"), (60,), ()])
def test_rejects_targets_off_100(pcts):
    assert not validate_redistribution_targets(_targets(*pcts))


def test_rejects_non_positive_and_duplicate_targets():
    assert not validate_redistribution_targets(_targets(0, 100))
    assert not validate_redistribution_targets(_targets(-10, 110))
    dup = [{"category_id": "x", "percentage": 50}, {"category_id": "x", "percentage": 50}]
    assert not validate_redistribution_targets(dup)


def test_report_lists_every_problem():
    rep = check_redistribution_targets([{"category_id": "x", "percentage": 0}, {"category_id": "x", "percentage": 20}])
    assert not rep.ok
    msgs = " | ".join(e.message for e in rep.errors)
    assert "Duplicate" in msgs
    assert "(0, 100]" in msgs
    assert "sum to 100" in msgs


def test_report_warns_when_total_is_within_tolerance():
    rep = check_redistribution_targets(_targets("50", "50.005"))
    assert rep.ok
    assert len(rep.warnings) == 1
    assert "100.005" in rep.warnings[0].message
    assert check_redistribution_targets(_targets(60, 40)).warnings == []


def test_report_flags_non_numeric_percentage():
    rep = check_redistribution_targets(_targets("half", 50))
    assert not rep.ok
    assert rep.errors[0].location == "targets[0]"

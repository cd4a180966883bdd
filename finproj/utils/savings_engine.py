from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Tuple

from finproj.utils.errors import InvalidParameter
from finproj.utils.logging import get_logger
from finproj.utils.money import MONTHS_PER_YEAR, _d, monthly_rate_from_annual, require_non_negative
from finproj.utils.savings_models import (
    CustomRate, SavingsProjectionParams, SavingsProjectionResult, SavingsStrategy, YearlySample,
)

logger = get_logger("savings_engine")

MAX_YEARS = 50


def _resolve_rate(params: SavingsProjectionParams) -> Tuple[str, Decimal]:
    s = params.strategy
    if isinstance(s, CustomRate):
        rate = _d(s.annual_rate_pct)
        if rate < 0:
            raise InvalidParameter(f"custom annual rate cannot be negative, got {rate}", field="strategy")
        return "custom", rate
    return s.value, s.annual_rate_pct


def _check_params(params: SavingsProjectionParams) -> None:
    require_non_negative(params.initial_amount, "initial_amount")
    require_non_negative(params.monthly_contribution, "monthly_contribution")
    if params.years <= 0 or params.years > MAX_YEARS:
        raise InvalidParameter(f"years must be between 1 and {MAX_YEARS}, got {params.years}", field="years")
    if params.target_amount is not None:
        require_non_negative(params.target_amount, "target_amount")


def project_savings(params: SavingsProjectionParams) -> SavingsProjectionResult:
    """
    Monthly compounding over `years * 12` months: interest on the running
    balance first, then the month's contribution. One sample per year.
    """
    _check_params(params)
    label, annual_pct = _resolve_rate(params)
    mr = monthly_rate_from_annual(annual_pct)

    initial = _d(params.initial_amount)
    monthly = _d(params.monthly_contribution)
    target = _d(params.target_amount) if params.target_amount is not None else None

    balance = initial
    contributions = initial
    yearly: List[YearlySample] = []
    years_to_target: Optional[int] = None

    for month in range(1, params.years * MONTHS_PER_YEAR + 1):
        balance += balance * mr
        balance += monthly
        contributions += monthly

        if month % MONTHS_PER_YEAR == 0:
            year = month // MONTHS_PER_YEAR
            yearly.append(YearlySample(
                year=year,
                balance=float(balance),
                contributions=float(contributions),
                returns=float(balance - contributions),
            ))
            # first crossing wins
            if target is not None and years_to_target is None and balance >= target:
                years_to_target = year

    logger.debug(
        f"savings_projection strategy={label} rate_pct={annual_pct} years={params.years} "
        f"future_value={balance:.2f} years_to_target={years_to_target}"
    )

    return SavingsProjectionResult(
        strategy=label,
        annual_rate_pct=float(annual_pct),
        future_value=float(balance),
        total_contributions=float(contributions),
        total_returns=float(balance - contributions),
        years_to_target=years_to_target,
        yearly_data=yearly,
    )


def compare_savings_strategies(params: SavingsProjectionParams) -> List[SavingsProjectionResult]:
    """Same inputs under every built-in strategy (any custom rate on `params` is ignored)."""
    return [project_savings(params.model_copy(update={"strategy": s})) for s in SavingsStrategy]


def months_to_target(
    initial_amount,
    monthly_contribution,
    annual_rate_pct,
    target_amount,
    *,
    max_months: int = MAX_YEARS * MONTHS_PER_YEAR,
) -> Optional[int]:
    """
    Month-granular time to reach `target_amount`, independent of any horizon.
    0 when the target is already met; None if not reached within `max_months`.
    """
    balance = require_non_negative(initial_amount, "initial_amount")
    monthly = require_non_negative(monthly_contribution, "monthly_contribution")
    target = require_non_negative(target_amount, "target_amount")
    mr = monthly_rate_from_annual(annual_rate_pct)

    if target <= balance:
        return 0

    months = 0
    while balance < target and months < max_months:
        balance += balance * mr + monthly
        months += 1

    return months if balance >= target else None

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence, Union

from finproj.core.config import SETTINGS
from finproj.utils.debt_models import (
    CollectionProjectionResult, CollectionStrategy, Debt, DebtMonthRow,
    DebtPayoffRow, DebtProjectionResult, PayoffSavings, PayoffStrategy,
)
from finproj.utils.errors import InvalidParameter, UncollectableDebtSet, UnpayableDebtSet
from finproj.utils.logging import get_logger
from finproj.utils.money import _d, add_months, monthly_rate_from_annual, require_non_negative

logger = get_logger("debt_engine")

# Chance of actually recovering a receivable, by debt type.
_COLLECTION_PROBABILITY: Dict[str, Decimal] = {
    "credit_card": Decimal("0.75"),
    "personal_loan": Decimal("0.85"),
    "mortgage": Decimal("0.95"),
    "student_loan": Decimal("0.80"),
    "car_loan": Decimal("0.90"),
    "other": Decimal("0.80"),
}


@dataclass
class _Account:
    """Mutable working copy of a Debt for one simulation run."""

    index: int
    debt_id: str
    balance: Decimal
    rate_pct: Decimal
    monthly_rate: Decimal
    payment: Decimal
    start_balance: Decimal = Decimal(0)

    @property
    def is_open(self) -> bool:
        return self.balance > 0


# -----------------------------
# Priority rules (who receives the extra payment)
#
# Each rule orders the accounts once, from their starting state. Every month
# the extra goes to the first account in that order that is still open, so a
# larger extra never leaves any balance above what a smaller extra leaves.
# -----------------------------
def _order_avalanche(accounts: List[_Account], weight: Decimal) -> List[_Account]:
    return sorted(accounts, key=lambda a: (-a.rate_pct, -a.start_balance, a.index))


def _order_snowball(accounts: List[_Account], weight: Decimal) -> List[_Account]:
    return sorted(accounts, key=lambda a: (a.start_balance, -a.rate_pct, a.index))


def _order_combined(accounts: List[_Account], weight: Decimal) -> List[_Account]:
    """
    Blend of normalized rate (rate / highest rate) and inverse normalized
    size (smallest balance / balance). Both terms lie in (0, 1].
    """
    funded = [a for a in accounts if a.start_balance > 0]
    if not funded:
        return list(accounts)
    max_rate = max(a.rate_pct for a in funded)
    min_balance = min(a.start_balance for a in funded)

    def score(a: _Account) -> Decimal:
        if a.start_balance <= 0:
            return Decimal(0)
        rate_term = a.rate_pct / max_rate
        size_term = min_balance / a.start_balance
        return weight * rate_term + (Decimal(1) - weight) * size_term

    return sorted(accounts, key=lambda a: (-score(a), a.index))


_RANKERS: Dict[PayoffStrategy, Callable[[List[_Account], Decimal], List[_Account]]] = {
    PayoffStrategy.AVALANCHE: _order_avalanche,
    PayoffStrategy.SNOWBALL: _order_snowball,
    PayoffStrategy.COMBINED: _order_combined,
}

_unranked = set(PayoffStrategy) - set(_RANKERS)
if _unranked:
    raise RuntimeError(f"No ranking rule for payoff strategies: {sorted(s.value for s in _unranked)}")


def _coerce_payoff_strategy(strategy: Union[PayoffStrategy, str]) -> PayoffStrategy:
    if isinstance(strategy, PayoffStrategy):
        return strategy
    try:
        return PayoffStrategy(str(strategy).strip().lower())
    except ValueError:
        raise InvalidParameter(f"Unknown payoff strategy: {strategy!r}", field="strategy") from None


def _coerce_collection_strategy(strategy: Union[CollectionStrategy, str]) -> CollectionStrategy:
    if isinstance(strategy, CollectionStrategy):
        return strategy
    try:
        return CollectionStrategy(str(strategy).strip().lower())
    except ValueError:
        raise InvalidParameter(f"Unknown collection strategy: {strategy!r}", field="strategy") from None


def _month_cap(max_months: Optional[int]) -> int:
    cap = SETTINGS.debt_max_months if max_months is None else max_months
    try:
        cap = int(cap)
    except (TypeError, ValueError):
        raise InvalidParameter(f"max_months must be an integer, got {max_months!r}", field="max_months") from None
    if cap < 1:
        raise InvalidParameter(f"max_months must be at least 1, got {cap}", field="max_months")
    return cap


def _label(debt: Debt, i: int) -> str:
    return debt.debt_id or f"debts[{i}]"


def _payoff_accounts(debts: Sequence[Debt]) -> List[_Account]:
    accounts: List[_Account] = []
    for i, debt in enumerate(debts):
        loc = _label(debt, i)
        if debt.direction != "outgoing":
            raise InvalidParameter(f"{loc}: incoming debts are projected with project_collection", field="direction")

        balance = require_non_negative(debt.current_balance, f"{loc}.current_balance")

        if debt.annual_interest_rate_pct is None:
            raise InvalidParameter(f"{loc}: outgoing debt requires an interest rate", field="annual_interest_rate_pct")
        rate = _d(debt.annual_interest_rate_pct)
        if rate <= 0:
            raise InvalidParameter(f"{loc}: interest rate must be positive, got {rate}", field="annual_interest_rate_pct")

        minimum = _d(debt.minimum_payment)
        if minimum <= 0:
            raise InvalidParameter(f"{loc}: minimum payment must be positive, got {minimum}", field="minimum_payment")

        accounts.append(_Account(
            index=i,
            debt_id=debt.debt_id or str(i),
            balance=balance,
            rate_pct=rate,
            monthly_rate=monthly_rate_from_annual(rate),
            payment=minimum,
            start_balance=balance,
        ))
    return accounts


def project_debt_payoff(
    debts: Sequence[Debt],
    extra_payment=0,
    strategy: Union[PayoffStrategy, str] = PayoffStrategy.AVALANCHE,
    *,
    start_date: Optional[date] = None,
    max_months: Optional[int] = None,
    combined_rate_weight=None,
) -> DebtProjectionResult:
    """
    Month-by-month payoff simulation.

    Every open debt accrues interest and then receives its own minimum payment;
    afterwards the whole extra payment goes to the single top-ranked open debt.
    Overshoot is not carried to another debt in the same month.

    Raises UnpayableDebtSet when debts are still open after `max_months`.
    """
    strat = _coerce_payoff_strategy(strategy)
    extra = require_non_negative(extra_payment, "extra_payment")
    cap = _month_cap(max_months)
    weight = _d(SETTINGS.combined_rate_weight if combined_rate_weight is None else combined_rate_weight,
               "combined_rate_weight")
    if weight < 0 or weight > 1:
        raise InvalidParameter(f"combined_rate_weight must be in [0, 1], got {weight}", field="combined_rate_weight")

    accounts = _payoff_accounts(debts)
    priority = _RANKERS[strat](accounts, weight)
    start = start_date or date.today()

    minimum_total = sum((a.payment for a in accounts), Decimal(0))
    monthly_total = (minimum_total + extra) if accounts else Decimal(0)

    total_paid = Decimal(0)
    total_interest = Decimal(0)
    schedule: List[DebtMonthRow] = []
    payoff_order: List[DebtPayoffRow] = []

    month = 0
    while any(a.is_open for a in accounts):
        if month >= cap:
            still_open = [a for a in accounts if a.is_open]
            remaining = sum((a.balance for a in still_open), Decimal(0))
            logger.warning(
                f"payoff_unpayable strategy={strat.value} months={cap} open={len(still_open)} remaining={remaining:.2f}"
            )
            raise UnpayableDebtSet(months=cap, remaining_balance=float(remaining), open_debts=len(still_open))

        month += 1
        paid = Decimal(0)
        interest = Decimal(0)

        for a in accounts:
            if not a.is_open:
                continue
            accrued = a.balance * a.monthly_rate
            a.balance += accrued
            applied = min(a.payment, a.balance)
            a.balance -= applied
            interest += accrued
            paid += applied
            if not a.is_open:
                payoff_order.append(DebtPayoffRow(debt_id=a.debt_id, month=month))

        target = next((a for a in priority if a.is_open), None)
        if extra > 0 and target is not None:
            applied = min(extra, target.balance)
            target.balance -= applied
            paid += applied
            if not target.is_open:
                payoff_order.append(DebtPayoffRow(debt_id=target.debt_id, month=month))

        total_paid += paid
        total_interest += interest
        schedule.append(DebtMonthRow(
            month=month,
            total_payment=float(paid),
            # negative when interest outruns payments
            principal_payment=float(paid - interest),
            interest_payment=float(interest),
            remaining_balance=float(sum((a.balance for a in accounts), Decimal(0))),
        ))

    logger.debug(
        f"payoff_projection strategy={strat.value} debts={len(accounts)} extra={extra} "
        f"months={month} interest={total_interest:.2f}"
    )

    return DebtProjectionResult(
        strategy=strat,
        months_to_pay_off=month,
        total_paid=float(total_paid),
        total_interest=float(total_interest),
        monthly_payment_total=float(monthly_total),
        payoff_date=add_months(start, month),
        schedule=schedule,
        payoff_order=payoff_order,
    )


def compare_payoff_strategies(debts: Sequence[Debt], extra_payment=0, **kwargs) -> List[DebtProjectionResult]:
    return [project_debt_payoff(debts, extra_payment, s, **kwargs) for s in PayoffStrategy]


def extra_payment_savings(
    debts: Sequence[Debt],
    extra_payment,
    strategy: Union[PayoffStrategy, str] = PayoffStrategy.AVALANCHE,
    **kwargs,
) -> PayoffSavings:
    """
    What paying `extra_payment` on top of minimums saves.

    When minimums alone never clear the debts the savings are unbounded:
    the result carries `baseline_unpayable=True` and no saved amounts. The
    run with the extra payment must still be payable.
    """
    boosted = project_debt_payoff(debts, extra_payment, strategy, **kwargs)
    try:
        base = project_debt_payoff(debts, 0, strategy, **kwargs)
    except UnpayableDebtSet:
        logger.info(f"payoff_savings strategy={boosted.strategy.value} baseline=unpayable")
        return PayoffSavings(
            strategy=boosted.strategy,
            extra_payment=float(_d(extra_payment)),
            baseline_unpayable=True,
        )
    return PayoffSavings(
        strategy=boosted.strategy,
        extra_payment=float(_d(extra_payment)),
        months_saved=base.months_to_pay_off - boosted.months_to_pay_off,
        interest_saved=float(_d(base.total_interest) - _d(boosted.total_interest)),
        total_saved=float(_d(base.total_paid) - _d(boosted.total_paid)),
    )


def project_collection(
    debts: Sequence[Debt],
    strategy: Union[CollectionStrategy, str] = CollectionStrategy.AGGRESSIVE,
    probability=None,
    *,
    start_date: Optional[date] = None,
    max_months: Optional[int] = None,
) -> CollectionProjectionResult:
    """
    Expected recovery of incoming debts (receivables). No interest is modelled;
    each month a debt yields minimum_payment * strategy multiplier * probability.
    """
    strat = _coerce_collection_strategy(strategy)
    prob = _d(SETTINGS.collection_probability if probability is None else probability, "probability")
    if prob <= 0 or prob > 1:
        raise InvalidParameter(f"probability must be in (0, 1], got {prob}", field="probability")
    cap = _month_cap(max_months)
    start = start_date or date.today()

    accounts: List[_Account] = []
    expected = Decimal(0)
    monthly_total = Decimal(0)
    for i, debt in enumerate(debts):
        loc = _label(debt, i)
        if debt.direction != "incoming":
            raise InvalidParameter(f"{loc}: outgoing debts are projected with project_debt_payoff", field="direction")
        balance = require_non_negative(debt.current_balance, f"{loc}.current_balance")
        minimum = require_non_negative(debt.minimum_payment, f"{loc}.minimum_payment")
        adjusted = _COLLECTION_PROBABILITY.get(debt.debt_type, _COLLECTION_PROBABILITY["other"]) * prob

        expected += balance * adjusted
        monthly_total += minimum * strat.multiplier
        accounts.append(_Account(
            index=i,
            debt_id=debt.debt_id or str(i),
            balance=balance,
            rate_pct=Decimal(0),
            monthly_rate=Decimal(0),
            payment=minimum * strat.multiplier * adjusted,
        ))

    total_collected = Decimal(0)
    schedule: List[DebtMonthRow] = []
    month = 0
    while any(a.is_open for a in accounts):
        if month >= cap:
            remaining = sum((a.balance for a in accounts if a.is_open), Decimal(0))
            logger.warning(f"collection_incomplete strategy={strat.value} months={cap} remaining={remaining:.2f}")
            raise UncollectableDebtSet(months=cap, remaining_balance=float(remaining))

        month += 1
        collected = Decimal(0)
        for a in accounts:
            if not a.is_open:
                continue
            amount = min(a.payment, a.balance)
            a.balance -= amount
            collected += amount

        total_collected += collected
        schedule.append(DebtMonthRow(
            month=month,
            total_payment=float(collected),
            principal_payment=float(collected),
            interest_payment=0.0,
            remaining_balance=float(sum((a.balance for a in accounts), Decimal(0))),
        ))

    logger.debug(f"collection_projection strategy={strat.value} debts={len(accounts)} months={month}")

    return CollectionProjectionResult(
        strategy=strat,
        probability=float(prob),
        months_to_collect=month,
        total_collected=float(total_collected),
        expected_collection=float(expected),
        monthly_collection_total=float(monthly_total),
        completion_date=add_months(start, month),
        schedule=schedule,
    )

from __future__ import annotations

from decimal import Decimal
from typing import Callable, Dict, Optional, get_args

from finproj.utils.budget_models import (
    AllocationEffect, AllocationTransaction, Budget, IgnoreStrategy, InvestStrategy,
    RedistributeStrategy, RolloverStrategy, SaveStrategy, SurplusStrategy,
)
from finproj.utils.errors import InvalidParameter
from finproj.utils.logging import get_logger
from finproj.utils.money import _d, require_non_negative
from finproj.utils.validators import check_redistribution_targets

logger = get_logger("surplus_allocator")


def _rollover(budget: Budget, surplus: Decimal, strategy: RolloverStrategy,
              next_period_amount: Optional[Decimal]) -> AllocationEffect:
    if surplus == 0:
        return AllocationEffect(kind="rollover", surplus=0.0, description="No surplus to roll over.")
    base = next_period_amount if next_period_amount is not None else _d(budget.amount)
    return AllocationEffect(
        kind="rollover",
        surplus=float(surplus),
        new_budget_amount=float(base + surplus),
        description=f"Roll {surplus} of unspent '{budget.category}' budget into the next period.",
    )


def _delegate(kind: str, text: str) -> Callable:
    def effect(budget: Budget, surplus: Decimal, strategy, next_period_amount) -> AllocationEffect:
        return AllocationEffect(kind=kind, surplus=float(surplus), description=text.format(amount=surplus, category=budget.category))
    return effect


def _redistribute(budget: Budget, surplus: Decimal, strategy: RedistributeStrategy,
                  next_period_amount: Optional[Decimal]) -> AllocationEffect:
    report = check_redistribution_targets(strategy.redistribution_targets)
    if not report.ok:
        raise InvalidParameter(f"Invalid redistribution targets: {report.summary()}", field="redistribution_targets")

    if surplus == 0:
        return AllocationEffect(kind="redistribute", surplus=0.0, description="No surplus to redistribute.")

    targets = strategy.redistribution_targets
    total_pct = sum((_d(t.percentage) for t in targets), Decimal(0))
    amounts = [surplus * _d(t.percentage) / total_pct for t in targets]
    # Decimal rounding residue goes to the largest share
    largest = max(range(len(amounts)), key=lambda i: amounts[i])
    amounts[largest] += surplus - sum(amounts, Decimal(0))

    txs = [
        AllocationTransaction(
            source_category=budget.category,
            category_id=t.category_id,
            percentage=float(t.percentage),
            amount=float(amount),
        )
        for t, amount in zip(targets, amounts)
    ]
    for w in report.warnings:
        logger.info(f"surplus_redistribution_warning category={budget.category} msg={w.message}")

    return AllocationEffect(
        kind="redistribute",
        surplus=float(surplus),
        transactions=txs,
        description=f"Split {surplus} of unspent '{budget.category}' budget across {len(txs)} categories.",
    )


_HANDLERS: Dict[type, Callable] = {
    RolloverStrategy: _rollover,
    IgnoreStrategy: _delegate("ignore", "Leave {amount} of unspent '{category}' budget untouched."),
    SaveStrategy: _delegate("save", "Move {amount} of unspent '{category}' budget to savings."),
    InvestStrategy: _delegate("invest", "Move {amount} of unspent '{category}' budget to investments."),
    RedistributeStrategy: _redistribute,
}

_unhandled = set(get_args(get_args(SurplusStrategy)[0])) - set(_HANDLERS)
if _unhandled:
    raise RuntimeError(f"No handler for surplus strategies: {sorted(c.__name__ for c in _unhandled)}")


def compute_surplus(budget_amount, spent) -> Decimal:
    return max(Decimal(0), _d(budget_amount) - _d(spent))


def allocate_surplus(
    budget: Budget,
    spent,
    strategy: Optional[SurplusStrategy] = None,
    *,
    next_period_amount=None,
) -> AllocationEffect:
    """
    Decide what happens to the unspent part of `budget`. Pure: the returned
    effect is for the caller to persist.

    `strategy` falls back to the budget's configured strategy, then to ignore.
    """
    amount = _d(budget.amount)
    if amount <= 0:
        raise InvalidParameter(f"budget amount must be positive, got {amount}", field="amount")
    spent_d = require_non_negative(spent, "spent")
    nxt = require_non_negative(next_period_amount, "next_period_amount") if next_period_amount is not None else None

    strat = strategy or budget.surplus_strategy or IgnoreStrategy()
    handler = _HANDLERS.get(type(strat))
    if handler is None:
        raise InvalidParameter(f"Unsupported surplus strategy: {type(strat).__name__}", field="surplus_strategy")

    surplus = compute_surplus(amount, spent_d)
    effect = handler(budget, surplus, strat, nxt)
    logger.debug(f"surplus_allocation category={budget.category} kind={effect.kind} surplus={surplus}")
    return effect

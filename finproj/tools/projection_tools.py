from __future__ import annotations

import copy
import functools
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from finproj.core.config import SETTINGS
from finproj.utils.budget_models import Budget, RedistributeStrategy, SurplusStrategy
from finproj.utils.cache import TTLCache, input_key
from finproj.utils.debt_engine import (
    compare_payoff_strategies, extra_payment_savings, project_collection, project_debt_payoff,
)
from finproj.utils.debt_models import Debt
from finproj.utils.errors import InvalidParameter
from finproj.utils.logging import engine_context, get_logger
from finproj.utils.savings_engine import compare_savings_strategies, months_to_target, project_savings
from finproj.utils.savings_models import SavingsProjectionParams
from finproj.utils.surplus_allocator import allocate_surplus

logger = get_logger("projection_tools")

_SURPLUS_STRATEGY = TypeAdapter(SurplusStrategy)

_CACHE = TTLCache(default_ttl_seconds=SETTINGS.cache_ttl_seconds, max_items=SETTINGS.cache_max_items)

# Field names used by the stored records (and the camelCase API) -> canonical names.
_DEBT_ALIASES = {
    "id": "debt_id",
    "tipo": "debt_type",
    "monto": "original_amount",
    "monto_actual": "current_balance",
    "tasa_interes": "annual_interest_rate_pct",
    "pagos_minimos": "minimum_payment",
    "fecha_vencimiento": "due_date",
    "descripcion": "description",
    "currentBalance": "current_balance",
    "annualInterestRatePercent": "annual_interest_rate_pct",
    "minimumPayment": "minimum_payment",
    "dueDate": "due_date",
}

_SAVINGS_ALIASES = {
    "initialAmount": "initial_amount",
    "monthlyContribution": "monthly_contribution",
    "targetAmount": "target_amount",
    "time_horizon_years": "years",
    "annualRatePercent": "annual_rate_pct",
}

_BUDGET_ALIASES = {
    "id": "budget_id",
    "surplusStrategy": "surplus_strategy",
}

_STRATEGY_ALIASES = {
    "redistributionTargets": "redistribution_targets",
}

_TARGET_ALIASES = {
    "categoryId": "category_id",
}


def get_cache() -> TTLCache:
    return _CACHE


def _rename(d: Optional[Dict[str, Any]], aliases: Dict[str, str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in (d or {}).items():
        key = aliases.get(k, k)
        # canonical key wins when both spellings are present
        if key in out and k != key:
            continue
        out[key] = v
    return out


def _debt_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    d = _rename(raw, _DEBT_ALIASES)
    due = d.get("due_date")
    if isinstance(due, str) and len(due) > 10:
        # stored as a full ISO timestamp; the engine only needs the day
        d["due_date"] = due[:10]
    return d


def _strategy_record(raw: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if raw is None:
        return None
    s = _rename(raw, _STRATEGY_ALIASES)
    if "redistribution_targets" in s:
        s["redistribution_targets"] = [_rename(t, _TARGET_ALIASES) for t in s["redistribution_targets"] or []]
    return s


def _parse(build: Callable[[], Any], what: str) -> Any:
    try:
        return build()
    except ValidationError as e:
        raise InvalidParameter(f"Malformed {what} payload: {e.errors(include_url=False)}") from e


def _start_date(payload: Dict[str, Any]) -> date:
    raw = payload.get("start_date")
    if raw is None:
        return date.today()
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        raise InvalidParameter(f"start_date is not an ISO date: {raw!r}", field="start_date") from None


def _engine(name: str):
    def wrap(fn):
        @functools.wraps(fn)
        def inner(*args, **kwargs):
            with engine_context(name):
                return fn(*args, **kwargs)
        return inner
    return wrap


def _memo(kind: str, payload: Dict[str, Any], compute: Callable[[], Any], use_cache: bool) -> Any:
    if not use_cache:
        return compute()
    key = input_key(kind, payload)
    cached = _CACHE.get(key)
    if cached is not None:
        logger.info(f"cache_hit kind={kind}")
        return copy.deepcopy(cached)
    value = compute()
    _CACHE.set(key, value)
    return copy.deepcopy(value)


# -----------------------------
# Debts
# -----------------------------
def _debts(payload: Dict[str, Any]) -> List[Debt]:
    rows = payload.get("debts") or []
    return _parse(lambda: [Debt(**_debt_record(r)) for r in rows], "debt")


@_engine("debt_payoff")
def tool_project_debts(payload: Dict[str, Any], *, use_cache: bool = True) -> Dict[str, Any]:
    p = dict(payload or {})
    start = _start_date(p)
    key_payload = {**p, "start_date": start.isoformat()}

    def compute() -> Dict[str, Any]:
        out = project_debt_payoff(
            _debts(p),
            p.get("extra_payment", 0),
            p.get("strategy", "avalanche"),
            start_date=start,
        )
        return out.model_dump(mode="json")

    return _memo("debts", key_payload, compute, use_cache)


@_engine("debt_payoff")
def tool_compare_debt_strategies(payload: Dict[str, Any], *, use_cache: bool = True) -> Dict[str, Any]:
    p = dict(payload or {})
    start = _start_date(p)
    key_payload = {**p, "start_date": start.isoformat()}

    def compute() -> Dict[str, Any]:
        debts = _debts(p)
        extra = p.get("extra_payment", 0)
        results = compare_payoff_strategies(debts, extra, start_date=start)
        savings = [extra_payment_savings(debts, extra, r.strategy, start_date=start) for r in results]
        return {
            "projections": [r.model_dump(mode="json") for r in results],
            "savings_vs_minimum": [s.model_dump(mode="json") for s in savings],
        }

    return _memo("compare_debts", key_payload, compute, use_cache)


@_engine("debt_collection")
def tool_project_collections(payload: Dict[str, Any], *, use_cache: bool = True) -> Dict[str, Any]:
    p = dict(payload or {})
    start = _start_date(p)
    key_payload = {**p, "start_date": start.isoformat()}

    def compute() -> Dict[str, Any]:
        # stored receivables do not always carry a direction; this call says they are incoming
        debts = [d if d.direction == "incoming" else d.model_copy(update={"direction": "incoming"})
                 for d in _debts(p)]
        out = project_collection(
            debts,
            p.get("strategy", "aggressive"),
            p.get("probability"),
            start_date=start,
        )
        return out.model_dump(mode="json")

    return _memo("collections", key_payload, compute, use_cache)


# -----------------------------
# Savings
# -----------------------------
def _savings_params(payload: Dict[str, Any]) -> SavingsProjectionParams:
    p = _rename(payload, _SAVINGS_ALIASES)
    rate = p.pop("annual_rate_pct", None)
    if rate is not None:
        p["strategy"] = {"kind": "custom", "annual_rate_pct": rate}
    return _parse(lambda: SavingsProjectionParams(**p), "savings")


@_engine("savings")
def tool_project_savings(payload: Dict[str, Any], *, use_cache: bool = True) -> Dict[str, Any]:
    p = dict(payload or {})

    def compute() -> Dict[str, Any]:
        params = _savings_params(p)
        result = project_savings(params)
        out = result.model_dump(mode="json")
        if params.target_amount is not None:
            out["months_to_target"] = months_to_target(
                params.initial_amount,
                params.monthly_contribution,
                result.annual_rate_pct,
                params.target_amount,
            )
        return out

    return _memo("savings", p, compute, use_cache)


@_engine("savings")
def tool_compare_savings_strategies(payload: Dict[str, Any], *, use_cache: bool = True) -> Dict[str, Any]:
    p = dict(payload or {})

    def compute() -> Dict[str, Any]:
        results = compare_savings_strategies(_savings_params(p))
        return {"projections": [r.model_dump(mode="json") for r in results]}

    return _memo("compare_savings", p, compute, use_cache)


# -----------------------------
# Budgets
# -----------------------------
@_engine("surplus")
def tool_allocate_surplus(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Not memoized: allocation is cheap and the result is meant to be persisted once."""
    p = dict(payload or {})

    budget_raw = _rename(p.get("budget"), _BUDGET_ALIASES)
    if "surplus_strategy" in budget_raw:
        budget_raw["surplus_strategy"] = _strategy_record(budget_raw["surplus_strategy"])
    budget = _parse(lambda: Budget(**budget_raw), "budget")

    strategy = None
    raw_strategy = _strategy_record(p.get("strategy"))
    if raw_strategy is not None:
        strategy = _parse(lambda: _SURPLUS_STRATEGY.validate_python(raw_strategy), "surplus strategy")

    effect = allocate_surplus(
        budget,
        p.get("spent", 0),
        strategy,
        next_period_amount=p.get("next_period_amount"),
    )
    if isinstance(strategy or budget.surplus_strategy, RedistributeStrategy):
        logger.info(f"surplus_redistributed category={budget.category} transactions={len(effect.transactions)}")
    return effect.model_dump(mode="json")

from __future__ import annotations

import argparse
import json
import sys
import uuid
from typing import Any, Dict

from finproj.core.config import SETTINGS
from finproj.core.schemas import ErrorEnvelope
from finproj.tools.projection_tools import (
    tool_allocate_surplus, tool_compare_debt_strategies, tool_compare_savings_strategies,
    tool_project_collections, tool_project_debts, tool_project_savings,
)
from finproj.utils.debt_models import PayoffStrategy
from finproj.utils.errors import InvalidParameter, ProjectionError
from finproj.utils.logging import get_logger, set_log_context, setup_logging
from finproj.utils.money import round_currency

logger = get_logger("projection_cli")

EXIT_INVALID = 2
EXIT_UNPAYABLE = 3


def _load_payload(path: str) -> Dict[str, Any]:
    try:
        if path == "-":
            return json.load(sys.stdin)
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidParameter(f"Payload is not valid JSON: {e}") from e


def _money(x) -> str:
    return f"{round_currency(x):,}"


def _print_debts(out: Dict[str, Any]) -> None:
    print(f"Strategy: {out['strategy']}")
    print(f"Months to pay off: {out['months_to_pay_off']} (payoff {out['payoff_date']})")
    print(f"Total paid: {_money(out['total_paid'])}")
    print(f"Total interest: {_money(out['total_interest'])}")
    print(f"Monthly payment: {_money(out['monthly_payment_total'])}")
    for row in out.get("payoff_order", []):
        print(f"  - {row['debt_id']} closed in month {row['month']}")


def _print_compare_debts(out: Dict[str, Any]) -> None:
    for proj, saved in zip(out["projections"], out["savings_vs_minimum"]):
        if saved.get("baseline_unpayable"):
            vs_min = "minimums alone never pay off"
        else:
            vs_min = f"saves {saved['months_saved']} months / {_money(saved['interest_saved'])} vs minimums"
        print(
            f"{PayoffStrategy(proj['strategy']).label}: {proj['months_to_pay_off']} months, "
            f"interest {_money(proj['total_interest'])}, {vs_min}"
        )


def _print_collections(out: Dict[str, Any]) -> None:
    print(f"Strategy: {out['strategy']} (probability {out['probability']})")
    print(f"Months to collect: {out['months_to_collect']} (done {out['completion_date']})")
    print(f"Total collected: {_money(out['total_collected'])}")
    print(f"Expected collection: {_money(out['expected_collection'])}")


def _print_savings(out: Dict[str, Any]) -> None:
    print(f"Strategy: {out['strategy']} ({out['annual_rate_pct']}%)")
    print(f"Future value: {_money(out['future_value'])}")
    print(f"Contributions: {_money(out['total_contributions'])}")
    print(f"Returns: {_money(out['total_returns'])}")
    if out.get("years_to_target") is not None:
        print(f"Target reached in year {out['years_to_target']}")
    if "months_to_target" in out:
        m = out["months_to_target"]
        print("Target not reachable within 50 years" if m is None else f"Months to target: {m}")
    for row in out.get("yearly_data", []):
        print(f"  year {row['year']:>2}: balance {_money(row['balance'])}")


def _print_compare_savings(out: Dict[str, Any]) -> None:
    for proj in out["projections"]:
        ytt = proj.get("years_to_target")
        suffix = f", target in year {ytt}" if ytt is not None else ""
        print(f"{proj['strategy']:>12}: {_money(proj['future_value'])}{suffix}")


def _print_surplus(out: Dict[str, Any]) -> None:
    print(f"{out['kind']}: surplus {_money(out['surplus'])}")
    if out.get("new_budget_amount") is not None:
        print(f"New budget amount: {_money(out['new_budget_amount'])}")
    for tx in out.get("transactions", []):
        print(f"  -> {tx['category_id']}: {_money(tx['amount'])} ({tx['percentage']}%)")
    if out.get("description"):
        print(out["description"])


_COMMANDS: Dict[str, tuple] = {
    "debts": (tool_project_debts, _print_debts, "Debt payoff projection for one strategy"),
    "compare-debts": (tool_compare_debt_strategies, _print_compare_debts, "Compare avalanche/snowball/combined"),
    "collections": (tool_project_collections, _print_collections, "Collection projection for incoming debts"),
    "savings": (tool_project_savings, _print_savings, "Savings growth projection"),
    "compare-savings": (tool_compare_savings_strategies, _print_compare_savings, "Compare savings strategies"),
    "surplus": (tool_allocate_surplus, _print_surplus, "Budget surplus allocation"),
}


def cmd_run(args: argparse.Namespace) -> int:
    tool, printer, _ = _COMMANDS[args.cmd]
    try:
        out = tool(_load_payload(args.payload))
    except ProjectionError as e:
        logger.warning(f"projection_failed cmd={args.cmd} code={e.code} err={e}")
        env = ErrorEnvelope(code=e.code, message=str(e), details=e.details() or None)
        print(env.model_dump_json(indent=2))
        return EXIT_INVALID if isinstance(e, InvalidParameter) else EXIT_UNPAYABLE

    if args.json:
        print(json.dumps(out, indent=2))
    else:
        printer(out)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="finproj", description="Debt, savings and budget-surplus projections")
    p.add_argument("--log-level", default=None)
    sub = p.add_subparsers(dest="cmd", required=True)

    for name, (_, _, help_text) in _COMMANDS.items():
        c = sub.add_parser(name, help=help_text)
        c.add_argument("payload", help="JSON payload file, or '-' for stdin")
        c.add_argument("--json", action="store_true")
        c.set_defaults(func=cmd_run)
    return p


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level or SETTINGS.log_level)
    set_log_context(run_id=uuid.uuid4().hex[:12], engine=args.cmd)
    rc = args.func(args)
    raise SystemExit(rc)


if __name__ == "__main__":
    main()

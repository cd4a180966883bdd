from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from finproj.core.config import SETTINGS
from finproj.core.schemas import ValidationReport
from finproj.utils.errors import InvalidParameter
from finproj.utils.money import HUNDRED, _d


def _field(target, name: str):
    if isinstance(target, dict):
        return target.get(name)
    return getattr(target, name, None)


def check_redistribution_targets(targets: Optional[Iterable], *, epsilon: Optional[float] = None) -> ValidationReport:
    """
    Collects every reason a redistribution target list is unusable.

    Targets may be RedistributionTarget models or plain dicts with
    `category_id` and `percentage`.
    """
    report = ValidationReport(ok=True)
    eps = _d(SETTINGS.redistribution_epsilon if epsilon is None else epsilon)

    rows = list(targets or [])
    if not rows:
        report.add_error("At least one redistribution target is required.")
        return report.finalize()

    seen = set()
    total = Decimal(0)
    for i, t in enumerate(rows):
        loc = f"targets[{i}]"
        cat = _field(t, "category_id")
        pct_raw = _field(t, "percentage")

        if not cat:
            report.add_error("Target has no category_id.", location=loc)
        elif cat in seen:
            report.add_error(f"Duplicate target category: {cat}", location=loc)
        else:
            seen.add(cat)

        if pct_raw is None:
            report.add_error("Target has no percentage.", location=loc)
            continue

        try:
            pct = _d(pct_raw, f"{loc}.percentage")
        except InvalidParameter as e:
            report.add_error(str(e), location=loc)
            continue
        if pct <= 0 or pct > HUNDRED:
            report.add_error(f"Percentage must be in (0, 100], got {pct}", location=loc)
        total += pct

    if abs(total - HUNDRED) > eps:
        report.add_error(f"Percentages must sum to 100 (+/- {eps}), got {total}")
    elif total != HUNDRED:
        report.add_warning(f"Percentages sum to {total}; amounts are scaled to that total.")

    return report.finalize()


def validate_redistribution_targets(targets: Optional[Iterable], *, epsilon: Optional[float] = None) -> bool:
    return check_redistribution_targets(targets, epsilon=epsilon).ok

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Optional

from dateutil.relativedelta import relativedelta

from finproj.utils.errors import InvalidParameter

getcontext().prec = 28

CENT = Decimal("0.01")
HUNDRED = Decimal(100)
MONTHS_PER_YEAR = 12


def _d(x, field: Optional[str] = None) -> Decimal:
    """Exact Decimal from user input; non-numeric, NaN and infinite values are InvalidParameter."""
    try:
        v = x if isinstance(x, Decimal) else Decimal(str(x).strip())
    except InvalidOperation:
        raise InvalidParameter(f"{field or 'value'} is not a number: {x!r}", field=field) from None
    if not v.is_finite():
        raise InvalidParameter(f"{field or 'value'} must be finite, got {x!r}", field=field)
    return v


def monthly_rate_from_annual(annual_rate_pct) -> Decimal:
    """Nominal annual percentage -> simple monthly rate, e.g. 6 -> 0.005."""
    pct = _d(annual_rate_pct, "annual_rate_pct")
    if pct < 0:
        raise InvalidParameter("annual interest rate cannot be negative", field="annual_rate_pct")
    return pct / HUNDRED / Decimal(MONTHS_PER_YEAR)


def round_currency(x) -> Decimal:
    """Presentation rounding only; simulation loops keep full precision."""
    return _d(x).quantize(CENT, rounding=ROUND_HALF_UP)


def require_non_negative(value, field: str) -> Decimal:
    v = _d(value, field)
    if v < 0:
        raise InvalidParameter(f"{field} cannot be negative (got {v})", field=field)
    return v


def add_months(start: Optional[date], months: int) -> date:
    """Calendar month offset: Jan 31 + 1 month lands on the last day of February."""
    base = start or date.today()
    return base + relativedelta(months=+months)

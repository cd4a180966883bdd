from __future__ import annotations

from typing import Any, Dict, Optional


class ProjectionError(Exception):
    """Base class for every error the projection engines raise."""

    code = "PROJECTION_ERROR"

    def details(self) -> Dict[str, Any]:
        return {}


class InvalidParameter(ProjectionError, ValueError):
    code = "INVALID_PARAMETER"

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field

    def details(self) -> Dict[str, Any]:
        return {"field": self.field} if self.field else {}


class UnpayableDebtSet(ProjectionError):
    """Raised when the payoff simulation hits its month cap with debts still open."""

    code = "UNPAYABLE_DEBT_SET"

    def __init__(self, months: int, remaining_balance: float, open_debts: int) -> None:
        super().__init__(
            f"Debts are not paid off after {months} months "
            f"({open_debts} still open, remaining balance {remaining_balance:.2f}). "
            "Interest accrual exceeds payment capacity."
        )
        self.months = months
        self.remaining_balance = remaining_balance
        self.open_debts = open_debts

    def details(self) -> Dict[str, Any]:
        return {
            "months": self.months,
            "remaining_balance": self.remaining_balance,
            "open_debts": self.open_debts,
        }


class UncollectableDebtSet(ProjectionError):
    code = "UNCOLLECTABLE_DEBT_SET"

    def __init__(self, months: int, remaining_balance: float) -> None:
        super().__init__(
            f"Receivables are not collected after {months} months "
            f"(remaining balance {remaining_balance:.2f})."
        )
        self.months = months
        self.remaining_balance = remaining_balance

    def details(self) -> Dict[str, Any]:
        return {"months": self.months, "remaining_balance": self.remaining_balance}

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DebtType = Literal["credit_card", "personal_loan", "mortgage", "student_loan", "car_loan", "other"]
DebtDirection = Literal["outgoing", "incoming"]


class PayoffStrategy(str, Enum):
    AVALANCHE = "avalanche"
    SNOWBALL = "snowball"
    COMBINED = "combined"

    @property
    def label(self) -> str:
        return _PAYOFF_LABELS[self]


_PAYOFF_LABELS = {
    PayoffStrategy.AVALANCHE: "Avalanche (highest interest first)",
    PayoffStrategy.SNOWBALL: "Snowball (smallest balance first)",
    PayoffStrategy.COMBINED: "Combined (balanced rate and size)",
}


class CollectionStrategy(str, Enum):
    AGGRESSIVE = "aggressive"
    CONSERVATIVE = "conservative"

    @property
    def multiplier(self) -> Decimal:
        return Decimal("1.5") if self is CollectionStrategy.AGGRESSIVE else Decimal("0.75")


class Debt(BaseModel):
    """A liability (outgoing) or receivable (incoming) as stored by the app.

    Range checks live in the engine so they surface as InvalidParameter.
    """

    model_config = ConfigDict(frozen=True)

    debt_id: str = ""
    debt_type: DebtType = "other"
    original_amount: Optional[Decimal] = None
    current_balance: Decimal = Field(..., description="Outstanding balance.")
    annual_interest_rate_pct: Optional[Decimal] = Field(None, description="Nominal annual rate, in percent.")
    minimum_payment: Decimal = Decimal(0)
    due_date: Optional[date] = None
    direction: DebtDirection = "outgoing"
    description: Optional[str] = None


class DebtMonthRow(BaseModel):
    month: int
    total_payment: float
    principal_payment: float
    interest_payment: float
    remaining_balance: float


class DebtPayoffRow(BaseModel):
    debt_id: str
    month: int


class DebtProjectionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategy: PayoffStrategy
    months_to_pay_off: int
    total_paid: float
    total_interest: float
    monthly_payment_total: float
    payoff_date: date
    schedule: List[DebtMonthRow] = Field(default_factory=list)
    payoff_order: List[DebtPayoffRow] = Field(default_factory=list)


class PayoffSavings(BaseModel):
    """Effect of an extra payment compared with paying minimums only."""

    strategy: PayoffStrategy
    extra_payment: float
    months_saved: Optional[int] = None
    interest_saved: Optional[float] = None
    total_saved: Optional[float] = None
    # minimums alone never pay the debts off
    baseline_unpayable: bool = False


class CollectionProjectionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategy: CollectionStrategy
    probability: float
    months_to_collect: int
    total_collected: float
    expected_collection: float
    monthly_collection_total: float
    completion_date: date
    schedule: List[DebtMonthRow] = Field(default_factory=list)

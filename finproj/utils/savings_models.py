from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SavingsStrategy(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"

    @property
    def annual_rate_pct(self) -> Decimal:
        return _STRATEGY_RATES[self]


# Nominal annual returns, in percent. Fixed; not user configurable.
_STRATEGY_RATES = {
    SavingsStrategy.CONSERVATIVE: Decimal("4"),
    SavingsStrategy.MODERATE: Decimal("6"),
    SavingsStrategy.AGGRESSIVE: Decimal("8"),
}


class CustomRate(BaseModel):
    """A free rate (e.g. from a simulator slider) used in place of a named strategy."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["custom"] = "custom"
    annual_rate_pct: Decimal


class SavingsProjectionParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    initial_amount: Decimal = Decimal(0)
    monthly_contribution: Decimal = Decimal(0)
    years: int = Field(..., description="Projection horizon, 1-50 years.")
    strategy: Union[SavingsStrategy, CustomRate] = SavingsStrategy.MODERATE
    target_amount: Optional[Decimal] = None


class YearlySample(BaseModel):
    year: int
    balance: float
    contributions: float
    returns: float


class SavingsProjectionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategy: str
    annual_rate_pct: float
    future_value: float
    total_contributions: float
    total_returns: float
    years_to_target: Optional[int] = None
    yearly_data: List[YearlySample] = Field(default_factory=list)

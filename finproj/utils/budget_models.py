from __future__ import annotations

from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

SurplusKind = Literal["rollover", "ignore", "save", "invest", "redistribute"]


class RedistributionTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    category_id: str
    percentage: Decimal = Field(..., description="Share of the surplus, in percent.")


class RolloverStrategy(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["rollover"] = "rollover"


class IgnoreStrategy(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["ignore"] = "ignore"


class SaveStrategy(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["save"] = "save"


class InvestStrategy(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["invest"] = "invest"


class RedistributeStrategy(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["redistribute"] = "redistribute"
    redistribution_targets: List[RedistributionTarget] = Field(default_factory=list)


SurplusStrategy = Annotated[
    Union[RolloverStrategy, IgnoreStrategy, SaveStrategy, InvestStrategy, RedistributeStrategy],
    Field(discriminator="type"),
]


class Budget(BaseModel):
    model_config = ConfigDict(frozen=True)

    budget_id: str = ""
    category: str
    amount: Decimal
    surplus_strategy: Optional[SurplusStrategy] = None


class AllocationTransaction(BaseModel):
    """A transfer the storage layer should record; this package never writes it."""

    source_category: str
    category_id: str
    percentage: float
    amount: float


class AllocationEffect(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: SurplusKind
    surplus: float
    new_budget_amount: Optional[float] = None
    transactions: List[AllocationTransaction] = Field(default_factory=list)
    description: str = ""

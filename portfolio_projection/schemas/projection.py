"""Data contracts for portfolio projections."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Frequency(str, Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"

    @property
    def months(self) -> int:
        return _FREQUENCY_MONTHS[self]


_FREQUENCY_MONTHS = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.YEARLY: 12,
}


class Position(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    identifier: str = Field(min_length=1)
    quantity: float = Field(ge=0)

    @field_validator("identifier")
    @classmethod
    def strip_identifier(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("identifier must not be blank")
        return value


class ContributionSchedule(BaseModel):
    """amountPerEvent is invested eventsPerCheckpoint times at every checkpoint.

    Example: MONTHLY, eventsPerCheckpoint=2, amountPerEvent=100 invests 200 at the end
    of every month.
    """

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    amountPerEvent: float = Field(ge=0)
    eventsPerCheckpoint: int = Field(default=1, ge=1)
    frequency: Frequency = Frequency.MONTHLY

    @field_validator("frequency", mode="before")
    @classmethod
    def normalize_frequency(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def checkpoint_amount(self) -> float:
        return self.amountPerEvent * self.eventsPerCheckpoint

    @property
    def enabled(self) -> bool:
        return self.amountPerEvent > 0


class SimulationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    positions: List[Position] = Field(min_length=1)
    sideCapital: float = Field(default=0.0, ge=0)
    declaredStartingCapital: float = Field(default=0.0, ge=0)
    horizonYears: int = Field(ge=1, le=100)
    annualFeeBps: float = Field(default=0.0, ge=0, le=10000)
    contributionSchedule: Optional[ContributionSchedule] = None
    useRealTerms: bool = False
    # only read when useRealTerms is set
    annualInflation: float = 0.0

    @model_validator(mode="after")
    def ensure_validity(self) -> "SimulationRequest":
        seen = set()
        for position in self.positions:
            if position.identifier in seen:
                raise ValueError(f"duplicate position for {position.identifier}")
            seen.add(position.identifier)
        if self.useRealTerms and self.annualInflation <= -1:
            raise ValueError("annualInflation must be greater than -1 in real terms")
        return self

    @property
    def months(self) -> int:
        return self.horizonYears * 12


class PortfolioPoint(BaseModel):
    """Aggregate portfolio state at the end of a month."""

    monthIndex: int = Field(..., ge=0)
    totalValue: float
    cumulativeContributed: float
    cumulativeDividendsPaid: float
    # includes accumulating (implicitly reinvested) and distributing dividends
    dividendsGeneratedThisMonth: float


class InstrumentPoint(BaseModel):
    monthIndex: int = Field(..., ge=0)
    value: float


class InstrumentSeries(BaseModel):
    identifier: str
    displayName: str
    points: List[InstrumentPoint]
    # distributed dividends per completed year, month 12, 24, ...
    yearlyDividends: List[float] = Field(default_factory=list)


class SimulationResponse(BaseModel):
    portfolio: List[PortfolioPoint]
    instruments: List[InstrumentSeries]

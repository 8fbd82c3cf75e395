"""Data contracts for resolved instruments."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DividendPolicy(str, Enum):
    ACCUMULATING = "ACCUMULATING"  # reinvested; already part of the growth rate
    DISTRIBUTING = "DISTRIBUTING"  # paid out as cash


class Instrument(BaseModel):
    """A tradable instrument as handed to the projection engine.

    annualGrowthRate is a long-run compound annual growth assumption that already
    includes reinvested dividends. monthlyReturns, when present, replaces it with a
    historical path of monthly returns that is cycled over the horizon.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    identifier: str = Field(min_length=1)
    name: str
    currentPrice: float = Field(ge=0)
    annualGrowthRate: float = Field(gt=-1)
    dividendYield: float = Field(default=0.0, ge=0)
    dividendPolicy: DividendPolicy = DividendPolicy.ACCUMULATING
    expenseRatio: Optional[float] = Field(default=None, ge=0)
    symbol: Optional[str] = None
    monthlyReturns: Optional[List[float]] = None

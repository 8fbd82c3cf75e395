from __future__ import annotations

from typing import List, Optional

from portfolio_projection.schemas.instruments import DividendPolicy, Instrument
from portfolio_projection.schemas.projection import ContributionSchedule, Position, SimulationRequest


def make_instrument(
    identifier: str = "GROW",
    price: float = 100.0,
    growth: float = 0.0,
    dividend_yield: float = 0.0,
    policy: DividendPolicy = DividendPolicy.ACCUMULATING,
    **extra,
) -> Instrument:
    return Instrument(
        identifier=identifier,
        name=f"{identifier} Fund",
        currentPrice=price,
        annualGrowthRate=growth,
        dividendYield=dividend_yield,
        dividendPolicy=policy,
        **extra,
    )


def make_request(
    positions: List[tuple],
    years: int = 1,
    side_capital: float = 0.0,
    declared: float = 0.0,
    fee_bps: float = 0.0,
    schedule: Optional[ContributionSchedule] = None,
    real_terms: bool = False,
    inflation: float = 0.0,
) -> SimulationRequest:
    return SimulationRequest(
        positions=[Position(identifier=identifier, quantity=quantity) for identifier, quantity in positions],
        sideCapital=side_capital,
        declaredStartingCapital=declared,
        horizonYears=years,
        annualFeeBps=fee_bps,
        contributionSchedule=schedule,
        useRealTerms=real_terms,
        annualInflation=inflation,
    )

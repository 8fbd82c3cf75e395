from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from portfolio_projection.core.errors import RequestValidationError
from portfolio_projection.domain.instruments import InstrumentResolver, reporting_dividend_yield
from portfolio_projection.schemas.instruments import DividendPolicy, Instrument
from portfolio_projection.schemas.projection import (
    InstrumentPoint,
    InstrumentSeries,
    PortfolioPoint,
    SimulationRequest,
    SimulationResponse,
)

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12


# -----------------------------
# Rate conversions
# -----------------------------


def monthly_rate(annual_rate: float) -> float:
    """Compound-equivalent monthly rate: (1 + annual)^(1/12) - 1."""
    return (1.0 + annual_rate) ** (1.0 / MONTHS_PER_YEAR) - 1.0


def fisher_rate(nominal_rate: float, inflation_rate: float) -> float:
    return (1 + nominal_rate) / (1 + inflation_rate) - 1


def monthly_fee_factor(annual_fee_bps: float) -> float:
    """Monthly drag for an annual fee in basis points. Always <= 0."""
    annual_fee = annual_fee_bps / 10000.0
    return (1.0 - annual_fee) ** (1.0 / MONTHS_PER_YEAR) - 1.0


def allocation_weights(quantities: Sequence[float]) -> List[float]:
    """Split contributions by starting quantity, or equally when nothing is held yet."""
    total = sum(quantities)
    if total == 0.0:
        count = len(quantities)
        return [1.0 / count] * count if count else []
    return [quantity / total for quantity in quantities]


# -----------------------------
# Per-run state
# -----------------------------


@dataclass
class PositionState:
    instrument: Instrument
    starting_quantity: float
    units: float
    price: float
    monthly_nominal: float
    dividends_paid: float = 0.0
    # distributed dividends for the current year, reset every 12 months
    year_dividends: float = 0.0
    # closed yearly totals, one per completed year
    yearly_dividends: List[float] = field(default_factory=list)

    @property
    def value(self) -> float:
        return self.units * self.price

    def nominal_return(self, month: int) -> float:
        history = self.instrument.monthlyReturns
        if history:
            return history[(month - 1) % len(history)]
        return self.monthly_nominal


@dataclass
class RunState:
    positions: List[PositionState]
    side_capital: float
    contributed: float
    dividends_paid: float = 0.0
    month: int = 0
    skipped_allocations: int = 0

    def total_value(self) -> float:
        return sum(position.value for position in self.positions) + self.side_capital


def _check_request(request: SimulationRequest) -> None:
    """Re-check limits for requests built without pydantic validation (model_construct)."""
    errors: List[str] = []
    if not request.positions:
        errors.append("at least one position is required")
    if request.horizonYears < 1:
        errors.append("horizonYears must be at least 1")
    if not 0 <= request.annualFeeBps <= 10000:
        errors.append("annualFeeBps must be between 0 and 10000")
    if request.sideCapital < 0:
        errors.append("sideCapital must not be negative")
    if request.declaredStartingCapital < 0:
        errors.append("declaredStartingCapital must not be negative")
    if request.useRealTerms and request.annualInflation <= -1:
        errors.append("annualInflation must be greater than -1 in real terms")
    for position in request.positions:
        if position.quantity < 0:
            errors.append(f"{position.identifier} quantity must not be negative")
    if errors:
        raise RequestValidationError(errors)


def initial_state(request: SimulationRequest, resolver: InstrumentResolver) -> RunState:
    """Resolve every position and seed units/prices. Raises InstrumentNotFoundError."""
    positions: List[PositionState] = []
    for position in request.positions:
        instrument = resolver.resolve(position.identifier)
        positions.append(
            PositionState(
                instrument=instrument,
                starting_quantity=position.quantity,
                units=position.quantity,
                price=instrument.currentPrice,
                monthly_nominal=monthly_rate(instrument.annualGrowthRate),
            )
        )

    return RunState(
        positions=positions,
        side_capital=request.sideCapital,
        contributed=request.declaredStartingCapital,
    )


def _step_prices(state: RunState, real_terms: bool, monthly_inflation: float, fee_factor: float) -> float:
    """Grow every price by one month and account for dividends.

    Returns the dividends generated this month across all positions.
    """
    generated = 0.0
    for position in state.positions:
        nominal = position.nominal_return(state.month)
        effective = fisher_rate(nominal, monthly_inflation) if real_terms else nominal
        new_price = max(position.price * (1.0 + effective) * (1.0 + fee_factor), 0.0)

        # dividends are paid on the pre-growth price
        instrument = position.instrument
        if instrument.dividendPolicy == DividendPolicy.DISTRIBUTING:
            dividend = position.units * (instrument.dividendYield / MONTHS_PER_YEAR) * position.price
            position.dividends_paid += dividend
            position.year_dividends += dividend
            state.dividends_paid += dividend
        else:
            # growth rate already embeds reinvested dividends; report only
            annual_yield = reporting_dividend_yield(instrument)
            dividend = position.units * (annual_yield / MONTHS_PER_YEAR) * position.price
        generated += dividend

        position.price = new_price

    if state.month % MONTHS_PER_YEAR == 0:
        for position in state.positions:
            position.yearly_dividends.append(position.year_dividends)
            position.year_dividends = 0.0

    return generated


def _inject_contribution(state: RunState, amount: float, weights: Sequence[float]) -> None:
    for position, weight in zip(state.positions, weights):
        invest = amount * weight
        if invest <= 0:
            continue
        if position.price <= 0:
            state.skipped_allocations += 1
            logger.debug(
                "month %d: skipped %.2f contribution to %s with price %s",
                state.month,
                invest,
                position.instrument.identifier,
                position.price,
            )
            continue
        position.units += invest / position.price
        state.contributed += invest


def _portfolio_point(state: RunState, generated: float) -> PortfolioPoint:
    return PortfolioPoint(
        monthIndex=state.month,
        totalValue=state.total_value(),
        cumulativeContributed=state.contributed,
        cumulativeDividendsPaid=state.dividends_paid,
        dividendsGeneratedThisMonth=generated,
    )


def run_projection(request: SimulationRequest, resolver: InstrumentResolver) -> SimulationResponse:
    """
    Project a basket month by month over request.horizonYears.

    Order of operations (per month m = 1..N):
      1) Grow each price by its effective monthly return (nominal or real) and the fee drag.
      2) Compute dividends on the pre-growth price; only DISTRIBUTING ones are paid out.
      3) At contribution checkpoints (m % interval == 0) buy units at the new price.
      4) Record the aggregate point and one value point per instrument.

    Month 0 is recorded before any growth or contribution. Every call builds its own
    state, so concurrent runs share nothing.
    """
    _check_request(request)
    state = initial_state(request, resolver)

    months = request.months
    real_terms = request.useRealTerms
    monthly_inflation = monthly_rate(request.annualInflation) if real_terms else 0.0
    fee_factor = monthly_fee_factor(request.annualFeeBps)

    schedule = request.contributionSchedule
    interval: Optional[int] = None
    checkpoint_amount = 0.0
    if schedule is not None and schedule.enabled:
        interval = schedule.frequency.months
        checkpoint_amount = schedule.checkpoint_amount
    weights = allocation_weights([position.starting_quantity for position in state.positions])

    logger.info(
        "running projection: %d positions, %d months, real_terms=%s",
        len(state.positions),
        months,
        real_terms,
    )

    portfolio: List[PortfolioPoint] = [_portfolio_point(state, 0.0)]
    series: List[List[InstrumentPoint]] = [
        [InstrumentPoint(monthIndex=0, value=position.value)] for position in state.positions
    ]

    for month in range(1, months + 1):
        state.month = month

        # 1) + 2) growth, fees and dividends
        generated = _step_prices(state, real_terms, monthly_inflation, fee_factor)

        # 3) scheduled contribution after growth
        if interval is not None and month % interval == 0:
            _inject_contribution(state, checkpoint_amount, weights)

        # 4) record
        portfolio.append(_portfolio_point(state, generated))
        for points, position in zip(series, state.positions):
            points.append(InstrumentPoint(monthIndex=month, value=position.value))

    if state.skipped_allocations:
        logger.warning("skipped %d contribution allocations to unpriced instruments", state.skipped_allocations)
    logger.debug(
        "projection finished: total=%.2f contributed=%.2f dividends_paid=%.2f",
        portfolio[-1].totalValue,
        state.contributed,
        state.dividends_paid,
    )

    return SimulationResponse(
        portfolio=portfolio,
        instruments=[
            InstrumentSeries(
                identifier=position.instrument.identifier,
                displayName=position.instrument.name,
                points=points,
                yearlyDividends=position.yearly_dividends,
            )
            for position, points in zip(state.positions, series)
        ],
    )


__all__ = [
    "MONTHS_PER_YEAR",
    "PositionState",
    "RunState",
    "allocation_weights",
    "fisher_rate",
    "initial_state",
    "monthly_fee_factor",
    "monthly_rate",
    "run_projection",
]

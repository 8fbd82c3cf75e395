from __future__ import annotations

from math import isclose

import pytest

from portfolio_projection.core.errors import InstrumentNotFoundError, RequestValidationError
from portfolio_projection.core.projection import (
    allocation_weights,
    fisher_rate,
    monthly_fee_factor,
    monthly_rate,
    run_projection,
)
from portfolio_projection.domain.instruments import InstrumentRepository
from portfolio_projection.schemas.projection import ContributionSchedule, Frequency, Position, SimulationRequest
from portfolio_projection.tests.helpers import make_instrument, make_request


def test_series_lengths_match_horizon(repository):
    request = make_request([("ACC", 2), ("DIST", 4), ("FLAT", 1)], years=3)

    result = run_projection(request, repository)

    assert len(result.portfolio) == 3 * 12 + 1
    assert [point.monthIndex for point in result.portfolio] == list(range(37))
    assert len(result.instruments) == 3
    for series in result.instruments:
        assert [point.monthIndex for point in series.points] == list(range(37))


def test_month_zero_reflects_starting_state(repository):
    request = make_request([("ACC", 2), ("DIST", 4)], side_capital=50.0, declared=1000.0)

    result = run_projection(request, repository)

    start = result.portfolio[0]
    assert isclose(start.totalValue, 2 * 100.0 + 4 * 50.0 + 50.0)
    assert start.cumulativeContributed == 1000.0
    assert start.cumulativeDividendsPaid == 0.0
    assert start.dividendsGeneratedThisMonth == 0.0
    assert [series.points[0].value for series in result.instruments] == [200.0, 200.0]
    assert [(series.identifier, series.displayName) for series in result.instruments] == [
        ("ACC", "ACC Fund"),
        ("DIST", "DIST Fund"),
    ]


def test_contributed_and_dividends_paid_never_decrease(repository):
    request = make_request(
        [("ACC", 1), ("DIST", 3)],
        years=2,
        fee_bps=50,
        schedule=ContributionSchedule(amountPerEvent=250, eventsPerCheckpoint=1, frequency=Frequency.QUARTERLY),
    )

    result = run_projection(request, repository)

    for prev, cur in zip(result.portfolio, result.portfolio[1:]):
        assert cur.cumulativeContributed >= prev.cumulativeContributed
        assert cur.cumulativeDividendsPaid >= prev.cumulativeDividendsPaid


def test_no_growth_no_fee_keeps_value_constant(repository):
    """With nothing moving the price, the instrument value must not drift at all."""
    request = make_request([("FLAT", 7)], years=5, side_capital=3.0)

    result = run_projection(request, repository)

    values = {point.value for point in result.instruments[0].points}
    assert values == {70.0}
    assert {point.totalValue for point in result.portfolio} == {73.0}


def test_side_capital_does_not_grow(repository):
    with_cash = run_projection(make_request([("ACC", 1)], side_capital=500.0), repository)
    without_cash = run_projection(make_request([("ACC", 1)]), repository)

    for a, b in zip(with_cash.portfolio, without_cash.portfolio):
        assert isclose(a.totalValue - b.totalValue, 500.0, abs_tol=1e-9)


def test_monthly_contributions_compound_from_purchase_month():
    repository = InstrumentRepository([make_instrument("SOLO", price=100.0, growth=0.08)])
    request = make_request(
        [("SOLO", 0)],
        schedule=ContributionSchedule(amountPerEvent=100, eventsPerCheckpoint=1, frequency=Frequency.MONTHLY),
    )

    result = run_projection(request, repository)

    r = monthly_rate(0.08)
    expected = sum(100.0 * (1 + r) ** held for held in range(12))
    assert isclose(result.portfolio[-1].totalValue, expected, rel_tol=1e-9)
    assert isclose(result.portfolio[-1].cumulativeContributed, 1200.0)
    assert result.portfolio[0].totalValue == 0.0


def test_fee_drag_removes_annual_rate():
    repository = InstrumentRepository([make_instrument("FEE", price=100.0, growth=0.0)])

    result = run_projection(make_request([("FEE", 1)], years=2, fee_bps=100), repository)

    points = result.instruments[0].points
    assert isclose(points[12].value, 99.0, rel_tol=1e-9)
    assert isclose(points[24].value, 100.0 * 0.99**2, rel_tol=1e-9)


def test_unknown_identifier_aborts_run(repository):
    request = make_request([("ACC", 1), ("NOPE", 1)])

    with pytest.raises(InstrumentNotFoundError) as excinfo:
        run_projection(request, repository)

    assert excinfo.value.identifier == "NOPE"


def test_unvalidated_request_is_rejected(repository):
    request = SimulationRequest.model_construct(
        positions=[Position.model_construct(identifier="ACC", quantity=-1.0)],
        horizonYears=0,
        annualFeeBps=20000,
    )

    with pytest.raises(RequestValidationError) as excinfo:
        run_projection(request, repository)

    assert len(excinfo.value.errors) == 3


def test_rate_helpers():
    assert isclose((1 + monthly_rate(0.08)) ** 12, 1.08)
    assert monthly_fee_factor(0) == 0.0
    assert monthly_fee_factor(30) < 0
    assert isclose(fisher_rate(0.06, 0.03), 1.06 / 1.03 - 1)


def test_allocation_weights():
    assert allocation_weights([1.0, 3.0]) == [0.25, 0.75]
    assert allocation_weights([0.0, 0.0]) == [0.5, 0.5]
    assert allocation_weights([]) == []


def test_unvalidated_real_terms_inflation_is_rejected(repository):
    request = SimulationRequest.model_construct(
        positions=[Position(identifier="ACC", quantity=1.0)],
        horizonYears=1,
        useRealTerms=True,
        annualInflation=-1.0,
    )

    with pytest.raises(RequestValidationError):
        run_projection(request, repository)

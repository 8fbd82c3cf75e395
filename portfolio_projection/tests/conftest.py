from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from portfolio_projection.app import create_app
from portfolio_projection.config import Settings
from portfolio_projection.domain.instruments import InstrumentRepository
from portfolio_projection.schemas.instruments import DividendPolicy
from portfolio_projection.tests.helpers import make_instrument


@pytest.fixture()
def repository() -> InstrumentRepository:
    return InstrumentRepository(
        [
            make_instrument("ACC", price=100.0, growth=0.08),
            make_instrument("DIST", price=50.0, growth=0.05, dividend_yield=0.04, policy=DividendPolicy.DISTRIBUTING),
            make_instrument("FLAT", price=10.0, growth=0.0),
        ]
    )


@pytest.fixture()
def client(repository: InstrumentRepository) -> FlaskClient:
    app = create_app(settings=Settings(), repository=repository)
    with app.test_client() as test_client:
        yield test_client

"""Ping utility used by the API health-check."""

from portfolio_projection.domain.instruments import InstrumentRepository
from portfolio_projection.schemas.ping import PingResponse


def get_ping(repository: InstrumentRepository) -> PingResponse:
    """Report liveness and how many instruments are loaded."""
    return PingResponse(message="pong", instruments=len(repository))

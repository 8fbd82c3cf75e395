"""HTTP routes for the Flask API."""

import logging
from http import HTTPStatus
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from portfolio_projection.core.errors import InstrumentNotFoundError, RequestValidationError
from portfolio_projection.core.ping import get_ping
from portfolio_projection.core.projection import run_projection
from portfolio_projection.domain.instruments import InstrumentRepository
from portfolio_projection.schemas.projection import SimulationRequest

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


def _instruments() -> InstrumentRepository:
    return current_app.extensions["instruments"]


@api_bp.errorhandler(ValidationError)
def _handle_validation_error(exc: ValidationError):
    """Convert Pydantic validation errors into JSON responses."""
    return jsonify({"detail": exc.errors(include_url=False, include_context=False)}), HTTPStatus.BAD_REQUEST


@api_bp.errorhandler(RequestValidationError)
def _handle_request_validation_error(exc: RequestValidationError):
    return jsonify({"detail": exc.errors}), HTTPStatus.BAD_REQUEST


@api_bp.errorhandler(InstrumentNotFoundError)
def _handle_not_found(exc: InstrumentNotFoundError):
    logger.info("rejected request: %s", exc)
    return jsonify({"detail": str(exc), "identifier": exc.identifier}), HTTPStatus.NOT_FOUND


@api_bp.get("/ping")
def ping() -> Any:
    """Health-check endpoint."""
    return jsonify(get_ping(_instruments()).model_dump())


@api_bp.get("/instruments")
def list_instruments() -> Any:
    """Every instrument in the loaded universe, in catalog order."""
    return jsonify([instrument.model_dump(mode="json") for instrument in _instruments().all()])


@api_bp.get("/instruments/<identifier>")
def get_instrument(identifier: str) -> Any:
    instrument = _instruments().resolve(identifier)
    return jsonify(instrument.model_dump(mode="json"))


@api_bp.post("/simulations")
def simulate() -> Any:
    """Run one projection and return the monthly portfolio and per-instrument series."""
    raw_payload: Dict[str, Any] = request.get_json(force=True, silent=False)
    payload = SimulationRequest.model_validate(raw_payload)
    result = run_projection(payload, _instruments())
    return jsonify(result.model_dump())

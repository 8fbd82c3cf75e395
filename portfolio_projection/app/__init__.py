"""Application factory and app-wide configuration."""

#setup: python -m venv .venv
#setup: source .venv/bin/activate   # (windows: .venv\Scripts\activate)
#setup: pip install -e ".[test]"
#setup: flask --app portfolio_projection.app run --port 5000 --debug

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS

from portfolio_projection.app.api.routes import api_bp
from portfolio_projection.config import Settings
from portfolio_projection.domain.instruments import InstrumentRepository

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    package_logger = logging.getLogger("portfolio_projection")
    package_logger.setLevel(level)
    if not logging.getLogger().handlers and not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[InstrumentRepository] = None,
) -> Flask:
    """Build the Flask app instance.

    The instrument universe is loaded once here; tests pass their own repository.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = Flask(__name__)
    app.extensions["settings"] = settings
    app.extensions["instruments"] = (
        repository if repository is not None else InstrumentRepository.from_csv(settings.universe_path)
    )

    CORS(
        app,
        resources={r"/api/*": {"origins": list(settings.cors_origins)}},
        supports_credentials=True,
    )

    app.register_blueprint(api_bp, url_prefix="/api")
    return app

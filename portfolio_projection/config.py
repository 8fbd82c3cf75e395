"""App-wide settings, read once from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from portfolio_projection.domain.instruments import DEFAULT_UNIVERSE_PATH

ENV_PREFIX = "PORTFOLIO_PROJECTION_"

DEFAULT_CORS_ORIGINS: Tuple[str, ...] = (
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
)


@dataclass(frozen=True)
class Settings:
    universe_path: Path = DEFAULT_UNIVERSE_PATH
    cors_origins: Tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        universe = env.get(f"{ENV_PREFIX}UNIVERSE")
        origins = env.get(f"{ENV_PREFIX}CORS_ORIGINS")
        level = env.get(f"{ENV_PREFIX}LOG_LEVEL")

        return cls(
            universe_path=Path(universe) if universe else DEFAULT_UNIVERSE_PATH,
            cors_origins=(
                tuple(origin.strip() for origin in origins.split(",") if origin.strip())
                if origins
                else DEFAULT_CORS_ORIGINS
            ),
            log_level=level.upper() if level else "INFO",
        )

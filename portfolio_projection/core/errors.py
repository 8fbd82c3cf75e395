"""Errors raised by the projection engine and its collaborators."""

from __future__ import annotations

from typing import List


class ProjectionError(Exception):
    """Base class for projection failures surfaced to callers."""


class RequestValidationError(ProjectionError, ValueError):
    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class InstrumentNotFoundError(ProjectionError, LookupError):
    def __init__(self, identifier: str):
        super().__init__(f"unknown instrument: {identifier}")
        self.identifier = identifier

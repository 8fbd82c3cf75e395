"""Instrument resolution: the in-memory universe the projection engine reads from."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Union

from pydantic import ValidationError

from portfolio_projection.core.errors import InstrumentNotFoundError
from portfolio_projection.schemas.instruments import DividendPolicy, Instrument

logger = logging.getLogger(__name__)

DEFAULT_UNIVERSE_PATH = Path(__file__).resolve().parents[1] / "data" / "universe.csv"

# Growth assumed when the catalog row carries no estimate.
DEFAULT_GROWTH_RATE = 0.06
# Annual yield shown for accumulating instruments that report none.
ACCUMULATING_FALLBACK_YIELD = 0.015
DISTRIBUTING_YIELD_THRESHOLD = 0.0001

_HEADER_PREFIXES = ("identifier,", "isin,", "symbol,")


class InstrumentResolver(Protocol):
    def resolve(self, identifier: str) -> Instrument:
        ...


class InstrumentRepository:
    """Insertion-ordered, read-mostly store of instruments keyed by identifier."""

    def __init__(self, instruments: Iterable[Instrument] = ()):
        self._by_identifier: Dict[str, Instrument] = {}
        for instrument in instruments:
            self.add(instrument)

    def add(self, instrument: Instrument) -> None:
        if instrument.identifier in self._by_identifier:
            logger.info("replacing instrument %s", instrument.identifier)
        self._by_identifier[instrument.identifier] = instrument

    def find(self, identifier: str) -> Optional[Instrument]:
        return self._by_identifier.get(identifier)

    def resolve(self, identifier: str) -> Instrument:
        instrument = self.find(identifier)
        if instrument is None:
            raise InstrumentNotFoundError(identifier)
        return instrument

    def all(self) -> List[Instrument]:
        return list(self._by_identifier.values())

    def __len__(self) -> int:
        return len(self._by_identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._by_identifier

    @classmethod
    def from_csv(cls, path: Union[str, Path]) -> "InstrumentRepository":
        return cls(load_universe(path))


def reporting_dividend_yield(instrument: Instrument) -> float:
    """Annual yield used when reporting generated dividends.

    Accumulating share classes usually report no yield even though they do earn
    dividends, so a conservative fallback keeps the reported figure from being zero.
    """
    if instrument.dividendYield <= 0 and instrument.dividendPolicy == DividendPolicy.ACCUMULATING:
        return ACCUMULATING_FALLBACK_YIELD
    return instrument.dividendYield


def infer_policy(dividend_yield: float) -> DividendPolicy:
    if dividend_yield > DISTRIBUTING_YIELD_THRESHOLD:
        return DividendPolicy.DISTRIBUTING
    return DividendPolicy.ACCUMULATING


def _optional_float(value: str) -> Optional[float]:
    value = value.strip()
    return float(value) if value else None


def parse_universe_row(parts: List[str]) -> Optional[Instrument]:
    """Build an Instrument from one catalog row.

    Column order: identifier, symbol, name, price, growth, yield, policy, expense_ratio.
    Only identifier and symbol are required; returns None when the row has no symbol.
    """
    parts = [part.strip() for part in parts] + [""] * max(0, 8 - len(parts))
    identifier, symbol, name, price, growth, dividend_yield, policy, expense_ratio = parts[:8]
    if not symbol:
        return None

    yield_value = _optional_float(dividend_yield) or 0.0
    growth_value = _optional_float(growth)
    return Instrument(
        identifier=identifier or symbol,
        symbol=symbol,
        name=name or symbol,
        currentPrice=_optional_float(price) or 0.0,
        annualGrowthRate=DEFAULT_GROWTH_RATE if growth_value is None else growth_value,
        dividendYield=yield_value,
        dividendPolicy=DividendPolicy(policy.upper()) if policy else infer_policy(yield_value),
        expenseRatio=_optional_float(expense_ratio),
    )


def load_universe(path: Union[str, Path]) -> List[Instrument]:
    """Read a CSV instrument catalog.

    A header row is optional, blank lines and '#' comments are ignored, and rows that
    fail to parse are skipped with a warning instead of aborting the load.
    """
    path = Path(path)
    instruments: List[Instrument] = []
    seen_data = False
    with path.open(newline="", encoding="utf-8") as handle:
        for line_no, row in enumerate(csv.reader(handle), start=1):
            if not row or not "".join(row).strip():
                continue
            if row[0].strip().startswith("#"):
                continue
            if not seen_data:
                seen_data = True
                if ",".join(row).strip().lower().startswith(_HEADER_PREFIXES):
                    continue
            if len(row) < 2:
                logger.warning("%s:%d: expected at least identifier and symbol", path, line_no)
                continue
            try:
                instrument = parse_universe_row(row)
            except (ValueError, ValidationError) as exc:
                logger.warning("%s:%d: skipping malformed row: %s", path, line_no, exc)
                continue
            if instrument is not None:
                instruments.append(instrument)

    logger.info("loaded %d instruments from %s", len(instruments), path)
    return instruments

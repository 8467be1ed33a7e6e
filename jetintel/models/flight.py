"""
Normalized flight record - input to the flight analytics engine.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class FlightRecord:
    """
    One flight leg.

    Airports are upper-cased ICAO/IATA codes, empty string when unknown.
    """
    date: date
    origin: str
    destination: str
    hours: Optional[float] = None

    @property
    def route_key(self) -> Optional[str]:
        """Unordered route pair, e.g. 'KTEB-KPBI'."""
        if not (self.origin and self.destination):
            return None
        return '-'.join(sorted((self.origin, self.destination)))

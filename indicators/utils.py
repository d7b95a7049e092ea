"""
Utilities for computing indicator values from numerator and denominator.
"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

DAYS_IN_YEAR = 365


class Period:
    """Helper class to represent a time period."""

    def __init__(self, start_iso: str, end_iso: str):
        """
        Initialize Period from ISO date strings.

        Args:
            start_iso: ISO format date string (YYYY-MM-DD)
            end_iso: ISO format date string (YYYY-MM-DD)
        """
        self.start = date.fromisoformat(start_iso)
        self.end = date.fromisoformat(end_iso)
        if self.start > self.end:
            raise ValueError(f"Period start {self.start} is after end {self.end}")

    @classmethod
    def from_dates(cls, start: date, end: date):
        """Create Period from date objects."""
        return cls(start.isoformat(), end.isoformat())

    @property
    def days_in_period(self) -> int:
        """Number of days in the period, both ends included."""
        return (self.end - self.start).days + 1

    def __repr__(self):
        return f"Period({self.start.isoformat()}, {self.end.isoformat()})"


def get_days_from_periods(periods: Iterable[Period]) -> int:
    """Total number of days across the given periods."""
    return sum(period.days_in_period for period in periods)


@dataclass
class IndicatorValue:
    """Numerator and denominator of an indicator with its scaling."""

    numerator_value: float
    denominator_value: float
    multiplier: int = 1
    divisor: int = 1

    @property
    def factor(self) -> float:
        return self.multiplier / self.divisor

    @property
    def value(self) -> Optional[float]:
        """
        numerator * multiplier / (denominator * divisor), or None when the
        denominator is zero.
        """
        denominator = self.denominator_value * self.divisor
        if denominator == 0:
            return None
        return (self.numerator_value * self.multiplier) / denominator

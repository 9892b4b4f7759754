"""
Half-open calendar date interval used for every rental period.

A range [start, end) includes its start day and excludes its end day, so a
rental returned on the 5th and another picked up on the 5th do not conflict.
"""

from dataclasses import dataclass
from datetime import date, datetime

from rental.core.exceptions import InvalidRangeError


@dataclass(frozen=True, order=True)
class CalendarRange:
    start: date
    end: date

    def __post_init__(self):
        if not (_is_day(self.start) and _is_day(self.end)):
            raise InvalidRangeError(self.start, self.end, "start and end must be calendar dates")
        if self.start >= self.end:
            raise InvalidRangeError(self.start, self.end)

    @classmethod
    def from_iso(cls, start: str, end: str) -> "CalendarRange":
        """Build a range from YYYY-MM-DD strings."""
        try:
            start_day = date.fromisoformat(start)
            end_day = date.fromisoformat(end)
        except (TypeError, ValueError):
            raise InvalidRangeError(start, end, "dates must be in YYYY-MM-DD form")
        return cls(start_day, end_day)

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    def overlaps(self, other: "CalendarRange") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end

    def to_dict(self) -> dict:
        return {"start_date": self.start.isoformat(), "end_date": self.end.isoformat()}

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


def overlaps(a: CalendarRange, b: CalendarRange) -> bool:
    return a.overlaps(b)


def contains(range_: CalendarRange, day: date) -> bool:
    return range_.contains(day)


def _is_day(value) -> bool:
    return isinstance(value, date) and not isinstance(value, datetime)

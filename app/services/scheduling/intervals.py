# app/services/scheduling/intervals.py
"""
Half-open time intervals [start, end).

Works for anything comparable: minute-of-day ints or datetimes anchored to
one date. Touching intervals (a.end == b.start) do not overlap. Every
availability check in the engine goes through overlaps().
"""
from datetime import datetime, date, time, timedelta
from typing import Iterable, List, NamedTuple, Any


class Interval(NamedTuple):
    start: Any
    end: Any

    @classmethod
    def of(cls, start: datetime, minutes: int) -> "Interval":
        """Interval starting at `start` lasting `minutes`"""
        return cls(start, start + timedelta(minutes=minutes))

    @classmethod
    def on_date(cls, day: date, start: time, end: time) -> "Interval":
        """Anchor a time-of-day range to a calendar date"""
        return cls(datetime.combine(day, start), datetime.combine(day, end))

    @property
    def is_empty(self) -> bool:
        return not self.start < self.end


def overlaps(a: Interval, b: Interval) -> bool:
    return a.start < b.end and b.start < a.end


def contains(outer: Interval, inner: Interval) -> bool:
    return outer.start <= inner.start and inner.end <= outer.end


def overlaps_any(candidate: Interval, others: Iterable[Interval]) -> bool:
    return any(overlaps(candidate, other) for other in others)


def merge(intervals: Iterable[Interval]) -> List[Interval]:
    """Union of intervals, sorted; overlapping or touching ones are joined. Empty ones are dropped."""
    merged: List[Interval] = []
    for current in sorted(i for i in intervals if not i.is_empty):
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = Interval(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged

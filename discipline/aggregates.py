"""Aggregation views — fixed-length day series for the charts.

Both series are ordered oldest first and end on `today`.
"""

import math
from collections.abc import Iterable
from datetime import date, timedelta

from discipline.ledger import count_by_date
from discipline.models import CompletionLog, DayCount, HeatCell

WEEK_DAYS = 7
HEATMAP_DAYS = 28
HEATMAP_BUCKETS = 4

_WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _days_ending(today: date, length: int) -> list[date]:
    return [today - timedelta(days=length - 1 - i) for i in range(length)]


def weekly_series(logs: Iterable[CompletionLog], today: date) -> list[DayCount]:
    """Completions per day for the last 7 days, zero-filled."""
    counts = count_by_date(logs)
    return [
        DayCount(
            date=day.isoformat(),
            label=_WEEKDAY_LABELS[day.weekday()],
            count=counts.get(day.isoformat(), 0),
        )
        for day in _days_ending(today, WEEK_DAYS)
    ]


def heatmap(logs: Iterable[CompletionLog], active_habit_count: int,
            today: date) -> list[HeatCell]:
    """Per-day share of active habits completed over the last 28 days."""
    counts = count_by_date(logs)
    denominator = max(1, active_habit_count)
    return [
        HeatCell(
            date=day.isoformat(),
            intensity=min(1.0, counts.get(day.isoformat(), 0) / denominator),
        )
        for day in _days_ending(today, HEATMAP_DAYS)
    ]


def intensity_bucket(intensity: float, buckets: int = HEATMAP_BUCKETS) -> int:
    """Map an intensity to 0..buckets; only an empty day lands in bucket 0."""
    if intensity <= 0:
        return 0
    return min(buckets, math.ceil(intensity * buckets))

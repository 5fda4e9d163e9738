"""Ledger queries — pure functions over a fetched list of completion logs.

Only logs with completed=True count; a flipped-off record and a missing
record are the same thing to every reader.
"""

from collections.abc import Iterable
from datetime import date, datetime

from discipline.config import local_tz
from discipline.errors import ValidationError
from discipline.models import CompletionLog


def today() -> date:
    """The local calendar day. Resolve once per request and pass it down."""
    return datetime.now(local_tz()).date()


def parse_day(value: str | date | None) -> date:
    """Accept a date, an ISO `YYYY-MM-DD` string, or None for today."""
    if value is None:
        return today()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD") from e


def count_by_date(logs: Iterable[CompletionLog]) -> dict[str, int]:
    """Completed logs per day, across all habits."""
    counts: dict[str, int] = {}
    for log in logs:
        if log.completed and log.date:
            counts[log.date] = counts.get(log.date, 0) + 1
    return counts


def logs_for_day(logs: Iterable[CompletionLog], day: date | str) -> list[CompletionLog]:
    key = day.isoformat() if isinstance(day, date) else day
    return [log for log in logs if log.completed and log.date == key]


def total_completions(logs: Iterable[CompletionLog]) -> int:
    return sum(1 for log in logs if log.completed)

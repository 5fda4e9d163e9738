"""Streak calculator.

A streak is a run of consecutive calendar days with at least one completion.
The current streak survives an empty today as long as yesterday was logged;
it is broken once both today and yesterday are empty.
"""

from collections.abc import Iterable, Mapping
from datetime import date, timedelta

from discipline.config import STREAK_HORIZON_DAYS, HABIT_STREAK_HORIZON_DAYS
from discipline.ledger import count_by_date
from discipline.models import CompletionLog, Streaks


def streaks_from_counts(counts: Mapping[str, int], today: date,
                        horizon: int = STREAK_HORIZON_DAYS) -> Streaks:
    """Walk back from today over `horizon` days and measure both streaks."""
    logged = [day for day, count in counts.items() if count > 0]
    if not logged:
        return Streaks()
    earliest = min(logged)  # ISO dates sort lexically

    current = best = run = 0
    counting_current = True
    for offset in range(horizon):
        day = (today - timedelta(days=offset)).isoformat()
        if day < earliest:
            break
        if counts.get(day, 0) > 0:
            run += 1
            if counting_current:
                current = run
        elif offset == 0:
            # Today is still open
            continue
        else:
            best = max(best, run)
            run = 0
            counting_current = False

    return Streaks(current=current, best=max(best, run))


def compute_streaks(logs: Iterable[CompletionLog], today: date,
                    horizon: int = STREAK_HORIZON_DAYS) -> Streaks:
    return streaks_from_counts(count_by_date(logs), today, horizon)


def habit_streak(logs: Iterable[CompletionLog], habit_id: int, today: date,
                 horizon: int = HABIT_STREAK_HORIZON_DAYS) -> int:
    """Current streak of a single habit, shown next to it on the checklist."""
    done = {log.date for log in logs if log.habit_id == habit_id and log.completed}
    streak = 0
    for offset in range(horizon):
        day = (today - timedelta(days=offset)).isoformat()
        if day in done:
            streak += 1
        elif offset == 0:
            continue
        else:
            break
    return streak

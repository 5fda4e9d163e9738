"""Tracker — validated writes and read snapshots on top of the record store.

toggle_completion() is the only path that changes the ledger. Every other
function either edits the habit catalog/settings or reads a fresh snapshot
and hands it to the pure calculators (streaks, progression, aggregates).
Callers resolve "today" once per request and pass it through.
"""

import logging
from dataclasses import replace
from datetime import date

from discipline import db
from discipline.aggregates import heatmap, weekly_series
from discipline.config import SEED_DEFAULT_HABITS
from discipline.errors import ValidationError
from discipline.ledger import logs_for_day, parse_day, total_completions
from discipline.models import (
    DayCount, DaySummary, Habit, HabitStatus, HeatCell, Settings, ToggleResult, UserStats,
)
from discipline.progression import compute_progression
from discipline.streaks import compute_streaks, habit_streak

log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Habit catalog
# ═══════════════════════════════════════════════════════════════════════════

def list_habits(active: bool | None = None) -> list[Habit]:
    return db.list_habits(active)


def add_habit(name: str) -> Habit:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Habit name cannot be empty")
    habit_id = db.create_habit(name)
    log.info("Habit #%d created: %s", habit_id, name)
    return db.get_habit(habit_id)


def set_habit_active(habit_id: int, active: bool) -> bool:
    if not db.set_habit_active(habit_id, active):
        log.info("Habit #%d not found, nothing to %s", habit_id,
                 "restore" if active else "archive")
        return False
    log.info("Habit #%d %s", habit_id, "restored" if active else "archived")
    return True


def toggle_archive(habit_id: int) -> Habit | None:
    """Flip a habit between active and archived. None if it is gone."""
    habit = db.get_habit(habit_id)
    if habit is None:
        return None
    set_habit_active(habit_id, not habit.active)
    return replace(habit, active=not habit.active)


def delete_habit(habit_id: int) -> bool:
    """Permanently delete a habit and its whole completion history."""
    deleted = db.delete_habit(habit_id)
    if deleted:
        log.info("Habit #%d deleted with its logs", habit_id)
    return deleted


def find_habit(ref: str, habits: list[Habit]) -> Habit | None:
    """Resolve a 1-based list position, else a case-insensitive name."""
    ref = ref.strip()
    if ref.isdecimal():
        index = int(ref) - 1
        if 0 <= index < len(habits):
            return habits[index]
    wanted = ref.casefold()
    for habit in habits:
        if habit.name.casefold() == wanted:
            return habit
    return None


# ═══════════════════════════════════════════════════════════════════════════
# Toggle
# ═══════════════════════════════════════════════════════════════════════════

def toggle_completion(habit_id: int, day: str | date | None = None) -> ToggleResult:
    """Mark a habit done for a day, or undo it if it already was.

    Ids the store never issued are rejected. A habit that existed but was
    deleted in the meantime is a no-op. The all-done check reads the state
    after the write has committed.
    """
    if isinstance(habit_id, bool) or not isinstance(habit_id, int) \
            or habit_id <= 0 or habit_id > db.max_habit_id():
        raise ValidationError(f"Unknown habit id {habit_id!r}")
    key = parse_day(day).isoformat()

    completed = db.toggle_log(habit_id, key)
    if completed is None:
        log.info("Toggle ignored: habit #%d no longer exists", habit_id)
        return ToggleResult(completed=False)

    all_done = False
    if completed:
        total = len(db.list_habits(active=True))
        all_done = total > 0 and db.count_completed_active(key) == total
    log.info("Habit #%d %s on %s%s", habit_id,
             "completed" if completed else "uncompleted", key,
             " (all habits done)" if all_done else "")
    return ToggleResult(completed=completed, all_habits_done=all_done)


# ═══════════════════════════════════════════════════════════════════════════
# Snapshots
# ═══════════════════════════════════════════════════════════════════════════

def day_summary(day: str | date | None = None) -> DaySummary:
    """Active habits with their done flag and per-habit streak."""
    day = parse_day(day)
    habits = db.list_habits(active=True)
    logs = db.list_logs(completed=True)
    done_ids = {entry.habit_id for entry in logs_for_day(logs, day)}

    items = [
        HabitStatus(habit=h, done_today=h.id in done_ids, streak=habit_streak(logs, h.id, day))
        for h in habits
    ]
    return DaySummary(
        date=day.isoformat(),
        items=items,
        done=sum(1 for item in items if item.done_today),
        total=len(items),
    )


def user_stats(today: str | date | None = None) -> UserStats:
    today = parse_day(today)
    logs = db.list_logs(completed=True)
    total = total_completions(logs)
    streaks = compute_streaks(logs, today)
    return UserStats(
        total_completions=total,
        streaks=streaks,
        progression=compute_progression(total, streaks.best),
    )


def weekly(today: str | date | None = None) -> list[DayCount]:
    return weekly_series(db.list_logs(completed=True), parse_day(today))


def momentum(today: str | date | None = None) -> list[HeatCell]:
    active = len(db.list_habits(active=True))
    return heatmap(db.list_logs(completed=True), active, parse_day(today))


# ═══════════════════════════════════════════════════════════════════════════
# Settings & lifecycle
# ═══════════════════════════════════════════════════════════════════════════

def get_settings() -> Settings:
    return db.get_settings()


def toggle_theme() -> Settings:
    current = db.get_settings()
    updated = replace(current, theme="light" if current.theme == "dark" else "dark")
    db.save_settings(updated)
    log.info("Theme switched to %s", updated.theme)
    return updated


def setup() -> None:
    """Create the schema and, on first run, the starter habits."""
    db.init_db()
    if SEED_DEFAULT_HABITS:
        db.seed_defaults()


def reset_all() -> None:
    """Wipe every habit, log and setting, then start over as on first run."""
    db.reset_db()
    if SEED_DEFAULT_HABITS:
        db.seed_defaults()

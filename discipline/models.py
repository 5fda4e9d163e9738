"""Record and value types.

Persisted records (Habit, CompletionLog, Settings) mirror the SQLite rows
with real booleans. Everything else is derived on read and never stored.
"""

from dataclasses import dataclass, field


# ═══════════════════════════════════════════════════════════════════════════
# Persisted records
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Habit:
    id: int
    name: str
    created_at: str
    active: bool = True


@dataclass(frozen=True)
class CompletionLog:
    """One (habit, day) entry. At most one exists per pair."""
    id: int
    habit_id: int
    date: str               # YYYY-MM-DD, local calendar day
    completed: bool
    created_at: str


@dataclass(frozen=True)
class Settings:
    """The single settings record. Updated via dataclasses.replace + save."""
    theme: str = "dark"     # "dark" | "light"
    notifications: bool = False
    reminder_time: str = "08:00"


# ═══════════════════════════════════════════════════════════════════════════
# Derived values
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Streaks:
    current: int = 0
    best: int = 0


@dataclass(frozen=True)
class Progression:
    xp: int = 0
    level: int = 1
    progress_percent: float = 0.0


@dataclass(frozen=True)
class DayCount:
    """One bar of the weekly chart."""
    date: str
    label: str              # short weekday name, e.g. "Mon"
    count: int


@dataclass(frozen=True)
class HeatCell:
    """One cell of the momentum heatmap; intensity is in [0, 1]."""
    date: str
    intensity: float


@dataclass(frozen=True)
class ToggleResult:
    completed: bool
    all_habits_done: bool = False


@dataclass(frozen=True)
class UserStats:
    total_completions: int = 0
    streaks: Streaks = field(default_factory=Streaks)
    progression: Progression = field(default_factory=Progression)


@dataclass(frozen=True)
class HabitStatus:
    habit: Habit
    done_today: bool
    streak: int


@dataclass(frozen=True)
class DaySummary:
    """Today's checklist: active habits only."""
    date: str
    items: list[HabitStatus] = field(default_factory=list)
    done: int = 0
    total: int = 0

    @property
    def percent(self) -> float:
        return (self.done / self.total) * 100 if self.total else 0.0

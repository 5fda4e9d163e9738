"""SQLite database layer — persistent storage for habits, completion logs, settings.

Lightweight schema. Tables are created automatically on first run.
Booleans are stored as 0/1 and converted to bool on the way out.
Any operational SQLite failure (locked file, missing schema, unreadable
file) surfaces as StorageUnavailable.
"""

import sqlite3
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from discipline.config import (
    DB_PATH, DB_TIMEOUT_SECONDS, DEFAULT_HABITS, DEFAULT_THEME, DEFAULT_REMINDER_TIME,
    local_tz,
)
from discipline.errors import StorageUnavailable, ValidationError
from discipline.models import CompletionLog, Habit, Settings

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(local_tz()).isoformat()


def _name_key(name: str) -> str:
    """Uniqueness key for habit names, matching how chat lookups compare them."""
    return name.casefold()


def _connect() -> sqlite3.Connection:
    """Return a connection with row_factory set.

    Raises StorageUnavailable if the file or its directory cannot be opened.
    """
    try:
        DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(DB_PATH), timeout=DB_TIMEOUT_SECONDS)
        conn.execute("PRAGMA journal_mode=WAL")
    except (OSError, sqlite3.DatabaseError) as e:
        logger.error("Database unavailable at %s: %s", DB_PATH, e)
        raise StorageUnavailable(f"Cannot open database at {DB_PATH}: {e}") from e
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def _db() -> Iterator[sqlite3.Connection]:
    """Open a connection for one operation and always close it."""
    conn = _connect()
    try:
        yield conn
    except sqlite3.OperationalError as e:
        logger.error("Database error at %s: %s", DB_PATH, e)
        raise StorageUnavailable(f"Database at {DB_PATH} failed: {e}") from e
    finally:
        conn.close()


_SCHEMA = """
    -- Habits (defined by user); name_key is the casefolded name
    CREATE TABLE IF NOT EXISTS habits (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        name        TEXT    NOT NULL,
        name_key    TEXT    NOT NULL,
        active      INTEGER NOT NULL DEFAULT 1,
        created_at  TEXT    NOT NULL
    );
    CREATE UNIQUE INDEX IF NOT EXISTS idx_habits_name_key
        ON habits(name_key);

    -- Completion logs: one row per (habit, day), completed flag flips on toggle
    CREATE TABLE IF NOT EXISTS habit_logs (
        id         INTEGER PRIMARY KEY AUTOINCREMENT,
        habit_id   INTEGER NOT NULL REFERENCES habits(id),
        date       TEXT    NOT NULL,
        completed  INTEGER NOT NULL DEFAULT 1,
        created_at TEXT    NOT NULL
    );
    CREATE UNIQUE INDEX IF NOT EXISTS idx_habit_logs_pair
        ON habit_logs(habit_id, date);
    CREATE INDEX IF NOT EXISTS idx_habit_logs_date
        ON habit_logs(date, completed);

    -- Settings (single row)
    CREATE TABLE IF NOT EXISTS settings (
        id            INTEGER PRIMARY KEY CHECK (id = 1),
        theme         TEXT    NOT NULL DEFAULT 'dark',
        notifications INTEGER NOT NULL DEFAULT 0,
        reminder_time TEXT    NOT NULL DEFAULT '08:00'
    );
"""


def init_db() -> None:
    """Create tables if they don't exist."""
    with _db() as conn:
        conn.executescript(_SCHEMA)
    logger.info("Database initialized at %s", DB_PATH)


def reset_db() -> None:
    """Drop every table and recreate an empty schema."""
    with _db() as conn:
        conn.executescript("""
            DROP TABLE IF EXISTS habit_logs;
            DROP TABLE IF EXISTS habits;
            DROP TABLE IF EXISTS settings;
        """)
    logger.warning("Database wiped")
    init_db()


def seed_defaults() -> int:
    """Insert default habits and settings on first run. Returns habits added."""
    added = 0
    with _db() as conn, conn:
        if conn.execute("SELECT COUNT(*) AS cnt FROM habits").fetchone()["cnt"] == 0:
            now = _now()
            conn.executemany(
                "INSERT INTO habits (name, name_key, active, created_at) VALUES (?, ?, 1, ?)",
                [(name, _name_key(name), now) for name in DEFAULT_HABITS],
            )
            added = len(DEFAULT_HABITS)
        conn.execute(
            "INSERT OR IGNORE INTO settings (id, theme, notifications, reminder_time) "
            "VALUES (1, ?, 0, ?)",
            (DEFAULT_THEME, DEFAULT_REMINDER_TIME),
        )
    if added:
        logger.info("Seeded %d default habits", added)
    return added


# ═══════════════════════════════════════════════════════════════════════════
# Habits
# ═══════════════════════════════════════════════════════════════════════════

def _row_to_habit(row: sqlite3.Row) -> Habit:
    return Habit(
        id=row["id"],
        name=row["name"],
        created_at=row["created_at"],
        active=bool(row["active"]),
    )


def create_habit(name: str) -> int:
    """Create a new active habit. Returns habit id.

    Names are unique after casefolding ("Ärger" and "ärger" collide).
    """
    with _db() as conn:
        try:
            with conn:
                cur = conn.execute(
                    "INSERT INTO habits (name, name_key, active, created_at) VALUES (?, ?, 1, ?)",
                    (name, _name_key(name), _now()),
                )
        except sqlite3.IntegrityError as e:
            raise ValidationError(f"Habit '{name}' already exists") from e
    return cur.lastrowid


def get_habit(habit_id: int) -> Habit | None:
    with _db() as conn:
        row = conn.execute(
            "SELECT id, name, active, created_at FROM habits WHERE id = ?", (habit_id,)
        ).fetchone()
    return _row_to_habit(row) if row else None


def list_habits(active: bool | None = None) -> list[Habit]:
    """Habits in creation order, optionally filtered by the active flag."""
    sql = "SELECT id, name, active, created_at FROM habits"
    params: list = []
    if active is not None:
        sql += " WHERE active = ?"
        params.append(int(active))
    sql += " ORDER BY id"
    with _db() as conn:
        rows = conn.execute(sql, params).fetchall()
    return [_row_to_habit(r) for r in rows]


def set_habit_active(habit_id: int, active: bool) -> bool:
    """Archive or restore a habit. Returns False if it no longer exists."""
    with _db() as conn, conn:
        cur = conn.execute(
            "UPDATE habits SET active = ? WHERE id = ?", (int(active), habit_id)
        )
    return cur.rowcount > 0


def delete_habit(habit_id: int) -> bool:
    """Delete a habit and all of its logs in one transaction."""
    with _db() as conn, conn:
        conn.execute("DELETE FROM habit_logs WHERE habit_id = ?", (habit_id,))
        cur = conn.execute("DELETE FROM habits WHERE id = ?", (habit_id,))
    return cur.rowcount > 0


def max_habit_id() -> int:
    """Highest habit id ever issued (survives deletes), 0 if none."""
    with _db() as conn:
        row = conn.execute(
            "SELECT seq FROM sqlite_sequence WHERE name = 'habits'"
        ).fetchone()
    return row["seq"] if row else 0


# ═══════════════════════════════════════════════════════════════════════════
# Completion Logs
# ═══════════════════════════════════════════════════════════════════════════

def _row_to_log(row: sqlite3.Row) -> CompletionLog:
    return CompletionLog(
        id=row["id"],
        habit_id=row["habit_id"],
        date=row["date"],
        completed=bool(row["completed"]),
        created_at=row["created_at"],
    )


def list_logs(date: str | None = None, habit_id: int | None = None,
              completed: bool | None = None) -> list[CompletionLog]:
    sql = "SELECT id, habit_id, date, completed, created_at FROM habit_logs WHERE 1 = 1"
    params: list = []

    if date is not None:
        sql += " AND date = ?"
        params.append(date)
    if habit_id is not None:
        sql += " AND habit_id = ?"
        params.append(habit_id)
    if completed is not None:
        sql += " AND completed = ?"
        params.append(int(completed))

    sql += " ORDER BY date, id"
    with _db() as conn:
        rows = conn.execute(sql, params).fetchall()
    return [_row_to_log(r) for r in rows]


def get_log(habit_id: int, date: str) -> CompletionLog | None:
    with _db() as conn:
        row = conn.execute(
            "SELECT id, habit_id, date, completed, created_at FROM habit_logs "
            "WHERE habit_id = ? AND date = ?",
            (habit_id, date),
        ).fetchone()
    return _row_to_log(row) if row else None


def upsert_log(habit_id: int, date: str, completed: bool = True) -> int:
    """Insert or update the log for (habit, date). Returns its id."""
    with _db() as conn, conn:
        conn.execute(
            """INSERT INTO habit_logs (habit_id, date, completed, created_at) VALUES (?, ?, ?, ?)
               ON CONFLICT(habit_id, date) DO UPDATE SET completed = excluded.completed""",
            (habit_id, date, int(completed), _now()),
        )
        row = conn.execute(
            "SELECT id FROM habit_logs WHERE habit_id = ? AND date = ?",
            (habit_id, date),
        ).fetchone()
    return row["id"]


def delete_log(log_id: int) -> None:
    with _db() as conn, conn:
        conn.execute("DELETE FROM habit_logs WHERE id = ?", (log_id,))


def delete_logs_for_habit(habit_id: int) -> int:
    with _db() as conn, conn:
        cur = conn.execute("DELETE FROM habit_logs WHERE habit_id = ?", (habit_id,))
    return cur.rowcount


def toggle_log(habit_id: int, date: str) -> bool | None:
    """Flip the completed flag for (habit, date) as one write transaction.

    Returns the new completed state, or None if the habit no longer exists.
    """
    with _db() as conn, conn:
        conn.execute("BEGIN IMMEDIATE")
        if not conn.execute("SELECT 1 FROM habits WHERE id = ?", (habit_id,)).fetchone():
            return None
        row = conn.execute(
            "SELECT id, completed FROM habit_logs WHERE habit_id = ? AND date = ?",
            (habit_id, date),
        ).fetchone()
        if row:
            completed = not row["completed"]
            conn.execute(
                "UPDATE habit_logs SET completed = ? WHERE id = ?",
                (int(completed), row["id"]),
            )
        else:
            completed = True
            conn.execute(
                "INSERT INTO habit_logs (habit_id, date, completed, created_at) "
                "VALUES (?, ?, 1, ?)",
                (habit_id, date, _now()),
            )
    return completed


def count_completed_active(date: str) -> int:
    """Active habits with a completed log on the given day."""
    with _db() as conn:
        row = conn.execute(
            """SELECT COUNT(*) AS cnt FROM habit_logs l
               JOIN habits h ON h.id = l.habit_id
               WHERE l.date = ? AND l.completed = 1 AND h.active = 1""",
            (date,),
        ).fetchone()
    return row["cnt"]


# ═══════════════════════════════════════════════════════════════════════════
# Settings
# ═══════════════════════════════════════════════════════════════════════════

def get_settings() -> Settings:
    with _db() as conn:
        row = conn.execute(
            "SELECT theme, notifications, reminder_time FROM settings WHERE id = 1"
        ).fetchone()
    if not row:
        return Settings(theme=DEFAULT_THEME, reminder_time=DEFAULT_REMINDER_TIME)
    return Settings(
        theme=row["theme"],
        notifications=bool(row["notifications"]),
        reminder_time=row["reminder_time"],
    )


def save_settings(settings: Settings) -> None:
    with _db() as conn, conn:
        conn.execute(
            """INSERT INTO settings (id, theme, notifications, reminder_time) VALUES (1, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET theme = excluded.theme,
                   notifications = excluded.notifications,
                   reminder_time = excluded.reminder_time""",
            (settings.theme, int(settings.notifications), settings.reminder_time),
        )

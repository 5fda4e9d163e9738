"""Configuration — loads environment variables with sensible defaults.

All tunables live here. Override via .env file or environment variables.
No hardcoded thresholds/timings elsewhere in the codebase.
"""

import logging
import os
from datetime import timezone, timedelta, tzinfo
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default)

def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))

def _env_bool(key: str, default: bool = False) -> bool:
    return os.getenv(key, str(default)).lower() in ("1", "true", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# Transport
# ═══════════════════════════════════════════════════════════════════════════

TELEGRAM_BOT_TOKEN = _env("TELEGRAM_BOT_TOKEN")

# ═══════════════════════════════════════════════════════════════════════════
# Owner
# ═══════════════════════════════════════════════════════════════════════════

OWNER_USER_ID = _env_int("OWNER_USER_ID", 0)


def set_owner_user_id(user_id: int) -> None:
    """Set OWNER_USER_ID at runtime and persist to .env for restart safety."""
    global OWNER_USER_ID
    OWNER_USER_ID = user_id
    _persist_owner(user_id)


def _persist_owner(user_id: int) -> None:
    """Write OWNER_USER_ID into .env so it survives restarts."""
    env_path = _PROJECT_ROOT / ".env"
    try:
        if env_path.exists():
            lines = env_path.read_text().splitlines()
            for i, line in enumerate(lines):
                if line.startswith("OWNER_USER_ID="):
                    lines[i] = f"OWNER_USER_ID={user_id}"
                    break
            else:
                lines.append(f"OWNER_USER_ID={user_id}")
            env_path.write_text("\n".join(lines) + "\n")
        else:
            env_path.write_text(f"OWNER_USER_ID={user_id}\n")
    except OSError:
        logging.getLogger(__name__).warning(
            "Could not persist OWNER_USER_ID to .env, set it manually"
        )


# ═══════════════════════════════════════════════════════════════════════════
# Database
# ═══════════════════════════════════════════════════════════════════════════

DB_PATH = Path(_env("DISCIPLINE_DB_PATH") or _PROJECT_ROOT / "data" / "discipline.db")
# Seconds to wait on a locked database before giving up
DB_TIMEOUT_SECONDS = float(_env("DB_TIMEOUT_SECONDS", "5"))

# First run inserts a starter set of habits and the settings record
SEED_DEFAULT_HABITS = _env_bool("SEED_DEFAULT_HABITS", True)
DEFAULT_HABITS = ["Meditate", "Workout", "Read", "Eat Healthy", "Plan Day"]
DEFAULT_THEME = _env("DEFAULT_THEME", "dark")
DEFAULT_REMINDER_TIME = _env("DEFAULT_REMINDER_TIME", "08:00")

# ═══════════════════════════════════════════════════════════════════════════
# Streaks & Progression
# ═══════════════════════════════════════════════════════════════════════════

STREAK_HORIZON_DAYS = _env_int("STREAK_HORIZON_DAYS", 365)
HABIT_STREAK_HORIZON_DAYS = _env_int("HABIT_STREAK_HORIZON_DAYS", 30)

XP_PER_COMPLETION = _env_int("XP_PER_COMPLETION", 10)
XP_PER_STREAK_DAY = _env_int("XP_PER_STREAK_DAY", 50)
LEVEL_XP_BASE = _env_int("LEVEL_XP_BASE", 100)

# ═══════════════════════════════════════════════════════════════════════════
# Timezone (empty = host local time, otherwise a fixed UTC offset in hours)
# ═══════════════════════════════════════════════════════════════════════════

TIMEZONE_OFFSET_HOURS = _env("TIMEZONE_OFFSET_HOURS")


def local_tz() -> tzinfo | None:
    """Return the configured fixed-offset zone, or None for host local time."""
    if TIMEZONE_OFFSET_HOURS == "":
        return None
    return timezone(timedelta(hours=int(TIMEZONE_OFFSET_HOURS)))

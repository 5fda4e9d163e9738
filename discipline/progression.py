"""Progression engine — XP and levels.

XP rewards volume (per completion) and consistency (per day of best streak).
Levels follow a square-root curve, so level n starts at (n-1)^2 * base XP
and each level needs more XP than the last.
"""

import math

from discipline.config import XP_PER_COMPLETION, XP_PER_STREAK_DAY, LEVEL_XP_BASE
from discipline.models import Progression


def level_for_xp(xp: int) -> int:
    # floor(sqrt(xp / base)) + 1, in exact integer arithmetic
    return math.isqrt(max(xp, 0) // LEVEL_XP_BASE) + 1


def xp_for_level(level: int) -> int:
    """XP at which `level` starts."""
    return (level - 1) ** 2 * LEVEL_XP_BASE


def compute_progression(total_completions: int, best_streak: int) -> Progression:
    xp = total_completions * XP_PER_COMPLETION + best_streak * XP_PER_STREAK_DAY
    level = level_for_xp(xp)
    floor_xp = xp_for_level(level)
    ceil_xp = xp_for_level(level + 1)
    progress = (xp - floor_xp) / (ceil_xp - floor_xp) * 100
    return Progression(
        xp=xp,
        level=level,
        progress_percent=min(100.0, max(0.0, progress)),
    )

"""Plain-text rendering of tracker snapshots for chat transports."""

from discipline.aggregates import intensity_bucket
from discipline.models import DayCount, DaySummary, HeatCell, UserStats

# Glyphs per heatmap bucket (0 = empty day), one palette per theme
HEAT_GLYPHS = {
    "dark": "·░▒▓█",
    "light": "·○◔◑●",
}


def progress_bar(percent: float, width: int = 10) -> str:
    filled = round(max(0.0, min(100.0, percent)) / 100 * width)
    return "█" * filled + "░" * (width - filled)


def render_checklist(summary: DaySummary) -> str:
    if not summary.items:
        return "No active habits yet. Add one with /add <name>."

    lines = [
        f"📅 {summary.date}: {summary.done}/{summary.total} done",
        f"[{progress_bar(summary.percent)}] {summary.percent:.0f}%",
        "",
    ]
    for i, item in enumerate(summary.items, start=1):
        mark = "✅" if item.done_today else "⬜"
        line = f"{i}. {mark} {item.habit.name}"
        if item.streak:
            line += f"  🔥 {item.streak} day streak"
        lines.append(line)
    return "\n".join(lines)


def render_stats(stats: UserStats) -> str:
    p = stats.progression
    return "\n".join([
        f"🏆 Level {p.level}  ·  {p.xp} XP",
        f"[{progress_bar(p.progress_percent)}] {p.progress_percent:.0f}% to Level {p.level + 1}",
        "",
        f"🔥 Current streak: {stats.streaks.current} days",
        f"⚡ Best streak: {stats.streaks.best} days",
        f"🎯 Lifetime missions: {stats.total_completions}",
    ])


def render_week(series: list[DayCount]) -> str:
    peak = max((d.count for d in series), default=0)
    lines = ["📊 Last 7 days"]
    for d in series:
        bar = "▇" * round(d.count / peak * 8) if peak else ""
        lines.append(f"{d.label} {bar or '·'} {d.count}")
    return "\n".join(lines)


def render_heatmap(cells: list[HeatCell], theme: str = "dark") -> str:
    """Rows of 7 days, oldest first."""
    glyphs = HEAT_GLYPHS.get(theme, HEAT_GLYPHS["dark"])
    rows = []
    for start in range(0, len(cells), 7):
        week = cells[start:start + 7]
        rows.append(" ".join(glyphs[intensity_bucket(c.intensity, len(glyphs) - 1)] for c in week))
    return "🗓 Momentum (28 days)\n" + "\n".join(rows)

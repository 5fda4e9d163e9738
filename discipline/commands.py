"""Chat commands — turns a text message into tracker calls and reply texts.

Transports stay dumb pipes: they hand over the raw text and send back
whatever list of messages dispatch() returns. Plain text without a leading
slash is treated as /done <text>.
"""

import logging
from collections.abc import Callable

from discipline import tracker
from discipline.errors import StorageUnavailable, ValidationError
from discipline.ledger import today
from discipline.models import Habit
from discipline.views import render_checklist, render_heatmap, render_stats, render_week

log = logging.getLogger(__name__)

HELP_TEXT = (
    "Build habits one day at a time.\n\n"
    "Commands:\n"
    "/today — Today's checklist\n"
    "/done <number|name> — Check or uncheck a habit for today\n"
    "/add <name> — Add a habit\n"
    "/archive <name> — Archive or restore a habit\n"
    "/delete <name> — Delete a habit and its history\n"
    "/habits — All habits, archived included\n"
    "/stats — Level, XP and streaks\n"
    "/week — Completions over the last 7 days\n"
    "/heatmap — 28-day momentum grid\n"
    "/theme — Switch between dark and light\n"
    "/reset confirm — Wipe all data"
)

STORAGE_HINT = (
    "💥 The habit database can't be opened right now. "
    "Restart the bot; if it keeps failing, move the database file aside to start fresh."
)

CELEBRATION = "🎉 100%! Every habit done today. Unstoppable."


def _cmd_help(args: list[str]) -> list[str]:
    return [HELP_TEXT]


def _cmd_today(args: list[str]) -> list[str]:
    return [render_checklist(tracker.day_summary())]


def _cmd_done(args: list[str]) -> list[str]:
    ref = " ".join(args)
    if not ref:
        raise ValidationError("Usage: /done <number or name>")
    day = today()
    summary = tracker.day_summary(day)
    habit = tracker.find_habit(ref, [item.habit for item in summary.items])
    if habit is None:
        raise ValidationError(f"No active habit matches '{ref}'. See /today.")

    result = tracker.toggle_completion(habit.id, day)
    verb = "✅ Done" if result.completed else "↩️ Unchecked"
    replies = [f"{verb}: {habit.name}\n\n" + render_checklist(tracker.day_summary(day))]
    if result.all_habits_done:
        replies.append(CELEBRATION)
    return replies


def _cmd_add(args: list[str]) -> list[str]:
    habit = tracker.add_habit(" ".join(args))
    return [f"➕ Added habit #{habit.id}: {habit.name}"]


def _resolve_any_habit(ref: str, usage: str) -> Habit:
    if not ref:
        raise ValidationError(usage)
    habit = tracker.find_habit(ref, tracker.list_habits())
    if habit is None:
        raise ValidationError(f"No habit matches '{ref}'. See /habits.")
    return habit


def _cmd_archive(args: list[str]) -> list[str]:
    habit = _resolve_any_habit(" ".join(args), "Usage: /archive <number or name>")
    updated = tracker.toggle_archive(habit.id)
    if updated is None:
        return [f"{habit.name} is already gone."]
    return [f"📦 Archived: {updated.name}" if not updated.active else f"📤 Restored: {updated.name}"]


def _cmd_delete(args: list[str]) -> list[str]:
    habit = _resolve_any_habit(" ".join(args), "Usage: /delete <number or name>")
    tracker.delete_habit(habit.id)
    return [f"🗑 Deleted {habit.name} and all of its history."]


def _cmd_habits(args: list[str]) -> list[str]:
    habits = tracker.list_habits()
    if not habits:
        return ["No habits yet."]
    lines = [f"{i}. {h.name}{'' if h.active else '  (archived)'}"
             for i, h in enumerate(habits, start=1)]
    return ["\n".join(lines)]


def _cmd_stats(args: list[str]) -> list[str]:
    return [render_stats(tracker.user_stats())]


def _cmd_week(args: list[str]) -> list[str]:
    return [render_week(tracker.weekly())]


def _cmd_heatmap(args: list[str]) -> list[str]:
    theme = tracker.get_settings().theme
    return [render_heatmap(tracker.momentum(), theme)]


def _cmd_theme(args: list[str]) -> list[str]:
    settings = tracker.toggle_theme()
    return [f"🎨 Theme: {settings.theme}"]


def _cmd_reset(args: list[str]) -> list[str]:
    if args != ["confirm"]:
        return ["⚠️ This permanently wipes ALL habits and history. Send /reset confirm to proceed."]
    tracker.reset_all()
    return ["🧹 All data wiped. Fresh start."]


COMMANDS: dict[str, Callable[[list[str]], list[str]]] = {
    "start": _cmd_help,
    "help": _cmd_help,
    "today": _cmd_today,
    "done": _cmd_done,
    "add": _cmd_add,
    "archive": _cmd_archive,
    "delete": _cmd_delete,
    "habits": _cmd_habits,
    "stats": _cmd_stats,
    "week": _cmd_week,
    "heatmap": _cmd_heatmap,
    "theme": _cmd_theme,
    "reset": _cmd_reset,
}


def dispatch(text: str) -> list[str]:
    """Run one message and return the replies to send, in order."""
    parts = text.strip().split()
    if not parts:
        return [HELP_TEXT]

    if parts[0].startswith("/"):
        # "/done@SomeBot" → "done"
        name = parts[0][1:].split("@", 1)[0].lower()
        args = parts[1:]
    else:
        name, args = "done", parts

    handler = COMMANDS.get(name)
    if handler is None:
        return [f"Unknown command /{name}. Try /help."]

    try:
        return handler(args)
    except ValidationError as e:
        return [f"⚠️ {e}"]
    except StorageUnavailable as e:
        log.error("Command /%s failed, storage unavailable: %s", name, e, exc_info=True)
        return [STORAGE_HINT]

"""Tests for chat command dispatch, text rendering and the message pipeline."""

import asyncio
import sqlite3
from datetime import date

import pytest

import discipline.commands as commands
import discipline.tracker as tracker
from discipline.commands import dispatch, CELEBRATION, HELP_TEXT, STORAGE_HINT
from discipline.db import init_db, list_logs
from discipline.models import DayCount, DaySummary, Habit, HabitStatus, HeatCell, Streaks, UserStats
from discipline.progression import compute_progression
from discipline.views import progress_bar, render_checklist, render_heatmap, render_stats, render_week

DAY = date(2024, 1, 3)


@pytest.fixture(autouse=True)
def fresh_db(tmp_path, monkeypatch):
    """Fresh database and a fixed 'today' for each test."""
    db_path = tmp_path / "test.db"
    import discipline.db as db_module
    monkeypatch.setattr(db_module, "DB_PATH", db_path)
    monkeypatch.setattr(commands, "today", lambda: DAY)
    init_db()
    yield db_path


# ═══════════════════════════════════════════════════════════════════════════
# Dispatch
# ═══════════════════════════════════════════════════════════════════════════

class TestDispatch:
    def test_help_and_empty(self):
        assert dispatch("/help") == [HELP_TEXT]
        assert dispatch("/start") == [HELP_TEXT]
        assert dispatch("   ") == [HELP_TEXT]

    def test_unknown_command(self):
        assert "Unknown command /fly" in dispatch("/fly")[0]

    def test_bot_suffix_stripped(self):
        assert dispatch("/help@DisciplineBot") == [HELP_TEXT]

    def test_add_and_today(self):
        assert "Added habit #1: Read 10 Pages" in dispatch("/add Read 10 Pages")[0]
        text = dispatch("/today")[0]
        assert "0/1 done" in text
        assert "1. ⬜ Read 10 Pages" in text

    def test_add_empty_is_validation_message(self):
        assert dispatch("/add")[0].startswith("⚠️")

    def test_done_by_number_and_celebration(self):
        dispatch("/add Read")
        dispatch("/add Workout")
        first = dispatch("/done 1")
        assert len(first) == 1
        assert first[0].startswith("✅ Done: Read")
        second = dispatch("/done workout")
        assert second[-1] == CELEBRATION
        assert len(list_logs(date=DAY.isoformat(), completed=True)) == 2

    def test_done_twice_unchecks(self):
        dispatch("/add Read")
        dispatch("/done Read")
        replies = dispatch("/done Read")
        assert replies[0].startswith("↩️ Unchecked: Read")
        assert CELEBRATION not in replies

    def test_plain_text_toggles(self):
        dispatch("/add Read")
        assert dispatch("read")[0].startswith("✅ Done: Read")

    def test_done_unknown_habit(self):
        assert "No active habit matches 'Swim'" in dispatch("/done Swim")[0]
        assert dispatch("/done")[0].startswith("⚠️ Usage")

    def test_archive_and_restore(self):
        dispatch("/add Read")
        assert dispatch("/archive Read") == ["📦 Archived: Read"]
        assert "No active habits" in dispatch("/today")[0]
        assert "(archived)" in dispatch("/habits")[0]
        assert dispatch("/archive 1") == ["📤 Restored: Read"]

    def test_delete(self):
        dispatch("/add Read")
        dispatch("/done Read")
        assert "Deleted Read" in dispatch("/delete Read")[0]
        assert list_logs() == []
        assert dispatch("/habits") == ["No habits yet."]

    def test_stats_week_heatmap(self):
        dispatch("/add Read")
        dispatch("/done Read")
        assert "Lifetime missions: 1" in dispatch("/stats")[0]
        assert dispatch("/week")[0].startswith("📊 Last 7 days")
        assert dispatch("/heatmap")[0].startswith("🗓 Momentum")

    def test_theme(self):
        assert dispatch("/theme") == ["🎨 Theme: light"]
        assert dispatch("/theme") == ["🎨 Theme: dark"]

    def test_reset_needs_confirmation(self, monkeypatch):
        monkeypatch.setattr(tracker, "SEED_DEFAULT_HABITS", False)
        dispatch("/add Read")
        assert "Send /reset confirm" in dispatch("/reset")[0]
        assert len(tracker.list_habits()) == 1
        dispatch("/reset confirm")
        assert tracker.list_habits() == []

    def test_storage_failure_gets_reset_hint(self, tmp_path, monkeypatch):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        import discipline.db as db_module
        monkeypatch.setattr(db_module, "DB_PATH", blocker / "db.sqlite")
        assert dispatch("/today") == [STORAGE_HINT]

    def test_locked_database_gets_reset_hint(self, fresh_db, monkeypatch):
        import discipline.db as db_module
        monkeypatch.setattr(db_module, "DB_TIMEOUT_SECONDS", 0.1)
        dispatch("/add Read")
        blocker = sqlite3.connect(str(fresh_db), isolation_level=None)
        try:
            blocker.execute("BEGIN EXCLUSIVE")
            assert dispatch("/done Read") == [STORAGE_HINT]
        finally:
            blocker.rollback()
            blocker.close()
        assert dispatch("/done Read")[0].startswith("✅ Done: Read")

    def test_deleted_database_file_gets_reset_hint(self, fresh_db):
        dispatch("/add Read")
        for suffix in ("", "-wal", "-shm"):
            fresh_db.with_name(fresh_db.name + suffix).unlink(missing_ok=True)
        assert dispatch("/today") == [STORAGE_HINT]
        assert dispatch("/done Read") == [STORAGE_HINT]

    def test_add_casefolded_duplicate(self):
        dispatch("/add Ärger")
        assert dispatch("/add ärger") == ["⚠️ Habit 'ärger' already exists"]
        assert dispatch("/habits") == ["1. Ärger"]

    def test_done_numeric_name(self):
        dispatch("/add Read")
        dispatch("/add 10000")
        assert dispatch("/done 10000")[0].startswith("✅ Done: 10000")
        assert dispatch("/done 1")[0].startswith("✅ Done: Read")


# ═══════════════════════════════════════════════════════════════════════════
# Rendering
# ═══════════════════════════════════════════════════════════════════════════

class TestViews:
    def test_progress_bar(self):
        assert progress_bar(0) == "░" * 10
        assert progress_bar(100) == "█" * 10
        assert progress_bar(50) == "█" * 5 + "░" * 5
        assert progress_bar(250) == "█" * 10

    def test_checklist_streak_marker(self):
        habit = Habit(id=1, name="Read", created_at="")
        summary = DaySummary(date="2024-01-03", items=[HabitStatus(habit, True, 4)], done=1, total=1)
        text = render_checklist(summary)
        assert "1/1 done" in text
        assert "✅ Read  🔥 4 day streak" in text

    def test_stats(self):
        stats = UserStats(total_completions=3, streaks=Streaks(3, 3),
                          progression=compute_progression(3, 3))
        text = render_stats(stats)
        assert "Level 2" in text
        assert "180 XP" in text
        assert "to Level 3" in text

    def test_week_without_activity(self):
        series = [DayCount(date=f"2024-01-0{i}", label="Mon", count=0) for i in range(1, 8)]
        assert render_week(series).count("·") == 7

    def test_heatmap_grid(self):
        cells = [HeatCell(date="", intensity=0.0)] * 27 + [HeatCell(date="", intensity=1.0)]
        lines = render_heatmap(cells, "dark").splitlines()
        assert len(lines) == 5
        assert lines[-1].endswith("█")
        assert render_heatmap(cells, "light").splitlines()[-1].endswith("●")


# ═══════════════════════════════════════════════════════════════════════════
# Message pipeline
# ═══════════════════════════════════════════════════════════════════════════

class TestMessagePipeline:
    def test_handle_message(self):
        from discipline.main import handle_message
        from discipline.transport import IncomingMessage

        msg = IncomingMessage(user_id=1, channel_id=1, text="/add Read", transport="telegram")
        replies = asyncio.run(handle_message(msg))
        assert replies == ["➕ Added habit #1: Read"]

    def test_owner_claim(self, monkeypatch):
        import discipline.config as config
        from discipline.transport.telegram import claim_or_check_owner

        monkeypatch.setattr(config, "OWNER_USER_ID", 0)
        monkeypatch.setattr(config, "_persist_owner", lambda user_id: None)
        assert claim_or_check_owner(42) is True
        assert config.OWNER_USER_ID == 42
        assert claim_or_check_owner(42) is True
        assert claim_or_check_owner(7) is False

    def test_send_failure_is_logged_not_raised(self, caplog):
        from types import SimpleNamespace
        from discipline.transport.telegram import TelegramTransport

        class FailingBot:
            async def send_message(self, chat_id, text):
                raise ConnectionError("network down")

        transport = TelegramTransport()
        transport._app = SimpleNamespace(bot=FailingBot())
        asyncio.run(transport.send_message(42, "✅ Done: Read"))
        assert "Failed to send Telegram message" in caplog.text

"""
Tests for the Typer CLI, run against a temporary data directory.
"""

import re

import pytest
from typer.testing import CliRunner

from checkmate import __version__
from checkmate.config import get_settings
from checkmate.interfaces.cli import app

TASK_ID = re.compile(r"task_[0-9a-f]{12}")
ROUTINE_ID = re.compile(r"routine_[0-9a-f]{12}")


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv("CHECKMATE_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("CHECKMATE_DATA_DIR", str(tmp_path / "data"))
    return tmp_path


@pytest.fixture
def runner():
    return CliRunner()


def invoke(runner, *args):
    return runner.invoke(app, list(args))


def add_task(runner, *args) -> str:
    result = invoke(runner, "task", "add", *args)
    assert result.exit_code == 0, result.output
    return TASK_ID.search(result.output).group(0)


class TestBasics:
    def test_version(self, runner):
        result = invoke(runner, "--version")
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_files_land_in_data_dir(self, runner, isolated_home):
        add_task(runner, "Write report")
        assert (isolated_home / "data" / "tasks.json").exists()
        assert (isolated_home / "data" / "tags.json").exists()


class TestTaskCommands:
    def test_add_to_backlog_and_list(self, runner):
        task_id = add_task(runner, "Write report", "-p", "untagged=3")

        backlog = invoke(runner, "task", "list", "--backlog")
        assert task_id in backlog.output
        assert "Write report" in backlog.output

        current = invoke(runner, "task", "list")
        assert task_id not in current.output

    def test_invalid_points(self, runner):
        result = invoke(runner, "task", "add", "Bad", "-p", "untagged=4")
        assert result.exit_code == 1
        assert "Fibonacci" in result.output

    def test_malformed_points(self, runner):
        result = invoke(runner, "task", "add", "Bad", "-p", "untagged")
        assert result.exit_code != 0

    def test_tag_by_name(self, runner):
        assert invoke(runner, "tag", "add", "Work", "-c", "7").exit_code == 0
        task_id = add_task(runner, "Job", "-p", "work=5")

        shown = invoke(runner, "task", "show", task_id)
        assert "Work:5" in shown.output

    def test_focus_flow(self, runner):
        first = add_task(runner, "First", "-s", "current")
        second = add_task(runner, "Second", "-s", "current")

        focus = invoke(runner, "focus")
        assert focus.exit_code == 0
        assert focus.output.index(first) < focus.output.index(second)

        assert invoke(runner, "task", "done", first).exit_code == 0
        after = invoke(runner, "focus")
        assert first not in after.output
        assert second in after.output

    def test_skip_for_day_hides_task(self, runner):
        task_id = add_task(runner, "Tired", "-s", "current")

        missing_reason = invoke(runner, "task", "skip", task_id, "--day")
        assert missing_reason.exit_code == 1

        skipped = invoke(runner, "task", "skip", task_id, "--day", "-r", "too tired")
        assert skipped.exit_code == 0

        focus = invoke(runner, "focus")
        assert task_id not in focus.output
        assert "1 hidden until tomorrow" in focus.output

    def test_move_and_cancel(self, runner):
        task_id = add_task(runner, "Maybe")

        moved = invoke(runner, "task", "move", task_id)
        assert moved.exit_code == 0
        assert "backlog -> sprint:" in moved.output

        canceled = invoke(runner, "task", "cancel", task_id, "-r", "not needed")
        assert canceled.exit_code == 0
        again = invoke(runner, "task", "cancel", task_id)
        assert again.exit_code == 1

    def test_sessions(self, runner):
        task_id = add_task(runner, "Deep work")

        assert invoke(runner, "task", "start", task_id).exit_code == 0
        assert invoke(runner, "task", "start", task_id).exit_code == 1
        stopped = invoke(runner, "task", "stop", task_id, "--focus", "focused")
        assert stopped.exit_code == 0
        assert "focused" in stopped.output

        logged = invoke(
            runner,
            "task",
            "log",
            task_id,
            "--start",
            "2026-03-03T09:00:00+00:00",
            "--end",
            "2026-03-03T10:30:00+00:00",
        )
        assert logged.exit_code == 0
        assert "90 min" in logged.output

    def test_comments(self, runner):
        task_id = add_task(runner, "Notes")
        added = invoke(runner, "task", "comment", task_id, "remember the milk")
        assert added.exit_code == 0
        assert "remember the milk" in invoke(runner, "task", "show", task_id).output

    def test_unknown_task(self, runner):
        result = invoke(runner, "task", "done", "task_000000000000")
        assert result.exit_code == 1
        assert "Task not found" in result.output


class TestSprintCommands:
    def test_list(self, runner):
        result = invoke(runner, "sprint", "list")
        assert result.exit_code == 0
        assert "Current Sprint" in result.output
        assert "Next Sprint" in result.output

    def test_health(self, runner):
        add_task(runner, "Work", "-s", "current")
        result = invoke(runner, "health")
        assert result.exit_code == 0
        assert "Overall" in result.output
        assert "Untagged" in result.output

    def test_capacity_override(self, runner):
        result = invoke(runner, "sprint", "capacity", "untagged", "3")
        assert result.exit_code == 0
        assert "capacity: untagged=3" in invoke(runner, "sprint", "list").output


class TestTagCommands:
    def test_untagged_is_protected(self, runner):
        assert invoke(runner, "tag", "rm", "untagged").exit_code == 1

    def test_default_capacity_from_settings(self, runner):
        assert invoke(runner, "tag", "add", "Home").exit_code == 0
        listed = invoke(runner, "tag", "list").output
        assert f"{get_settings().default_tag_capacity:>3} pts/week" in listed


class TestRoutineCommands:
    def test_active_and_override(self, runner):
        added = invoke(runner, "routine", "add", "Always", "-p", "7", "--when", "true")
        assert added.exit_code == 0
        invoke(runner, "routine", "add", "Never", "-p", "1", "--when", "false")
        never_id = ROUTINE_ID.findall(invoke(runner, "routine", "list").output)[1]

        assert "Always" in invoke(runner, "routine", "active").output

        assert invoke(runner, "routine", "use", never_id).exit_code == 0
        forced = invoke(runner, "routine", "active").output
        assert "Never" in forced
        assert "manual override" in forced

        assert invoke(runner, "routine", "use", "--clear").exit_code == 0
        assert "Always" in invoke(runner, "routine", "active").output

    def test_invalid_expression(self, runner):
        result = invoke(runner, "routine", "add", "Broken", "--when", "hour >=")
        assert result.exit_code == 1

    def test_focus_honors_routine_filter(self, runner):
        invoke(runner, "tag", "add", "Work")
        job = add_task(runner, "Job", "-p", "work=3", "-s", "current")
        chore = add_task(runner, "Chore", "-s", "current")
        invoke(runner, "routine", "add", "Work", "--when", "true", "--filter", 'has_tag("Work")')

        filtered = invoke(runner, "focus").output
        assert job in filtered
        assert chore not in filtered

        everything = invoke(runner, "focus", "--all").output
        assert chore in everything


class TestShortcuts:
    def test_spawn_is_idempotent(self, runner):
        add_task(runner, "Standup", "-r", "FREQ=DAILY")

        first = invoke(runner, "spawn")
        assert first.exit_code == 0
        assert "Spawned 7 task(s)" in first.output

        second = invoke(runner, "spawn")
        assert "Nothing to spawn" in second.output

    def test_invalid_recurrence(self, runner):
        result = invoke(runner, "task", "add", "Bad", "-r", "FREQ=SOMETIMES")
        assert result.exit_code == 1

    def test_stats(self, runner):
        task_id = add_task(runner, "Done soon")
        invoke(runner, "task", "done", task_id)
        result = invoke(runner, "stats")
        assert result.exit_code == 0
        assert "Completed: 1 tasks, 1 pts" in result.output
        assert "Streak:    1 day(s)" in result.output
        assert "Trend:     up (1 pts vs 0 last week)" in result.output

    def test_stats_by_tag(self, runner):
        invoke(runner, "tag", "add", "Work")
        task_id = add_task(runner, "Ship", "-p", "work=3", "-s", "current")
        add_task(runner, "Later", "-p", "work=5", "-s", "current")
        invoke(runner, "task", "done", task_id)

        result = invoke(runner, "stats", "--tags")

        assert result.exit_code == 0
        assert "By tag" in result.output
        assert "  3/8   pts   38%" in result.output

    def test_stats_shows_canceled(self, runner):
        task_id = add_task(runner, "Nope", "-p", "untagged=2")
        invoke(runner, "task", "cancel", task_id)
        assert "Canceled:  1 tasks, 2 pts this week" in invoke(runner, "stats").output

"""
Tests for the application services against in-memory repositories.
"""

from datetime import UTC, datetime, timedelta

import pytest

from checkmate.application import (
    focus_service,
    recurrence_service,
    routine_service,
    sprint_service,
    stats_service,
    task_service,
)
from checkmate.domain.routine import Routine
from checkmate.domain.shared import Err, Ok
from checkmate.domain.sprint import UNTAGGED_ID, HealthStatus
from checkmate.domain.task import FocusLevel, SessionStatus, SkipType, TaskStatus
from checkmate.infrastructure import RRuleRecurrenceCalculator

from conftest import NOW, SPRINT_START, FakeRecurrence, StaticEvaluator


def ok(result):
    assert isinstance(result, Ok), getattr(result, "error", result)
    return result.value


def new_task(repos, title="Write report", points=None, **kwargs):
    task, _ = ok(task_service.create_task(repos, title, points or {UNTAGGED_ID: 3}, now=NOW, **kwargs))
    return task


@pytest.fixture
def work(repos):
    return ok(sprint_service.create_tag(repos, "Work", 7))


class TestTaskService:
    def test_create_in_backlog(self, repos):
        task, event = ok(task_service.create_task(repos, "Write", {UNTAGGED_ID: 3}, now=NOW))

        assert task.location.is_backlog
        assert event.task_id == task.id
        assert event.total_points == 3
        assert ok(task_service.get_task(repos, task.id)) == task

    def test_create_creates_untagged(self, repos):
        new_task(repos)
        assert repos.tags.exists(UNTAGGED_ID)

    def test_create_unknown_tag(self, repos):
        result = task_service.create_task(repos, "Write", {"tag_nope": 3}, now=NOW)
        assert result == Err("Tag not found: tag_nope")

    def test_create_invalid_points(self, repos):
        result = task_service.create_task(repos, "Write", {UNTAGGED_ID: 4}, now=NOW)
        assert isinstance(result, Err)
        assert "Fibonacci" in result.error

    def test_create_in_sprint(self, repos, sprint):
        task = new_task(repos, sprint_id=sprint.id)
        assert task.location.sprint_id == sprint.id

    def test_create_in_missing_sprint(self, repos):
        result = task_service.create_task(repos, "Write", {UNTAGGED_ID: 3}, sprint_id="sprint_x")
        assert result == Err("Sprint not found: sprint_x")

    def test_create_template_validates_rule(self, repos):
        calculator = FakeRecurrence(invalid=("bad",))
        result = task_service.create_task(
            repos, "Standup", {UNTAGGED_ID: 1}, recurrence="bad", calculator=calculator
        )
        assert result == Err("Invalid recurrence rule: bad rule")

    def test_orders_append(self, repos):
        first, second = new_task(repos, "a"), new_task(repos, "b")
        assert (first.order, second.order) == (0, 1)

    def test_list_filters(self, repos, sprint):
        backlog = new_task(repos, "backlog")
        in_sprint = new_task(repos, "sprint", sprint_id=sprint.id)
        new_task(repos, "template", recurrence="FREQ=DAILY")
        done = new_task(repos, "done", sprint_id=sprint.id)
        ok(task_service.complete_task(repos, done.id, NOW))

        assert [t.id for t in ok(task_service.list_tasks(repos, sprint_id=sprint.id))] == [in_sprint.id]
        assert [t.id for t in ok(task_service.list_tasks(repos, backlog=True))] == [backlog.id]
        everything = ok(
            task_service.list_tasks(repos, include_inactive=True, include_templates=True)
        )
        assert len(everything) == 4

    def test_update(self, repos, work):
        task = new_task(repos)
        updated = ok(
            task_service.update_task(
                repos, task.id, title="Rewrite", description="more", tag_points={work.id: 5}
            )
        )
        assert (updated.title, updated.description, updated.total_points) == ("Rewrite", "more", 5)

    def test_update_unknown_tag(self, repos):
        task = new_task(repos)
        assert isinstance(task_service.update_task(repos, task.id, tag_points={"x": 1}), Err)

    def test_reorder(self, repos):
        a, b, c = new_task(repos, "a"), new_task(repos, "b"), new_task(repos, "c")
        ok(task_service.reorder_tasks(repos, [c.id, a.id, b.id]))
        titles = [t.title for t in ok(task_service.list_tasks(repos, backlog=True))]
        assert titles == ["c", "a", "b"]

    def test_reorder_returns_tasks_in_new_order(self, repos):
        a, b = new_task(repos, "a"), new_task(repos, "b")
        reordered = ok(task_service.reorder_tasks(repos, [b.id, a.id]))
        assert [(t.id, t.order) for t in reordered] == [(b.id, 0), (a.id, 1)]

    def test_reorder_stops_at_unknown_task(self, repos):
        a, b = new_task(repos, "a"), new_task(repos, "b")
        result = task_service.reorder_tasks(repos, [b.id, "task_000000000000", a.id])

        assert result == Err("Task not found: task_000000000000")
        assert ok(task_service.get_task(repos, b.id)).order == 0
        assert ok(task_service.get_task(repos, a.id)).order == a.order

    def test_complete_twice_is_err(self, repos):
        task = new_task(repos)
        _, event = ok(task_service.complete_task(repos, task.id, NOW))

        assert event.total_points == 3
        result = task_service.complete_task(repos, task.id, NOW)
        assert isinstance(result, Err)
        assert "completed" in result.error
        assert ok(task_service.get_task(repos, task.id)).completed_at == NOW

    def test_cancel_with_reason(self, repos):
        task = new_task(repos)
        canceled, event = ok(task_service.cancel_task(repos, task.id, " obsolete ", NOW))

        assert canceled.status == TaskStatus.CANCELED
        assert event.justification == "obsolete"
        assert canceled.comments[0].is_cancel_justification

    def test_missing_task(self, repos):
        assert task_service.complete_task(repos, "task_nope") == Err("Task not found: task_nope")

    def test_move(self, repos, sprint):
        task = new_task(repos)

        _, moved = ok(task_service.move_task_to_sprint(repos, task.id, sprint.id))
        assert (moved.from_location, moved.to_location) == ("backlog", f"sprint:{sprint.id}")

        back, event = ok(task_service.move_task_to_backlog(repos, task.id))
        assert event.to_location == "backlog"
        assert back.sprint_history == [sprint.id]

    def test_move_to_missing_sprint(self, repos):
        task = new_task(repos)
        assert task_service.move_task_to_sprint(repos, task.id, "sprint_x") == Err(
            "Sprint not found: sprint_x"
        )

    def test_skip_for_day_requires_reason(self, repos):
        task = new_task(repos)
        result = task_service.skip_task(repos, task.id, SkipType.FOR_DAY, None, NOW)
        assert isinstance(result, Err)
        assert ok(task_service.get_task(repos, task.id)).skip_state is None

    def test_skip_and_clear(self, repos):
        task = new_task(repos)
        skipped, event = ok(task_service.skip_task(repos, task.id, "for_day", "tired", NOW))

        assert event.skip_type == SkipType.FOR_DAY
        assert skipped.skip_state.is_hidden
        assert ok(task_service.clear_skip(repos, task.id)).skip_state is None

    def test_comments(self, repos):
        task = new_task(repos)
        commented = ok(task_service.add_comment(repos, task.id, "hello", NOW))
        comment_id = commented.comments[0].id

        edited = ok(task_service.update_comment(repos, task.id, comment_id, "bye", NOW))
        assert edited.comments[0].content == "bye"
        assert ok(task_service.delete_comment(repos, task.id, comment_id)).comments == []

    def test_cannot_delete_skip_justification(self, repos):
        task = new_task(repos)
        skipped, _ = ok(task_service.skip_task(repos, task.id, SkipType.FOR_DAY, "tired", NOW))
        result = task_service.delete_comment(
            repos, task.id, skipped.skip_state.justification_comment_id
        )
        assert isinstance(result, Err)

    def test_session_flow(self, repos):
        task = new_task(repos)
        _, started = ok(task_service.start_session(repos, task.id, NOW))

        assert isinstance(task_service.start_session(repos, task.id, NOW), Err)

        _, ended = ok(
            task_service.end_session(
                repos, task.id, FocusLevel.FOCUSED, note="solid", now=NOW + timedelta(minutes=50)
            )
        )
        assert ended.session_id == started.session_id
        assert ended.status == SessionStatus.COMPLETED
        assert ended.duration_seconds == 50 * 60

    def test_second_session_event_names_the_new_session(self, repos):
        task = new_task(repos)
        _, first = ok(task_service.start_session(repos, task.id, NOW))
        ok(task_service.end_session(repos, task.id, FocusLevel.NEUTRAL, now=NOW + timedelta(minutes=5)))

        saved, second = ok(task_service.start_session(repos, task.id, NOW + timedelta(minutes=10)))

        assert second.session_id != first.session_id
        assert second.session_id == saved.active_session.id

    def test_end_without_session(self, repos):
        task = new_task(repos)
        assert task_service.end_session(repos, task.id, FocusLevel.NEUTRAL) == Err(
            "No session in progress for this task"
        )

    def test_abandon(self, repos):
        task = new_task(repos)
        ok(task_service.start_session(repos, task.id, NOW))
        _, ended = ok(task_service.abandon_session(repos, task.id, now=NOW + timedelta(minutes=1)))
        assert ended.status == SessionStatus.ABANDONED

    def test_manual_session(self, repos):
        task = new_task(repos)
        _, event = ok(
            task_service.add_manual_session(
                repos, task.id, NOW - timedelta(hours=1), NOW, FocusLevel.DISTRACTED
            )
        )
        assert event.focus_level == FocusLevel.DISTRACTED

        too_long = task_service.add_manual_session(
            repos, task.id, NOW - timedelta(hours=13), NOW, FocusLevel.NEUTRAL
        )
        assert isinstance(too_long, Err)

    def test_delete(self, repos):
        task = new_task(repos)
        assert task_service.delete_task(repos, task.id) == Ok(None)
        assert task_service.delete_task(repos, task.id) == Ok(None)
        assert isinstance(task_service.get_task(repos, task.id), Err)


class TestSprintService:
    def test_ensure_sprints(self, repos):
        sprints = ok(sprint_service.ensure_sprints(repos, NOW))

        assert [s.start_date for s in sprints] == [
            SPRINT_START,
            SPRINT_START + timedelta(days=7),
            SPRINT_START + timedelta(days=14),
        ]
        assert ok(sprint_service.ensure_sprints(repos, NOW)) == sprints

    def test_current_sprint_reuses_existing(self, repos, sprint):
        assert ok(sprint_service.get_current_sprint(repos, NOW)) == sprint

    def test_upcoming_excludes_past(self, repos):
        ok(sprint_service.ensure_sprints(repos, NOW))
        later = NOW + timedelta(days=7)
        upcoming = ok(sprint_service.upcoming_sprints(repos, later))
        assert upcoming[0].start_date == SPRINT_START + timedelta(days=7)
        assert len(upcoming) == 3

    def test_capacity_override(self, repos, sprint, work):
        updated = ok(sprint_service.set_capacity_override(repos, sprint.id, work.id, 3))
        assert updated.capacity_for(work.id, 7) == 3

        cleared = ok(sprint_service.clear_capacity_override(repos, sprint.id, work.id))
        assert cleared.capacity_overrides == {}

    def test_capacity_override_checks(self, repos, sprint, work):
        assert isinstance(sprint_service.set_capacity_override(repos, sprint.id, "tag_x", 3), Err)
        assert isinstance(sprint_service.set_capacity_override(repos, sprint.id, work.id, 0), Err)
        assert isinstance(sprint_service.set_capacity_override(repos, "sprint_x", work.id, 3), Err)

    def test_health_end_to_end(self, repos, sprint, work):
        """
        Scenario: 8 Work points in a sprint, capacity 7, 2 days remaining
        Expected: off track overall
        """
        new_task(repos, points={work.id: 8}, sprint_id=sprint.id)

        report = ok(
            sprint_service.get_sprint_health(repos, sprint.id, datetime(2026, 3, 6, 9, tzinfo=UTC))
        )

        assert report.days_remaining == 2
        assert report.overall == HealthStatus.OFF_TRACK
        assert {t.tag_id for t in report.by_tag} == {UNTAGGED_ID, work.id}

    def test_health_missing_sprint(self, repos):
        assert isinstance(sprint_service.get_sprint_health(repos, "sprint_x", NOW), Err)


class TestTagService:
    def test_list_puts_untagged_first(self, repos):
        ok(sprint_service.create_tag(repos, "zeta", 5))
        ok(sprint_service.create_tag(repos, "Alpha", 5))
        names = [t.name for t in ok(sprint_service.list_tags(repos))]
        assert names == ["Untagged", "Alpha", "zeta"]

    def test_duplicate_name(self, repos, work):
        assert sprint_service.create_tag(repos, "work", 3) == Err("Tag already exists: Work")

    def test_invalid_capacity(self, repos):
        assert isinstance(sprint_service.create_tag(repos, "Home", 0), Err)

    def test_update(self, repos, work):
        updated = ok(sprint_service.update_tag(repos, work.id, name="Job", default_capacity=9))
        assert (updated.name, updated.default_capacity) == ("Job", 9)

    def test_untagged_protected(self, repos):
        ok(sprint_service.list_tags(repos))
        assert isinstance(sprint_service.update_tag(repos, UNTAGGED_ID, name="Other"), Err)
        assert sprint_service.delete_tag(repos, UNTAGGED_ID) == Err("Cannot delete the Untagged tag")

    def test_delete_tag_in_use(self, repos, work):
        task = new_task(repos, points={work.id: 2})
        assert isinstance(sprint_service.delete_tag(repos, work.id), Err)

        ok(task_service.complete_task(repos, task.id, NOW))
        assert sprint_service.delete_tag(repos, work.id) == Ok(None)


class TestRoutineService:
    def test_create_validates_expressions(self, repos, evaluator):
        result = routine_service.create_routine(repos, evaluator, "Bad", 5, "hour >=")
        assert isinstance(result, Err)
        assert "activation" in result.error

    def test_create_and_list_by_priority(self, repos, evaluator):
        low = ok(routine_service.create_routine(repos, evaluator, "Low", 2, "true"))
        high = ok(routine_service.create_routine(repos, evaluator, "High", 9, "true"))
        assert ok(routine_service.list_routines(repos)) == [high, low]

    def test_invalid_priority(self, repos, evaluator):
        assert isinstance(routine_service.create_routine(repos, evaluator, "X", 11), Err)

    def test_update(self, repos, evaluator):
        created = ok(routine_service.create_routine(repos, evaluator, "Work", 5, "is_weekday"))
        updated = ok(
            routine_service.update_routine(
                repos, evaluator, created.id, priority=8, task_filter_expression="points < 5"
            )
        )
        assert (updated.priority, updated.task_filter_expression) == (8, "points < 5")
        assert isinstance(
            routine_service.update_routine(repos, evaluator, created.id, task_filter_expression="(("),
            Err,
        )

    def test_active_routine(self, repos, evaluator):
        weekday = ok(routine_service.create_routine(repos, evaluator, "Weekday", 5, "is_weekday"))
        ok(routine_service.create_routine(repos, evaluator, "Weekend", 5, "is_weekend"))

        assert ok(routine_service.get_active_routine(repos, evaluator, NOW)) == weekday

    def test_override_wins(self, repos, evaluator):
        ok(routine_service.create_routine(repos, evaluator, "Weekday", 5, "is_weekday"))
        forced = ok(routine_service.create_routine(repos, evaluator, "Never", 1, "false"))

        active = routine_service.get_active_routine(repos, evaluator, NOW, override_id=forced.id)
        assert ok(active) == forced

    def test_missing_override_is_ignored(self, repos, evaluator):
        weekday = ok(routine_service.create_routine(repos, evaluator, "Weekday", 5, "is_weekday"))
        active = routine_service.get_active_routine(repos, evaluator, NOW, override_id="routine_gone")
        assert ok(active) == weekday

    def test_delete(self, repos, evaluator):
        created = ok(routine_service.create_routine(repos, evaluator, "Work", 5))
        ok(routine_service.delete_routine(repos, created.id))
        assert ok(routine_service.list_routines(repos)) == []


class TestFocusService:
    def test_focus_order(self, repos, sprint):
        first = new_task(repos, "first", sprint_id=sprint.id)
        second = new_task(repos, "second", sprint_id=sprint.id)
        new_task(repos, "backlog")

        view = ok(focus_service.get_focus(repos, sprint.id, now=NOW))

        assert view.focus.id == first.id
        assert [t.id for t in view.up_next] == [second.id]

    def test_skip_return_end_to_end(self, repos, sprint):
        """
        Scenario: the focus task is skipped for the day with "too tired"
        Expected: hidden until midnight, then back at the top and saved
        """
        skipped = new_task(repos, "skipped", sprint_id=sprint.id)
        other = new_task(repos, "other", sprint_id=sprint.id)
        ok(task_service.skip_task(repos, skipped.id, SkipType.FOR_DAY, "too tired", NOW))

        hidden = ok(focus_service.get_focus(repos, sprint.id, now=NOW + timedelta(hours=1)))
        assert hidden.focus.id == other.id
        assert hidden.queue.hidden_count == 1
        assert hidden.returned_task_ids == []

        back = ok(focus_service.get_focus(repos, sprint.id, now=NOW + timedelta(hours=25)))
        assert back.focus.id == skipped.id
        assert back.returned_task_ids == [skipped.id]
        assert ok(task_service.get_task(repos, skipped.id)).skip_state.has_returned

        again = ok(focus_service.get_focus(repos, sprint.id, now=NOW + timedelta(hours=26)))
        assert again.returned_task_ids == []
        assert again.focus.id == skipped.id

    def test_routine_filter(self, repos, sprint, work, evaluator):
        new_task(repos, "admin", sprint_id=sprint.id)
        job = new_task(repos, "job", points={work.id: 3}, sprint_id=sprint.id)
        routine = ok(
            routine_service.create_routine(repos, evaluator, "Work", 5, "true", 'has_tag("Work")')
        )

        view = ok(focus_service.get_focus(repos, sprint.id, routine=routine, evaluator=evaluator, now=NOW))

        assert view.focus.id == job.id
        assert view.up_next == []
        assert view.routine == routine

    def test_broken_filter_hides_everything(self, repos, sprint):
        new_task(repos, "admin", sprint_id=sprint.id)
        routine = Routine.create("Broken", 5, "on", "raise")
        view = ok(
            focus_service.get_focus(
                repos, sprint.id, routine=routine, evaluator=StaticEvaluator(), now=NOW
            )
        )
        assert view.focus is None

    def test_missing_sprint(self, repos):
        assert isinstance(focus_service.get_focus(repos, "sprint_x", now=NOW), Err)


class TestRecurrenceService:
    def test_spawn_end_to_end(self, repos):
        """
        Scenario: a template whose rule has 3 occurrences, 1 instance exists
        Expected: 2 new active backlog instances, none on a second run
        """
        template = new_task(repos, "Standup", recurrence="FREQ=DAILY")
        ok(recurrence_service.spawn_instance(repos, template.id, NOW))
        calculator = FakeRecurrence(3)
        end = NOW + timedelta(days=7)

        spawned, event = ok(recurrence_service.spawn_instances(repos, calculator, NOW, end, NOW))

        assert len(spawned) == 2
        assert event.template_ids == [template.id]
        assert event.instance_ids == [t.id for t in spawned]
        for instance in spawned:
            assert instance.parent_id == template.id
            assert instance.recurrence is None
            assert instance.location.is_backlog
            assert instance.status == TaskStatus.ACTIVE
        assert len(ok(repos.tasks.find_by_parent(template.id))) == 3

        again, _ = ok(recurrence_service.spawn_instances(repos, calculator, NOW, end, NOW))
        assert again == []

    def test_weekly_template_spawns_every_week(self, repos):
        """
        Scenario: a weekly template is spawned for Mar 1-7, then for Mar 8-14
        Expected: one instance per week, each tied to its own occurrence
        """
        template = new_task(repos, "Review", recurrence="FREQ=WEEKLY")
        calculator = RRuleRecurrenceCalculator()
        week_one = datetime(2026, 3, 1, tzinfo=UTC)
        week_two = week_one + timedelta(days=7)
        span = timedelta(days=7) - timedelta(microseconds=1)

        first, _ = ok(recurrence_service.spawn_instances(repos, calculator, week_one, week_one + span, NOW))
        second, _ = ok(recurrence_service.spawn_instances(repos, calculator, week_two, week_two + span, NOW))
        repeat, _ = ok(recurrence_service.spawn_instances(repos, calculator, week_two, week_two + span, NOW))

        assert len(first) == 1
        assert len(second) == 1
        assert repeat == []
        assert first[0].occurrence_at == week_one
        assert second[0].occurrence_at == week_two
        assert len(ok(repos.tasks.find_by_parent(template.id))) == 2

    def test_daily_window_moves_forward(self, repos):
        """
        Scenario: a daily template covered 7 days ahead, then again a day later
        Expected: the second run adds only the newly uncovered day
        """
        new_task(repos, "Standup", recurrence="FREQ=DAILY")
        calculator = RRuleRecurrenceCalculator()
        today = datetime(2026, 3, 3, tzinfo=UTC)
        tomorrow = today + timedelta(days=1)
        span = timedelta(days=7) - timedelta(microseconds=1)

        first, _ = ok(recurrence_service.spawn_instances(repos, calculator, today, today + span, NOW))
        second, _ = ok(recurrence_service.spawn_instances(repos, calculator, tomorrow, tomorrow + span, NOW))

        assert len(first) == 7
        assert [t.occurrence_at for t in second] == [datetime(2026, 3, 10, tzinfo=UTC)]

    def test_inactive_templates_do_not_spawn(self, repos):
        template = new_task(repos, "Standup", recurrence="FREQ=DAILY")
        ok(task_service.cancel_task(repos, template.id, now=NOW))

        spawned, _ = ok(
            recurrence_service.spawn_instances(repos, FakeRecurrence(3), NOW, NOW + timedelta(days=1))
        )
        assert spawned == []

    def test_inverted_range(self, repos):
        result = recurrence_service.spawn_instances(repos, FakeRecurrence(), NOW, NOW - timedelta(days=1))
        assert isinstance(result, Err)

    def test_spawn_instance_requires_template(self, repos):
        plain = new_task(repos)
        assert isinstance(recurrence_service.spawn_instance(repos, plain.id, NOW), Err)


class TestStatsService:
    def test_summary(self, repos):
        task = new_task(repos)
        ok(task_service.add_manual_session(repos, task.id, NOW - timedelta(hours=1), NOW, FocusLevel.FOCUSED))
        ok(task_service.complete_task(repos, task.id, NOW))

        summary = ok(stats_service.get_stats(repos, NOW))

        assert summary.week.tasks_completed == 1
        assert summary.week.points_completed == 3
        assert summary.focus_quality.focused == 1
        assert summary.streak == 1
        assert summary.comparison.this_week_points == 3
        assert summary.canceled.canceled_this_week == 0

    def test_tag_performance_for_sprint(self, repos, sprint, work):
        done = new_task(repos, "Done", {work.id: 3}, sprint_id=sprint.id)
        new_task(repos, "Open", {work.id: 5}, sprint_id=sprint.id)
        new_task(repos, "Backlog", {work.id: 8})
        ok(task_service.complete_task(repos, done.id, NOW))

        performance = ok(stats_service.get_tag_performance(repos, sprint.id))
        by_name = {p.tag_name: p for p in performance}

        assert [p.tag_id for p in performance][0] == UNTAGGED_ID
        assert (by_name["Work"].points_completed, by_name["Work"].points_total) == (3, 8)
        assert by_name["Untagged"].points_total == 0

    def test_tag_performance_unknown_sprint(self, repos):
        assert isinstance(stats_service.get_tag_performance(repos, "sprint_missing"), Err)

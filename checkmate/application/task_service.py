"""Task application service.

Orchestrates task lifecycle commands: load the aggregate, apply one domain
operation, persist the new snapshot. Domain errors come back as ``Err``
with the domain's message; nothing here raises for rule violations.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from checkmate.application.locks import aggregate_locks
from checkmate.application.sprint_service import list_tags
from checkmate.domain.ports import RecurrenceCalculator
from checkmate.domain.shared import DomainError, Err, Ok, Result, collect, map_result, unwrap_or
from checkmate.domain.task import (
    FocusLevel,
    SessionEnded,
    SessionStarted,
    SkipType,
    Task,
    TaskCanceled,
    TaskCompleted,
    TaskCreated,
    TaskMoved,
    TaskSkipped,
)
from checkmate.domain.types import utc_now
from checkmate.infrastructure.storage import Repositories

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================


def change_task(
    repos: Repositories,
    task_id: str,
    change: Callable[[Task], Task],
) -> Result[tuple[Task, Task], str]:
    """Load, change and save one task while holding its lock.

    Returns:
        Ok((before, after)) on success, or Err(str) if the task is missing,
        the domain rejects the change, or saving fails.
    """
    with aggregate_locks.hold(task_id):
        found = repos.tasks.find_by_id(task_id)
        if isinstance(found, Err):
            return found
        before = found.value
        try:
            after = change(before)
        except DomainError as e:
            logger.info("Rejected change to task %s: %s", task_id, e.message)
            return Err(e.message)
        saved = repos.tasks.save(after)
        if isinstance(saved, Err):
            return saved
    return Ok((before, after))


def _check_tags_exist(repos: Repositories, tag_ids: list[str]) -> Result[None, str]:
    known = list_tags(repos)
    if isinstance(known, Err):
        return known
    ids = {tag.id for tag in known.value}
    for tag_id in tag_ids:
        if tag_id not in ids:
            return Err(f"Tag not found: {tag_id}")
    return Ok(None)


def _next_order(repos: Repositories, sprint_id: str | None) -> int:
    found = repos.tasks.find_by_sprint(sprint_id) if sprint_id else repos.tasks.find_in_backlog()
    orders = [task.order for task in unwrap_or(found, []) if task.is_active]
    return max(orders) + 1 if orders else 0


# =============================================================================
# Queries
# =============================================================================


def get_task(repos: Repositories, task_id: str) -> Result[Task, str]:
    return repos.tasks.find_by_id(task_id)


def list_tasks(
    repos: Repositories,
    *,
    sprint_id: str | None = None,
    backlog: bool = False,
    include_inactive: bool = False,
    include_templates: bool = False,
) -> Result[list[Task], str]:
    """List tasks in a sprint, the backlog, or everywhere, by display order."""
    if sprint_id is not None:
        found = repos.tasks.find_by_sprint(sprint_id)
    elif backlog:
        found = repos.tasks.find_in_backlog()
    else:
        found = repos.tasks.find_all()
    if isinstance(found, Err):
        return found

    tasks = [
        task
        for task in found.value
        if (include_inactive or task.is_active)
        and (include_templates or not task.is_recurring_template)
    ]
    return Ok(sorted(tasks, key=lambda t: (t.order, t.created_at)))


# =============================================================================
# Creation and Updates
# =============================================================================


def create_task(
    repos: Repositories,
    title: str,
    tag_points: dict[str, int],
    *,
    description: str = "",
    sprint_id: str | None = None,
    recurrence: str | None = None,
    calculator: RecurrenceCalculator | None = None,
    now: datetime | None = None,
) -> Result[tuple[Task, TaskCreated], str]:
    """Create a task, optionally placed straight into a sprint.

    With ``recurrence`` the task is a recurring template; the rule is
    checked with ``calculator`` when one is supplied.
    """
    tags_ok = _check_tags_exist(repos, list(tag_points))
    if isinstance(tags_ok, Err):
        return tags_ok

    if recurrence is not None and calculator is not None:
        validation = calculator.validate(recurrence)
        if not validation.valid:
            return Err(f"Invalid recurrence rule: {validation.error}")

    if sprint_id is not None:
        sprint = repos.sprints.find_by_id(sprint_id)
        if isinstance(sprint, Err):
            return sprint

    try:
        task = Task.create(
            title,
            tag_points,
            description=description,
            recurrence=recurrence,
            order=_next_order(repos, sprint_id),
            now=now,
        )
        if sprint_id is not None:
            task = task.move_to_sprint(sprint_id)
    except DomainError as e:
        return Err(e.message)

    saved = repos.tasks.save(task)
    if isinstance(saved, Err):
        return saved

    logger.info("Created task %s (%d points)", task.id, task.total_points)
    event = TaskCreated(
        task_id=task.id,
        title=task.title,
        total_points=task.total_points,
        is_template=task.is_recurring_template,
    )
    return Ok((task, event))


def update_task(
    repos: Repositories,
    task_id: str,
    *,
    title: str | None = None,
    description: str | None = None,
    tag_points: dict[str, int] | None = None,
) -> Result[Task, str]:
    """Apply any combination of title, description and effort changes."""
    if tag_points is not None:
        tags_ok = _check_tags_exist(repos, list(tag_points))
        if isinstance(tags_ok, Err):
            return tags_ok

    def apply(task: Task) -> Task:
        if title is not None:
            task = task.update_title(title)
        if description is not None:
            task = task.update_description(description)
        if tag_points is not None:
            task = task.update_effort(tag_points)
        return task

    changed = change_task(repos, task_id, apply)
    if isinstance(changed, Err):
        return changed
    return Ok(changed.value[1])


def reorder_tasks(repos: Repositories, task_ids: list[str]) -> Result[list[Task], str]:
    """Give the listed tasks display orders 0, 1, 2, ... in list order.

    Stops at the first task that cannot be reordered; earlier ones keep
    their new order.
    """
    changes = collect(
        change_task(repos, task_id, lambda t, p=position: t.reorder(p))
        for position, task_id in enumerate(task_ids)
    )
    return map_result(changes, lambda pairs: [after for _, after in pairs])


def delete_task(repos: Repositories, task_id: str) -> Result[None, str]:
    with aggregate_locks.hold(task_id):
        return repos.tasks.delete(task_id)


# =============================================================================
# Status
# =============================================================================


def complete_task(
    repos: Repositories,
    task_id: str,
    now: datetime | None = None,
) -> Result[tuple[Task, TaskCompleted], str]:
    changed = change_task(repos, task_id, lambda t: t.complete(now))
    if isinstance(changed, Err):
        return changed
    task = changed.value[1]
    logger.info("Completed task %s", task.id)
    return Ok((task, TaskCompleted(task_id=task.id, title=task.title, total_points=task.total_points)))


def cancel_task(
    repos: Repositories,
    task_id: str,
    justification: str | None = None,
    now: datetime | None = None,
) -> Result[tuple[Task, TaskCanceled], str]:
    changed = change_task(repos, task_id, lambda t: t.cancel(justification, now))
    if isinstance(changed, Err):
        return changed
    task = changed.value[1]
    logger.info("Canceled task %s", task.id)
    reason = justification.strip() if justification else None
    return Ok((task, TaskCanceled(task_id=task.id, title=task.title, justification=reason)))


# =============================================================================
# Location
# =============================================================================


def _moved(before: Task, after: Task) -> TaskMoved:
    return TaskMoved(
        task_id=after.id,
        from_location=str(before.location),
        to_location=str(after.location),
    )


def move_task_to_sprint(
    repos: Repositories,
    task_id: str,
    sprint_id: str,
) -> Result[tuple[Task, TaskMoved], str]:
    sprint = repos.sprints.find_by_id(sprint_id)
    if isinstance(sprint, Err):
        return sprint
    changed = change_task(repos, task_id, lambda t: t.move_to_sprint(sprint_id))
    if isinstance(changed, Err):
        return changed
    before, after = changed.value
    return Ok((after, _moved(before, after)))


def move_task_to_backlog(
    repos: Repositories,
    task_id: str,
) -> Result[tuple[Task, TaskMoved], str]:
    changed = change_task(repos, task_id, lambda t: t.move_to_backlog())
    if isinstance(changed, Err):
        return changed
    before, after = changed.value
    return Ok((after, _moved(before, after)))


# =============================================================================
# Skips
# =============================================================================


def skip_task(
    repos: Repositories,
    task_id: str,
    skip_type: SkipType,
    justification: str | None = None,
    now: datetime | None = None,
) -> Result[tuple[Task, TaskSkipped], str]:
    """Skip for now, or for the rest of the day with a justification."""
    skip_type = SkipType(skip_type)
    if skip_type == SkipType.FOR_DAY:
        changed = change_task(repos, task_id, lambda t: t.skip_for_day(justification or "", now))
    else:
        changed = change_task(repos, task_id, lambda t: t.skip_for_now(now))
    if isinstance(changed, Err):
        return changed
    task = changed.value[1]
    return Ok((task, TaskSkipped(task_id=task.id, skip_type=skip_type)))


def clear_skip(repos: Repositories, task_id: str) -> Result[Task, str]:
    changed = change_task(repos, task_id, lambda t: t.clear_skip_state())
    if isinstance(changed, Err):
        return changed
    return Ok(changed.value[1])


# =============================================================================
# Comments
# =============================================================================


def add_comment(
    repos: Repositories,
    task_id: str,
    content: str,
    now: datetime | None = None,
) -> Result[Task, str]:
    changed = change_task(repos, task_id, lambda t: t.add_comment(content, now))
    if isinstance(changed, Err):
        return changed
    return Ok(changed.value[1])


def update_comment(
    repos: Repositories,
    task_id: str,
    comment_id: str,
    content: str,
    now: datetime | None = None,
) -> Result[Task, str]:
    changed = change_task(repos, task_id, lambda t: t.update_comment(comment_id, content, now))
    if isinstance(changed, Err):
        return changed
    return Ok(changed.value[1])


def delete_comment(repos: Repositories, task_id: str, comment_id: str) -> Result[Task, str]:
    changed = change_task(repos, task_id, lambda t: t.delete_comment(comment_id))
    if isinstance(changed, Err):
        return changed
    return Ok(changed.value[1])


# =============================================================================
# Sessions
# =============================================================================


def start_session(
    repos: Repositories,
    task_id: str,
    now: datetime | None = None,
) -> Result[tuple[Task, SessionStarted], str]:
    changed = change_task(repos, task_id, lambda t: t.start_session(now))
    if isinstance(changed, Err):
        return changed
    task = changed.value[1]
    session = task.sessions[-1]
    logger.info("Started session %s on task %s", session.id, task.id)
    return Ok((task, SessionStarted(task_id=task.id, session_id=session.id)))


def _session_ended(task: Task, session_id: str) -> SessionEnded:
    session = task.find_session(session_id)
    return SessionEnded(
        task_id=task.id,
        session_id=session.id,
        status=session.status,
        duration_seconds=session.duration_seconds,
        focus_level=session.focus_level,
    )


def _resolve_session_id(repos: Repositories, task_id: str, session_id: str | None) -> Result[str, str]:
    if session_id is not None:
        return Ok(session_id)
    found = repos.tasks.find_by_id(task_id)
    if isinstance(found, Err):
        return found
    active = found.value.active_session
    if active is None:
        return Err("No session in progress for this task")
    return Ok(active.id)


def end_session(
    repos: Repositories,
    task_id: str,
    focus_level: FocusLevel,
    *,
    session_id: str | None = None,
    note: str | None = None,
    now: datetime | None = None,
) -> Result[tuple[Task, SessionEnded], str]:
    """Complete a session; defaults to the task's in-progress session."""
    resolved = _resolve_session_id(repos, task_id, session_id)
    if isinstance(resolved, Err):
        return resolved
    sid = resolved.value
    changed = change_task(
        repos, task_id, lambda t: t.complete_session(sid, focus_level, now or utc_now(), note)
    )
    if isinstance(changed, Err):
        return changed
    task = changed.value[1]
    return Ok((task, _session_ended(task, sid)))


def abandon_session(
    repos: Repositories,
    task_id: str,
    *,
    session_id: str | None = None,
    now: datetime | None = None,
) -> Result[tuple[Task, SessionEnded], str]:
    resolved = _resolve_session_id(repos, task_id, session_id)
    if isinstance(resolved, Err):
        return resolved
    sid = resolved.value
    changed = change_task(repos, task_id, lambda t: t.abandon_session(sid, now))
    if isinstance(changed, Err):
        return changed
    task = changed.value[1]
    return Ok((task, _session_ended(task, sid)))


def add_manual_session(
    repos: Repositories,
    task_id: str,
    started_at: datetime,
    ended_at: datetime,
    focus_level: FocusLevel,
    note: str | None = None,
) -> Result[tuple[Task, SessionEnded], str]:
    changed = change_task(
        repos,
        task_id,
        lambda t: t.add_manual_session(started_at, ended_at, focus_level, note),
    )
    if isinstance(changed, Err):
        return changed
    task = changed.value[1]
    return Ok((task, _session_ended(task, task.sessions[-1].id)))

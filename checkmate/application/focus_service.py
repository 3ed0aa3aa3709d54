"""Focus application service.

Answers "what should I work on right now" for one sprint: surfaces skips
whose day is over, narrows by the active routine, and orders the rest.
"""

import logging
from datetime import datetime

from pydantic import BaseModel, Field

from checkmate.application.locks import aggregate_locks
from checkmate.domain.ports import ExpressionEvaluator
from checkmate.domain.routine import Routine, filter_tasks_for_routine
from checkmate.domain.shared import Err, Ok, Result
from checkmate.domain.task import FocusQueue, Task, build_focus_queue
from checkmate.domain.types import utc_now
from checkmate.infrastructure.storage import Repositories

logger = logging.getLogger(__name__)


class FocusView(BaseModel):
    """Focus queue for one sprint plus how it was derived."""

    sprint_id: str
    queue: FocusQueue
    routine: Routine | None = None
    returned_task_ids: list[str] = Field(default_factory=list)

    @property
    def focus(self) -> Task | None:
        return self.queue.focus

    @property
    def up_next(self) -> list[Task]:
        return self.queue.up_next


def mark_returned_skips(
    repos: Repositories,
    tasks: list[Task],
    now: datetime,
) -> Result[tuple[list[Task], list[str]], str]:
    """Flip every skip-for-day whose return time has passed to returned.

    Only tasks that transitioned are saved.

    Returns:
        Ok((tasks with updated snapshots, ids that transitioned)).
    """
    updated: list[Task] = []
    returned: list[str] = []
    for task in tasks:
        with aggregate_locks.hold(task.id):
            # Re-read under the lock so a concurrent command is not overwritten
            current = repos.tasks.find_by_id(task.id)
            if isinstance(current, Err):
                return current
            marked, transitioned = current.value.check_and_mark_skip_return(now)
            if transitioned:
                saved = repos.tasks.save(marked)
                if isinstance(saved, Err):
                    return saved
                returned.append(marked.id)
        updated.append(marked)
    if returned:
        logger.info("%d skipped task(s) returned to focus", len(returned))
    return Ok((updated, returned))


def get_focus(
    repos: Repositories,
    sprint_id: str,
    *,
    routine: Routine | None = None,
    evaluator: ExpressionEvaluator | None = None,
    now: datetime | None = None,
) -> Result[FocusView, str]:
    """Compute the focus task and up-next queue for a sprint.

    Args:
        repos: Repositories to read and update.
        sprint_id: Sprint whose active tasks are considered.
        routine: Active routine; its task filter narrows the tasks. Needs
            ``evaluator``.
        evaluator: Expression evaluator for the routine's task filter.
        now: Reference time, defaults to the current UTC time.
    """
    when = now or utc_now()
    sprint = repos.sprints.find_by_id(sprint_id)
    if isinstance(sprint, Err):
        return sprint

    found = repos.tasks.find_by_sprint(sprint_id)
    if isinstance(found, Err):
        return found
    active = [task for task in found.value if task.is_active]

    marked = mark_returned_skips(repos, active, when)
    if isinstance(marked, Err):
        return marked
    tasks, returned_ids = marked.value

    if routine is not None and evaluator is not None:
        tags = repos.tags.find_all()
        if isinstance(tags, Err):
            return tags
        tasks = filter_tasks_for_routine(routine, tasks, tags.value, evaluator)

    return Ok(
        FocusView(
            sprint_id=sprint_id,
            queue=build_focus_queue(tasks),
            routine=routine,
            returned_task_ids=returned_ids,
        )
    )

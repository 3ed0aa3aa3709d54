"""Pure focus selection over a list of tasks.

All functions in this module are pure - no I/O, no side effects, no caching.
They take the tasks of one scope (typically one sprint) in, and return the
focus task and the queue behind it.

Queue order:
    1. tasks whose skip-for-day has come back
    2. tasks with no skip
    3. tasks skipped for now
Tasks still skipped for the day are hidden, not sorted last.
Within a group, ascending ``order`` and then input position.
"""

from collections.abc import Iterable, Sequence

from pydantic import BaseModel, Field

from .models import SkipType, Task


# =============================================================================
# Visibility
# =============================================================================


def is_visible_in_focus(task: Task) -> bool:
    """False only while the task has an unreturned skip-for-day."""
    skip = task.skip_state
    return skip is None or not skip.is_hidden


def _group_rank(task: Task) -> int:
    skip = task.skip_state
    if skip is None:
        return 1
    if skip.type == SkipType.FOR_DAY:
        # only returned for_day skips reach here
        return 0
    return 2


# =============================================================================
# Sorting and Selection
# =============================================================================


def sort_for_focus(tasks: Iterable[Task]) -> list[Task]:
    """Return the visible tasks in focus order.

    ``sorted`` is stable, so ties on (group, order) keep input position.
    """
    visible = [task for task in tasks if is_visible_in_focus(task)]
    return sorted(visible, key=lambda t: (_group_rank(t), t.order))


def get_focus_task(tasks: Iterable[Task]) -> Task | None:
    """The single task to work on now, or None."""
    ordered = sort_for_focus(tasks)
    return ordered[0] if ordered else None


def get_up_next(tasks: Iterable[Task]) -> list[Task]:
    """Visible tasks after the focus task, in focus order."""
    return sort_for_focus(tasks)[1:]


def count_hidden(tasks: Iterable[Task]) -> int:
    """Number of tasks hidden by an unreturned skip-for-day."""
    return sum(1 for task in tasks if not is_visible_in_focus(task))


# =============================================================================
# Combined View
# =============================================================================


class FocusQueue(BaseModel):
    """Focus task, up-next queue and hidden count for one scope."""

    focus: Task | None = None
    up_next: list[Task] = Field(default_factory=list)
    hidden_count: int = 0

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return self.focus is None


def build_focus_queue(tasks: Sequence[Task]) -> FocusQueue:
    """Sort once and split into focus and up-next."""
    ordered = sort_for_focus(tasks)
    return FocusQueue(
        focus=ordered[0] if ordered else None,
        up_next=ordered[1:],
        hidden_count=count_hidden(tasks),
    )

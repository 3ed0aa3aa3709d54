"""Application service layer for Checkmate.

Services orchestrate domain operations against the repositories: load an
aggregate, apply one domain operation or pure calculator, save the result.
Every service returns a Result; domain rule violations come back as Err.

Services:
    task_service - Task lifecycle, comments and focus sessions
    focus_service - Focus task and up-next queue for a sprint
    sprint_service - Sprint window, capacity overrides, tags, health
    routine_service - Routines and the active routine
    recurrence_service - Spawning recurring instances
    stats_service - Weekly stats and streaks

Example usage:
    >>> from checkmate.application import task_service
    >>> from checkmate.domain.shared import is_ok
    >>>
    >>> result = task_service.create_task(repos, "Write report", {"untagged": 3})
    >>> if is_ok(result):
    ...     task, event = result.value
"""

from checkmate.application import (
    focus_service,
    recurrence_service,
    routine_service,
    sprint_service,
    stats_service,
    task_service,
)
from checkmate.application.focus_service import FocusView, get_focus
from checkmate.application.locks import AggregateLocks, aggregate_locks

__all__ = [
    "task_service",
    "focus_service",
    "sprint_service",
    "routine_service",
    "recurrence_service",
    "stats_service",
    "FocusView",
    "get_focus",
    "AggregateLocks",
    "aggregate_locks",
]

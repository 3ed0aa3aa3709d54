"""Routine activation and task filtering.

Pure functions. Expression failures never propagate: a routine whose
activation is blank or fails to evaluate does not match, and a task whose
filter fails to evaluate is dropped. One malformed routine cannot break
selection for the others.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from checkmate.domain.ports import ExpressionEvaluator
from checkmate.domain.sprint.models import Tag
from checkmate.domain.task.models import Task

from .models import Routine

DAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


def build_routine_context(now: datetime) -> dict[str, Any]:
    """Decompose ``now`` into the names activation expressions can use.

    ``time`` is minutes since midnight, handy for ranges such as
    ``time >= 540 and time < 1020``.
    """
    weekday = now.weekday()
    is_weekend = weekday >= 5
    return {
        "now": now,
        "day_of_week": DAY_NAMES[weekday],
        "hour": now.hour,
        "minute": now.minute,
        "is_weekday": not is_weekend,
        "is_weekend": is_weekend,
        "time": now.hour * 60 + now.minute,
        "date": now.day,
        "month": now.month,
        "year": now.year,
    }


def _matches(routine: Routine, context: Mapping[str, Any], evaluator: ExpressionEvaluator) -> bool:
    if not routine.has_activation:
        return False
    try:
        return bool(evaluator.evaluate(routine.activation_expression, context))
    except Exception:
        return False


def _precedence(routine: Routine) -> tuple[int, str, str]:
    return (-routine.priority, routine.name.casefold(), routine.name)


def matching_routines(
    routines: Iterable[Routine],
    context: Mapping[str, Any],
    evaluator: ExpressionEvaluator,
) -> list[Routine]:
    """Routines whose activation matches, best first."""
    matched = [r for r in routines if _matches(r, context, evaluator)]
    return sorted(matched, key=_precedence)


def determine_active_routine(
    routines: Iterable[Routine],
    context: Mapping[str, Any],
    evaluator: ExpressionEvaluator,
) -> Routine | None:
    """Pick the single active routine.

    Highest priority wins; ties go to the case-insensitively smaller name,
    then the exact name, so the result does not depend on input order.
    None means no routine matches and callers show every task.
    """
    matched = matching_routines(routines, context, evaluator)
    return matched[0] if matched else None


# =============================================================================
# Task Filtering
# =============================================================================


def build_task_context(task: Task, tags_by_id: Mapping[str, Tag]) -> dict[str, Any]:
    """Flat record a task filter expression is evaluated against."""
    tag_ids = task.tag_points.tag_ids()
    return {
        "title": task.title,
        "points": task.total_points,
        "tags": [tags_by_id[t].name if t in tags_by_id else t for t in tag_ids],
        "tag_ids": tag_ids,
        "is_skipped": task.skip_state is not None,
        "in_sprint": task.location.is_sprint,
        "is_instance": task.is_recurring_instance,
    }


def filter_tasks_for_routine(
    routine: Routine,
    tasks: Iterable[Task],
    tags: Iterable[Tag],
    evaluator: ExpressionEvaluator,
) -> list[Task]:
    """Tasks the routine's filter accepts, in input order.

    A blank filter keeps every task. An invalid filter keeps none.
    """
    tasks = list(tasks)
    if not routine.has_task_filter:
        return tasks

    try:
        predicate = evaluator.compile(routine.task_filter_expression)
    except ValueError:
        return []

    tags_by_id = {tag.id: tag for tag in tags}
    kept = []
    for task in tasks:
        try:
            if predicate(build_task_context(task, tags_by_id)):
                kept.append(task)
        except Exception:
            continue
    return kept

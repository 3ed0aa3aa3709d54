"""Routine application service.

CRUD for routines plus resolution of the active routine, honoring a manual
override when the caller supplies one.
"""

import logging
from datetime import datetime

from checkmate.application.locks import aggregate_locks
from checkmate.domain.ports import ExpressionEvaluator
from checkmate.domain.routine import Routine, build_routine_context, determine_active_routine
from checkmate.domain.shared import DomainError, Err, Ok, Result
from checkmate.domain.types import utc_now
from checkmate.infrastructure.storage import Repositories

logger = logging.getLogger(__name__)


def _check_expressions(
    evaluator: ExpressionEvaluator,
    activation: str | None,
    task_filter: str | None,
) -> Result[None, str]:
    """Blank expressions are allowed; anything else must parse."""
    for label, expression in (("activation", activation), ("task filter", task_filter)):
        if expression is None or not expression.strip():
            continue
        validation = evaluator.validate(expression)
        if not validation.valid:
            return Err(f"Invalid {label} expression: {validation.error}")
    return Ok(None)


def list_routines(repos: Repositories) -> Result[list[Routine], str]:
    """All routines, highest priority first."""
    found = repos.routines.find_all()
    if isinstance(found, Err):
        return found
    return Ok(sorted(found.value, key=lambda r: (-r.priority, r.name.casefold(), r.name)))


def create_routine(
    repos: Repositories,
    evaluator: ExpressionEvaluator,
    name: str,
    priority: int,
    activation_expression: str = "",
    task_filter_expression: str = "",
    icon: str | None = None,
    color: str | None = None,
) -> Result[Routine, str]:
    checked = _check_expressions(evaluator, activation_expression, task_filter_expression)
    if isinstance(checked, Err):
        return checked

    options = {k: v for k, v in {"icon": icon, "color": color}.items() if v is not None}
    try:
        routine = Routine.create(
            name,
            priority,
            activation_expression=activation_expression,
            task_filter_expression=task_filter_expression,
            **options,
        )
    except DomainError as e:
        return Err(e.message)
    logger.info("Created routine %s", routine.id)
    return repos.routines.save(routine)


def update_routine(
    repos: Repositories,
    evaluator: ExpressionEvaluator,
    routine_id: str,
    *,
    name: str | None = None,
    priority: int | None = None,
    activation_expression: str | None = None,
    task_filter_expression: str | None = None,
    icon: str | None = None,
    color: str | None = None,
) -> Result[Routine, str]:
    checked = _check_expressions(evaluator, activation_expression, task_filter_expression)
    if isinstance(checked, Err):
        return checked

    with aggregate_locks.hold(routine_id):
        found = repos.routines.find_by_id(routine_id)
        if isinstance(found, Err):
            return found
        routine = found.value
        try:
            if name is not None:
                routine = routine.rename(name)
            if priority is not None:
                routine = routine.with_priority(priority)
            if activation_expression is not None:
                routine = routine.with_activation(activation_expression)
            if task_filter_expression is not None:
                routine = routine.with_task_filter(task_filter_expression)
            if icon is not None:
                routine = routine.with_icon(icon)
            if color is not None:
                routine = routine.recolor(color)
        except DomainError as e:
            return Err(e.message)
        return repos.routines.save(routine)


def delete_routine(repos: Repositories, routine_id: str) -> Result[None, str]:
    with aggregate_locks.hold(routine_id):
        return repos.routines.delete(routine_id)


def get_active_routine(
    repos: Repositories,
    evaluator: ExpressionEvaluator,
    now: datetime | None = None,
    override_id: str | None = None,
) -> Result[Routine | None, str]:
    """Resolve the routine in effect at ``now``.

    A manual override wins when it names an existing routine; an override
    naming a deleted routine is ignored with a warning. Ok(None) means no
    routine is active.
    """
    if override_id:
        overridden = repos.routines.find_by_id(override_id)
        if isinstance(overridden, Ok):
            return Ok(overridden.value)
        logger.warning("Ignoring routine override %s: %s", override_id, overridden.error)

    routines = repos.routines.find_all()
    if isinstance(routines, Err):
        return routines
    context = build_routine_context(now or utc_now())
    return Ok(determine_active_routine(routines.value, context, evaluator))

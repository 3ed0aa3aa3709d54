"""Recurrence application service.

Spawns instances of recurring templates for a date range and saves them.
"""

import logging
from datetime import datetime

from checkmate.application.locks import aggregate_locks
from checkmate.domain.ports import RecurrenceCalculator
from checkmate.domain.shared import DomainError, Err, Ok, Result, map_result
from checkmate.domain.task import InstancesSpawned, Task, spawn_due_instances
from checkmate.infrastructure.storage import Repositories

logger = logging.getLogger(__name__)


def list_templates(repos: Repositories) -> Result[list[Task], str]:
    return map_result(repos.tasks.find_templates(), lambda found: [t for t in found if t.is_active])


def spawn_instances(
    repos: Repositories,
    calculator: RecurrenceCalculator,
    start: datetime,
    end: datetime,
    now: datetime | None = None,
) -> Result[tuple[list[Task], InstancesSpawned], str]:
    """Materialize and save the instances owed for ``[start, end]``.

    Only instances belonging to the range count against it, so consecutive
    ranges each get their own instances. Re-running over the same range
    spawns nothing new. Inactive templates do not spawn.
    """
    if start > end:
        return Err("Range start must not be after its end")

    # One spawner at a time, so two concurrent runs cannot both see the
    # same existing-instance count
    with aggregate_locks.hold("recurrence"):
        templates = list_templates(repos)
        if isinstance(templates, Err):
            return templates

        existing: list[Task] = []
        for template in templates.value:
            children = repos.tasks.find_by_parent(template.id)
            if isinstance(children, Err):
                return children
            existing.extend(children.value)

        spawned = spawn_due_instances(templates.value, existing, start, end, calculator, now)
        if spawned:
            saved = repos.tasks.save_all(spawned)
            if isinstance(saved, Err):
                return saved
            logger.info("Spawned %d recurring instance(s)", len(spawned))

    event = InstancesSpawned(
        template_ids=sorted({t.parent_id for t in spawned if t.parent_id}),
        instance_ids=[t.id for t in spawned],
    )
    return Ok((spawned, event))


def spawn_instance(
    repos: Repositories,
    template_id: str,
    now: datetime | None = None,
) -> Result[Task, str]:
    """Spawn one instance on demand, regardless of the schedule."""
    found = repos.tasks.find_by_id(template_id)
    if isinstance(found, Err):
        return found
    try:
        instance = found.value.spawn_instance(now)
    except DomainError as e:
        return Err(e.message)
    return repos.tasks.save(instance)

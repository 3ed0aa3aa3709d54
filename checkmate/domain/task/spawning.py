"""Materialize recurring task instances.

Pure functions: nothing is persisted here. The caller saves whatever is
returned.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from checkmate.domain.ports import RecurrenceCalculator

from .models import Task


def instance_time(instance: Task) -> datetime:
    """The occurrence an instance stands for, or its creation time."""
    return instance.occurrence_at or instance.created_at


def count_instances_by_parent(
    instances: Iterable[Task],
    start: datetime | None = None,
    end: datetime | None = None,
) -> Counter[str]:
    """Count instances per template id.

    With ``start`` and ``end``, only instances whose ``instance_time`` falls
    in ``[start, end]`` are counted.
    """
    counts: Counter[str] = Counter()
    for task in instances:
        if task.parent_id is None:
            continue
        when = instance_time(task)
        if start is not None and when < start:
            continue
        if end is not None and when > end:
            continue
        counts[task.parent_id] += 1
    return counts


def spawn_due_instances(
    templates: Iterable[Task],
    existing_instances: Iterable[Task],
    start: datetime,
    end: datetime,
    calculator: RecurrenceCalculator,
    now: datetime | None = None,
) -> list[Task]:
    """Create the instances still owed for ``[start, end]``.

    For each template the number spawned is the number of occurrences in the
    range minus the instances already belonging to the range, never
    negative. An instance belongs to the range when its occurrence (or, for
    one spawned on demand, its creation time) falls inside it, so instances
    from earlier ranges never use up later ones. New instances take the
    latest occurrences not already claimed by an existing instance.

    Running this again with the first run's output included in
    ``existing_instances`` spawns nothing.

    Args:
        templates: Candidate tasks; anything without a recurrence rule is ignored.
        existing_instances: Already materialized instances.
        start: Range start (inclusive).
        end: Range end (inclusive).
        calculator: Recurrence port used to expand each template's rule.
        now: Creation time for the new instances.

    Returns:
        The new instances, grouped by template in input order and ordered
        by occurrence within a template.
    """
    if start > end:
        return []

    instances = list(existing_instances)
    existing = count_instances_by_parent(instances, start, end)
    claimed = {(t.parent_id, t.occurrence_at) for t in instances if t.occurrence_at is not None}
    spawned: list[Task] = []

    for template in templates:
        if not template.is_recurring_template or template.recurrence is None:
            continue
        occurrences = calculator.occurrences(template.recurrence, start, end)
        needed = len(occurrences) - existing[template.id]
        if needed <= 0:
            continue
        open_slots = [o for o in occurrences if (template.id, o) not in claimed]
        for occurrence in open_slots[-needed:]:
            spawned.append(template.spawn_instance(now, occurrence_at=occurrence))

    return spawned

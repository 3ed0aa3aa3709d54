"""Sprint and tag application service.

Keeps the rolling window of weekly sprints in place, manages capacity
overrides and tags, and computes sprint health on demand.
"""

import logging
from datetime import datetime

from checkmate.application.locks import aggregate_locks
from checkmate.domain.shared import DomainError, Err, Ok, Result
from checkmate.domain.sprint import (
    UNTAGGED_ID,
    Sprint,
    SprintHealthReport,
    Tag,
    calculate_sprint_health,
    ensure_sprints_exist,
    find_current_sprint,
)
from checkmate.domain.types import utc_now
from checkmate.infrastructure.storage import Repositories

logger = logging.getLogger(__name__)


# =============================================================================
# Sprints
# =============================================================================


def ensure_sprints(repos: Repositories, now: datetime | None = None) -> Result[list[Sprint], str]:
    """Create any missing current/next/next-next sprint.

    Returns:
        Ok(all sprints by start date), or Err(str) if storage fails.
    """
    with aggregate_locks.hold("sprints"):
        existing = repos.sprints.find_all()
        if isinstance(existing, Err):
            return existing
        created = ensure_sprints_exist(existing.value, now or utc_now())
        if created:
            saved = repos.sprints.save_all(created)
            if isinstance(saved, Err):
                return saved
            logger.info("Created %d sprint(s)", len(created))
    return repos.sprints.find_all_ordered()


def get_current_sprint(repos: Repositories, now: datetime | None = None) -> Result[Sprint, str]:
    when = now or utc_now()
    sprints = ensure_sprints(repos, when)
    if isinstance(sprints, Err):
        return sprints
    current = find_current_sprint(sprints.value, when)
    if current is None:
        return Err("No current sprint")
    return Ok(current)


def upcoming_sprints(repos: Repositories, now: datetime | None = None) -> Result[list[Sprint], str]:
    """The current sprint and the ones after it."""
    when = now or utc_now()
    sprints = ensure_sprints(repos, when)
    if isinstance(sprints, Err):
        return sprints
    return Ok([s for s in sprints.value if s.end_date >= when.date()])


def _change_sprint(repos: Repositories, sprint_id: str, change) -> Result[Sprint, str]:
    with aggregate_locks.hold(sprint_id):
        found = repos.sprints.find_by_id(sprint_id)
        if isinstance(found, Err):
            return found
        try:
            updated = change(found.value)
        except DomainError as e:
            return Err(e.message)
        return repos.sprints.save(updated)


def set_capacity_override(
    repos: Repositories,
    sprint_id: str,
    tag_id: str,
    capacity: int,
) -> Result[Sprint, str]:
    tags = list_tags(repos)
    if isinstance(tags, Err):
        return tags
    if tag_id not in {tag.id for tag in tags.value}:
        return Err(f"Tag not found: {tag_id}")
    return _change_sprint(repos, sprint_id, lambda s: s.with_capacity_override(tag_id, capacity))


def clear_capacity_override(repos: Repositories, sprint_id: str, tag_id: str) -> Result[Sprint, str]:
    return _change_sprint(repos, sprint_id, lambda s: s.without_capacity_override(tag_id))


def get_sprint_health(
    repos: Repositories,
    sprint_id: str,
    now: datetime | None = None,
) -> Result[SprintHealthReport, str]:
    """Burn-rate health of one sprint, computed fresh every call."""
    sprint = repos.sprints.find_by_id(sprint_id)
    if isinstance(sprint, Err):
        return sprint
    tasks = repos.tasks.find_by_sprint(sprint_id)
    if isinstance(tasks, Err):
        return tasks
    tags = list_tags(repos)
    if isinstance(tags, Err):
        return tags
    return Ok(calculate_sprint_health(sprint.value, tasks.value, tags.value, now or utc_now()))


# =============================================================================
# Tags
# =============================================================================


def ensure_untagged(repos: Repositories) -> Result[Tag, str]:
    """Make sure the protected untagged tag exists."""
    with aggregate_locks.hold(UNTAGGED_ID):
        found = repos.tags.find_by_id(UNTAGGED_ID)
        if isinstance(found, Ok):
            return found
        logger.info("Creating the untagged tag")
        return repos.tags.save(Tag.untagged())


def list_tags(repos: Repositories) -> Result[list[Tag], str]:
    """All tags, untagged first, then by name."""
    ensured = ensure_untagged(repos)
    if isinstance(ensured, Err):
        return ensured
    found = repos.tags.find_all()
    if isinstance(found, Err):
        return found
    return Ok(sorted(found.value, key=lambda t: (not t.is_untagged, t.name.casefold())))


def create_tag(
    repos: Repositories,
    name: str,
    default_capacity: int,
    icon: str | None = None,
    color: str | None = None,
) -> Result[Tag, str]:
    options = {k: v for k, v in {"icon": icon, "color": color}.items() if v is not None}
    try:
        tag = Tag.create(name, default_capacity, **options)
    except DomainError as e:
        return Err(e.message)

    # The name check and the save must not interleave with another create
    with aggregate_locks.hold("tags"):
        existing = repos.tags.find_by_name(tag.name)
        if isinstance(existing, Err):
            return existing
        if existing.value is not None:
            return Err(f"Tag already exists: {existing.value.name}")
        saved = repos.tags.save(tag)
    if isinstance(saved, Ok):
        logger.info("Created tag %s", tag.id)
    return saved


def update_tag(
    repos: Repositories,
    tag_id: str,
    *,
    name: str | None = None,
    icon: str | None = None,
    color: str | None = None,
    default_capacity: int | None = None,
) -> Result[Tag, str]:
    with aggregate_locks.hold(tag_id):
        found = repos.tags.find_by_id(tag_id)
        if isinstance(found, Err):
            return found
        tag = found.value
        try:
            if name is not None:
                tag = tag.rename(name)
            if icon is not None:
                tag = tag.with_icon(icon)
            if color is not None:
                tag = tag.recolor(color)
            if default_capacity is not None:
                tag = tag.update_capacity(default_capacity)
        except DomainError as e:
            return Err(e.message)
        return repos.tags.save(tag)


def delete_tag(repos: Repositories, tag_id: str) -> Result[None, str]:
    """Delete a tag no active task still uses. Untagged cannot be deleted."""
    if tag_id == UNTAGGED_ID:
        return Err("Cannot delete the Untagged tag")
    active = repos.tasks.find_active()
    if isinstance(active, Err):
        return active
    in_use = [t for t in active.value if t.tag_points.has_tag(tag_id)]
    if in_use:
        return Err(f"Tag is used by {len(in_use)} active task(s)")
    with aggregate_locks.hold(tag_id):
        return repos.tags.delete(tag_id)

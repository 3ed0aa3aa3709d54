"""Task domain events.

Immutable records returned by the task services next to the updated
aggregate. Pure data - no I/O, no side effects.
"""

from checkmate.domain.shared.events import DomainEvent

from .models import FocusLevel, SessionStatus, SkipType


class TaskCreated(DomainEvent):
    """A task or recurring template was created."""

    task_id: str
    title: str
    total_points: int
    is_template: bool = False


class TaskCompleted(DomainEvent):
    task_id: str
    title: str
    total_points: int


class TaskCanceled(DomainEvent):
    task_id: str
    title: str
    justification: str | None = None


class TaskSkipped(DomainEvent):
    """A task was deprioritized for now or hidden for the day."""

    task_id: str
    skip_type: SkipType


class TaskMoved(DomainEvent):
    """A task moved between the backlog and a sprint.

    Locations are rendered as ``backlog`` or ``sprint:<id>``.
    """

    task_id: str
    from_location: str
    to_location: str


class SessionStarted(DomainEvent):
    task_id: str
    session_id: str


class SessionEnded(DomainEvent):
    """A focus session was completed, abandoned, or logged manually."""

    task_id: str
    session_id: str
    status: SessionStatus
    duration_seconds: int
    focus_level: FocusLevel | None = None


class InstancesSpawned(DomainEvent):
    """Recurring templates materialized new instances."""

    template_ids: list[str]
    instance_ids: list[str]

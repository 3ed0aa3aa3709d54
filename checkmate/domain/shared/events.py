"""Base domain event infrastructure.

Domain events are immutable records of something that happened, returned by
application services next to the updated aggregate so callers can audit or
react to them.

Example usage:
    >>> from checkmate.domain.shared.events import DomainEvent
    >>>
    >>> class TaskArchived(DomainEvent):
    ...     task_id: str
    ...
    >>> event = TaskArchived(task_id="task_1a2b3c4d")
    >>> print(f"Event {event.event_id} occurred at {event.occurred_at}")
"""

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field


class DomainEvent(BaseModel):
    """Base class for all domain events.

    Attributes:
        event_id: Unique identifier for this event instance.
        occurred_at: UTC timestamp when the event occurred.
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"frozen": True}

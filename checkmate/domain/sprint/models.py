"""Sprint and Tag domain models.

A sprint is a fixed Sunday..Saturday week with optional per-tag capacity
overrides. A tag is a task category carrying a default weekly capacity.
Both are frozen; updates return new instances.
"""

from datetime import date, datetime, timedelta

from pydantic import BaseModel, Field

from checkmate.domain.shared.errors import DomainValidationError, InvalidStateError
from checkmate.domain.types import new_id, non_empty

SPRINT_LENGTH_DAYS = 7

UNTAGGED_ID = "untagged"
UNTAGGED_NAME = "Untagged"
UNTAGGED_ICON = "📦"
UNTAGGED_COLOR = "#6b7280"
UNTAGGED_CAPACITY = 10

DEFAULT_TAG_ICON = "🏷️"
DEFAULT_TAG_COLOR = "#3b82f6"


def _positive(value: int, message: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise DomainValidationError(message)
    return value


# =============================================================================
# Sprint
# =============================================================================


class Sprint(BaseModel):
    """A one-week capacity window.

    ``start_date`` is always a Sunday and ``end_date`` the Saturday after it.
    """

    id: str = Field(default_factory=lambda: new_id("sprint"))
    start_date: date
    end_date: date
    capacity_overrides: dict[str, int] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @classmethod
    def create(cls, start_date: date) -> "Sprint":
        """Create a sprint starting on ``start_date``.

        Raises:
            DomainValidationError: If ``start_date`` is not a Sunday.
        """
        if isinstance(start_date, datetime):
            start_date = start_date.date()
        # Python weekday(): Monday=0 .. Sunday=6
        if start_date.weekday() != 6:
            raise DomainValidationError("Sprint must start on a Sunday")
        return cls(
            start_date=start_date,
            end_date=start_date + timedelta(days=SPRINT_LENGTH_DAYS - 1),
        )

    @classmethod
    def for_week_of(cls, day: date) -> "Sprint":
        """Create the sprint whose week contains ``day``."""
        if isinstance(day, datetime):
            day = day.date()
        return cls.create(day - timedelta(days=(day.weekday() + 1) % 7))

    def capacity_for(self, tag_id: str, default_capacity: int) -> int:
        """Override for the tag if present, else its default."""
        return self.capacity_overrides.get(tag_id, default_capacity)

    def with_capacity_override(self, tag_id: str, capacity: int) -> "Sprint":
        _positive(capacity, "Capacity must be greater than 0")
        overrides = {**self.capacity_overrides, tag_id: capacity}
        return self.model_copy(update={"capacity_overrides": overrides})

    def without_capacity_override(self, tag_id: str) -> "Sprint":
        overrides = {k: v for k, v in self.capacity_overrides.items() if k != tag_id}
        return self.model_copy(update={"capacity_overrides": overrides})

    def days_remaining(self, now: datetime) -> int:
        """Whole calendar days from ``now`` through ``end_date`` inclusive.

        0 once the sprint is over.
        """
        return max(0, (self.end_date - now.date()).days + 1)

    def is_active(self, now: datetime) -> bool:
        return self.start_date <= now.date() <= self.end_date

    @property
    def label(self) -> str:
        return f"{self.start_date:%b %d} - {self.end_date:%b %d, %Y}"


# =============================================================================
# Tag
# =============================================================================


class Tag(BaseModel):
    """A task category with a default weekly point capacity.

    The ``untagged`` tag always exists and cannot be modified or deleted.
    """

    id: str = Field(default_factory=lambda: new_id("tag"))
    name: str
    icon: str = DEFAULT_TAG_ICON
    color: str = DEFAULT_TAG_COLOR
    default_capacity: int

    model_config = {"frozen": True}

    @classmethod
    def create(
        cls,
        name: str,
        default_capacity: int,
        icon: str = DEFAULT_TAG_ICON,
        color: str = DEFAULT_TAG_COLOR,
    ) -> "Tag":
        return cls(
            name=non_empty(name, "Tag name cannot be empty"),
            icon=icon,
            color=color,
            default_capacity=_positive(default_capacity, "Default capacity must be greater than 0"),
        )

    @classmethod
    def untagged(cls) -> "Tag":
        return cls(
            id=UNTAGGED_ID,
            name=UNTAGGED_NAME,
            icon=UNTAGGED_ICON,
            color=UNTAGGED_COLOR,
            default_capacity=UNTAGGED_CAPACITY,
        )

    @property
    def is_untagged(self) -> bool:
        return self.id == UNTAGGED_ID

    def _ensure_modifiable(self) -> None:
        if self.is_untagged:
            raise InvalidStateError("Cannot modify the Untagged tag")

    def rename(self, name: str) -> "Tag":
        self._ensure_modifiable()
        return self.model_copy(update={"name": non_empty(name, "Tag name cannot be empty")})

    def with_icon(self, icon: str) -> "Tag":
        self._ensure_modifiable()
        return self.model_copy(update={"icon": icon})

    def recolor(self, color: str) -> "Tag":
        self._ensure_modifiable()
        return self.model_copy(update={"color": color})

    def update_capacity(self, capacity: int) -> "Tag":
        self._ensure_modifiable()
        _positive(capacity, "Default capacity must be greater than 0")
        return self.model_copy(update={"default_capacity": capacity})

"""Domain value objects for Checkmate.

Immutable values shared by the task, sprint and routine aggregates:
the Fibonacci effort scale, per-tag point allocations, task locations,
and the id/clock helpers used when aggregates are created.
"""

from datetime import UTC, datetime, timedelta
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, model_validator

from checkmate.domain.shared.errors import DomainValidationError

# =============================================================================
# Effort Scale
# =============================================================================

# 1 point is roughly one hour of effort
FIBONACCI_POINTS: tuple[int, ...] = (1, 2, 3, 5, 8, 13, 21)


def is_valid_points(value: object) -> bool:
    """Check whether a value is on the Fibonacci effort scale.

    Booleans are rejected even though ``True == 1``.
    """
    return isinstance(value, int) and not isinstance(value, bool) and value in FIBONACCI_POINTS


def _check_allocation(points: dict[str, int]) -> None:
    if not points:
        raise DomainValidationError("Task must have at least one tag with points")
    for tag_id, value in points.items():
        if not tag_id or not tag_id.strip():
            raise DomainValidationError("Tag id cannot be empty")
        if not is_valid_points(value):
            allowed = ", ".join(str(p) for p in FIBONACCI_POINTS)
            raise DomainValidationError(
                f"Points must be a valid Fibonacci number: {allowed}. "
                f"Got: {value} for tag {tag_id}"
            )


class TagPoints(BaseModel):
    """Point allocation per tag for a single task.

    Each tag on a task carries its own Fibonacci point value; the task's
    total cost is the sum across tags. An allocation is never empty.

    Example:
        effort = TagPoints.create({"work": 5, "admin": 2})
        effort.total  # 7
        effort.with_tag("admin", 3).get("admin")  # 3
    """

    points: dict[str, int]

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _validate(self) -> "TagPoints":
        _check_allocation(self.points)
        return self

    @classmethod
    def create(cls, points: dict[str, int]) -> "TagPoints":
        """Build an allocation, raising DomainValidationError when invalid."""
        _check_allocation(points)
        return cls.model_construct(points=dict(points))

    @property
    def total(self) -> int:
        """Sum of points across all tags."""
        return sum(self.points.values())

    def get(self, tag_id: str) -> int:
        """Points for one tag, 0 when the tag is absent."""
        return self.points.get(tag_id, 0)

    def has_tag(self, tag_id: str) -> bool:
        return tag_id in self.points

    def tag_ids(self) -> list[str]:
        return list(self.points)

    def with_tag(self, tag_id: str, value: int) -> "TagPoints":
        """Return a copy with ``tag_id`` added or re-pointed."""
        return TagPoints.create({**self.points, tag_id: value})

    def without_tag(self, tag_id: str) -> "TagPoints":
        """Return a copy without ``tag_id``; the last tag cannot be removed."""
        remaining = {k: v for k, v in self.points.items() if k != tag_id}
        return TagPoints.create(remaining)

    def to_dict(self) -> dict[str, int]:
        return dict(self.points)


# =============================================================================
# Task Location
# =============================================================================


class TaskLocation(BaseModel):
    """Where an active task currently sits: the backlog or one sprint."""

    kind: Literal["backlog", "sprint"] = "backlog"
    sprint_id: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _validate(self) -> "TaskLocation":
        if self.kind == "sprint" and not self.sprint_id:
            raise ValueError("Sprint location requires a sprint id")
        if self.kind == "backlog" and self.sprint_id is not None:
            raise ValueError("Backlog location cannot carry a sprint id")
        return self

    @classmethod
    def backlog(cls) -> "TaskLocation":
        return cls(kind="backlog")

    @classmethod
    def sprint(cls, sprint_id: str) -> "TaskLocation":
        if not sprint_id or not sprint_id.strip():
            raise DomainValidationError("Sprint id cannot be empty")
        return cls(kind="sprint", sprint_id=sprint_id.strip())

    @property
    def is_backlog(self) -> bool:
        return self.kind == "backlog"

    @property
    def is_sprint(self) -> bool:
        return self.kind == "sprint"

    def __str__(self) -> str:
        """Return ``backlog`` or ``sprint:<id>``."""
        if self.kind == "sprint":
            return f"sprint:{self.sprint_id}"
        return "backlog"


# =============================================================================
# Helpers
# =============================================================================


def new_id(prefix: str) -> str:
    """Generate an opaque entity id such as ``task_3f9a1c2b7d4e``."""
    return f"{prefix}_{uuid4().hex[:12]}"


def utc_now() -> datetime:
    """Current UTC time; only used when a caller does not supply ``now``."""
    return datetime.now(UTC)


def start_of_day(moment: datetime) -> datetime:
    """Midnight at the start of ``moment``'s calendar day, same timezone."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_next_day(moment: datetime) -> datetime:
    """Midnight at the start of the calendar day after ``moment``."""
    return start_of_day(moment + timedelta(days=1))


def non_empty(value: str, message: str) -> str:
    """Trim ``value`` and raise DomainValidationError when nothing is left."""
    trimmed = (value or "").strip()
    if not trimmed:
        raise DomainValidationError(message)
    return trimmed


__all__ = [
    "FIBONACCI_POINTS",
    "TagPoints",
    "TaskLocation",
    "is_valid_points",
    "new_id",
    "non_empty",
    "start_of_day",
    "start_of_next_day",
    "utc_now",
]


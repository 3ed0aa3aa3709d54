"""Routine domain model.

A routine is a named, prioritized context: its activation expression is
evaluated against the current time, its task filter against each task.
Both expressions are opaque strings handed to an ExpressionEvaluator.
"""

from pydantic import BaseModel, Field

from checkmate.domain.shared.errors import DomainValidationError
from checkmate.domain.types import new_id, non_empty

MIN_PRIORITY = 1
MAX_PRIORITY = 10
DEFAULT_ROUTINE_ICON = "⏰"
DEFAULT_ROUTINE_COLOR = "#8b5cf6"


def _check_priority(priority: int) -> int:
    if (
        isinstance(priority, bool)
        or not isinstance(priority, int)
        or not MIN_PRIORITY <= priority <= MAX_PRIORITY
    ):
        raise DomainValidationError(
            f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}"
        )
    return priority


class Routine(BaseModel):
    """A time-activated task filter."""

    id: str = Field(default_factory=lambda: new_id("routine"))
    name: str
    icon: str = DEFAULT_ROUTINE_ICON
    color: str = DEFAULT_ROUTINE_COLOR
    priority: int = 5
    activation_expression: str = ""
    task_filter_expression: str = ""

    model_config = {"frozen": True}

    @classmethod
    def create(
        cls,
        name: str,
        priority: int,
        activation_expression: str = "",
        task_filter_expression: str = "",
        icon: str = DEFAULT_ROUTINE_ICON,
        color: str = DEFAULT_ROUTINE_COLOR,
    ) -> "Routine":
        return cls(
            name=non_empty(name, "Routine name cannot be empty"),
            priority=_check_priority(priority),
            activation_expression=activation_expression or "",
            task_filter_expression=task_filter_expression or "",
            icon=icon,
            color=color,
        )

    def rename(self, name: str) -> "Routine":
        return self.model_copy(update={"name": non_empty(name, "Routine name cannot be empty")})

    def with_priority(self, priority: int) -> "Routine":
        return self.model_copy(update={"priority": _check_priority(priority)})

    def with_icon(self, icon: str) -> "Routine":
        return self.model_copy(update={"icon": icon})

    def recolor(self, color: str) -> "Routine":
        return self.model_copy(update={"color": color})

    def with_activation(self, expression: str) -> "Routine":
        return self.model_copy(update={"activation_expression": expression or ""})

    def with_task_filter(self, expression: str) -> "Routine":
        return self.model_copy(update={"task_filter_expression": expression or ""})

    @property
    def has_activation(self) -> bool:
        return bool(self.activation_expression.strip())

    @property
    def has_task_filter(self) -> bool:
        return bool(self.task_filter_expression.strip())

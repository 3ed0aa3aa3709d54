"""Ports the domain depends on but does not implement.

Structural protocols: any object with matching methods satisfies them.
Reference adapters live in ``checkmate.infrastructure``.
"""

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel

from checkmate.domain.shared.result import Result

T = TypeVar("T")


class ValidationResult(BaseModel):
    """Outcome of validating an expression or recurrence rule."""

    valid: bool
    error: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def failed(cls, error: str) -> "ValidationResult":
        return cls(valid=False, error=error)


# A compiled expression evaluates a context to a bool and never raises.
CompiledExpression = Callable[[Mapping[str, Any]], bool]


class ExpressionEvaluator(Protocol):
    """Evaluates opaque boolean expressions over a flat context record."""

    def validate(self, expression: str) -> ValidationResult: ...

    def compile(self, expression: str) -> CompiledExpression:
        """Compile once for repeated evaluation; raises ValueError if invalid."""
        ...

    def evaluate(self, expression: str, context: Mapping[str, Any]) -> bool:
        """Evaluate; malformed input or a failing evaluation gives False."""
        ...


class RecurrenceCalculator(Protocol):
    """Expands opaque recurrence rules into concrete occurrence times."""

    def occurrences(self, rule: str, start: datetime, end: datetime) -> list[datetime]:
        """Occurrences within ``[start, end]`` inclusive."""
        ...

    def next_occurrence(self, rule: str, after: datetime) -> datetime | None: ...

    def validate(self, rule: str) -> ValidationResult: ...

    def describe(self, rule: str) -> str: ...


class Repository(Protocol[T]):
    """Aggregate persistence. ``save`` upserts by id; ``delete`` is idempotent."""

    def save(self, entity: T) -> Result[T, str]: ...

    def find_by_id(self, entity_id: str) -> Result[T, str]: ...

    def find_all(self) -> Result[list[T], str]: ...

    def delete(self, entity_id: str) -> Result[None, str]: ...

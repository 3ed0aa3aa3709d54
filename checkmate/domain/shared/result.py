"""Result type for operations that can fail with a descriptive message.

Application services never raise domain errors at their callers. They catch
them at the boundary and hand back either ``Ok(value)`` or ``Err(message)``,
so the command layer (CLI, RPC) decides how to present the failure.

Example usage:
    >>> def find_sprint(sprints: dict[str, str], sprint_id: str) -> Result[str, str]:
    ...     if sprint_id not in sprints:
    ...         return Err(f"Sprint not found: {sprint_id}")
    ...     return Ok(sprints[sprint_id])
    ...
    >>> result = find_sprint({"sprint_1": "This Week"}, "sprint_1")
    >>> if is_ok(result):
    ...     print(result.value)
    This Week
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A successful outcome carrying ``value``."""

    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """A failed outcome carrying ``error``."""

    error: E


# Union rather than | because TypeVar aliases must be subscriptable at runtime
Result = Union[Ok[T], Err[E]]  # noqa: UP007


def is_ok(result: Ok[T] | Err[E]) -> bool:
    """Return True if the result is Ok."""
    return isinstance(result, Ok)


def map_result(result: Ok[T] | Err[E], fn: Callable[[T], U]) -> Ok[U] | Err[E]:
    """Apply ``fn`` to an Ok value, passing an Err through untouched.

    Args:
        result: The result to transform.
        fn: Function applied to the Ok value.

    Returns:
        Ok with the transformed value, or the original Err.
    """
    if isinstance(result, Ok):
        return Ok(fn(result.value))
    return result


def unwrap_or(result: Ok[T] | Err[E], default: T) -> T:
    """Return the Ok value, or ``default`` for an Err."""
    if isinstance(result, Ok):
        return result.value
    return default


def collect(results: Iterable[Ok[T] | Err[E]]) -> Ok[list[T]] | Err[E]:
    """Turn a sequence of Results into a Result of a list.

    Stops at the first Err and returns it.
    """
    values: list[T] = []
    for result in results:
        if isinstance(result, Err):
            return result
        values.append(result.value)
    return Ok(values)

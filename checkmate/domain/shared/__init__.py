"""Shared domain building blocks.

- Result type for explicit error handling in services
- Domain error taxonomy raised by aggregates
- Base domain event

Example usage:
    >>> from checkmate.domain.shared import Err, Ok, is_ok
    >>>
    >>> def parse_priority(raw: str) -> Result[int, str]:
    ...     if not raw.isdigit():
    ...         return Err(f"Not a number: {raw}")
    ...     return Ok(int(raw))
"""

from checkmate.domain.shared.errors import (
    DomainError,
    DomainValidationError,
    InvalidStateError,
    NotFoundError,
)
from checkmate.domain.shared.events import DomainEvent
from checkmate.domain.shared.result import (
    Err,
    Ok,
    Result,
    collect,
    is_ok,
    map_result,
    unwrap_or,
)

__all__ = [
    # Result monad
    "Ok",
    "Err",
    "Result",
    "is_ok",
    "map_result",
    "unwrap_or",
    "collect",
    # Errors
    "DomainError",
    "DomainValidationError",
    "InvalidStateError",
    "NotFoundError",
    # Domain events
    "DomainEvent",
]

"""Storage infrastructure for Checkmate.

Persistence for domain aggregates, using Result monads for explicit error
handling.
"""

from checkmate.infrastructure.storage.json_storage import JsonStorage
from checkmate.infrastructure.storage.repositories import (
    JsonCollectionRepository,
    Repositories,
    RoutineRepository,
    SprintRepository,
    TagRepository,
    TaskRepository,
)

__all__ = [
    "JsonStorage",
    "JsonCollectionRepository",
    "TaskRepository",
    "TagRepository",
    "SprintRepository",
    "RoutineRepository",
    "Repositories",
]

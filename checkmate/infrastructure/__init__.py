"""Infrastructure layer for Checkmate.

Adapters for the domain ports:

    Storage:
        - JsonStorage: Low-level JSON file I/O
        - TaskRepository, TagRepository, SprintRepository, RoutineRepository
        - Repositories: the four repositories for one data directory

    Evaluation:
        - SimpleEvalExpressionEvaluator: routine expressions (simpleeval)
        - RRuleRecurrenceCalculator: recurrence rules (dateutil.rrule)
"""

from checkmate.infrastructure.expressions import SimpleEvalExpressionEvaluator
from checkmate.infrastructure.recurrence import RRuleRecurrenceCalculator
from checkmate.infrastructure.storage import (
    JsonStorage,
    Repositories,
    RoutineRepository,
    SprintRepository,
    TagRepository,
    TaskRepository,
)

__all__ = [
    # Storage
    "JsonStorage",
    "TaskRepository",
    "TagRepository",
    "SprintRepository",
    "RoutineRepository",
    "Repositories",
    # Evaluation
    "SimpleEvalExpressionEvaluator",
    "RRuleRecurrenceCalculator",
]

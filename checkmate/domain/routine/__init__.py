"""Routine domain - time-activated task filters.

Key Types:
    Routine - Name, priority and two opaque expressions

Functions:
    build_routine_context - Decompose a timestamp for activation expressions
    determine_active_routine - Highest-priority matching routine, or None
    filter_tasks_for_routine - Apply a routine's task filter
"""

from .activation import (
    DAY_NAMES,
    build_routine_context,
    build_task_context,
    determine_active_routine,
    filter_tasks_for_routine,
    matching_routines,
)
from .models import MAX_PRIORITY, MIN_PRIORITY, Routine

__all__ = [
    "Routine",
    "MIN_PRIORITY",
    "MAX_PRIORITY",
    "DAY_NAMES",
    "build_routine_context",
    "build_task_context",
    "determine_active_routine",
    "filter_tasks_for_routine",
    "matching_routines",
]

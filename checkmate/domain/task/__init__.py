"""Task domain - lifecycle, focus selection and recurrence.

All exports are pure (no I/O, no side effects).

Key Types:
    Task - The task aggregate
    SkipState - Temporary deprioritization
    Comment, Session - Owned by a task
    FocusQueue - Focus task plus up-next queue

Ordering Functions:
    is_visible_in_focus - Hidden-by-skip predicate
    sort_for_focus - Visible tasks in focus order
    get_focus_task / get_up_next / count_hidden
    build_focus_queue - All of the above at once

Spawning:
    spawn_due_instances - Materialize recurring instances for a range

Stats:
    daily_stats, weekly_stats, focus_quality_stats, current_streak
    weekly_comparison, canceled_stats, tag_performance
"""

from .events import (
    InstancesSpawned,
    SessionEnded,
    SessionStarted,
    TaskCanceled,
    TaskCompleted,
    TaskCreated,
    TaskMoved,
    TaskSkipped,
)
from .models import (
    MAX_MANUAL_SESSION,
    Comment,
    FocusLevel,
    Session,
    SessionStatus,
    SkipState,
    SkipType,
    Task,
    TaskStatus,
)
from .ordering import (
    FocusQueue,
    build_focus_queue,
    count_hidden,
    get_focus_task,
    get_up_next,
    is_visible_in_focus,
    sort_for_focus,
)
from .spawning import count_instances_by_parent, instance_time, spawn_due_instances
from .stats import (
    CanceledStats,
    DailyStats,
    FocusQualityStats,
    TagPerformance,
    Trend,
    WeeklyComparison,
    WeeklyStats,
    canceled_in_range,
    canceled_stats,
    completed_in_range,
    current_streak,
    daily_stats,
    focus_quality_stats,
    sessions_in_range,
    tag_performance,
    weekly_comparison,
    weekly_stats,
)

__all__ = [
    # Models
    "Task",
    "TaskStatus",
    "SkipState",
    "SkipType",
    "Comment",
    "Session",
    "SessionStatus",
    "FocusLevel",
    "MAX_MANUAL_SESSION",
    # Ordering
    "FocusQueue",
    "is_visible_in_focus",
    "sort_for_focus",
    "get_focus_task",
    "get_up_next",
    "count_hidden",
    "build_focus_queue",
    # Spawning
    "spawn_due_instances",
    "count_instances_by_parent",
    "instance_time",
    # Stats
    "DailyStats",
    "WeeklyStats",
    "FocusQualityStats",
    "completed_in_range",
    "sessions_in_range",
    "daily_stats",
    "weekly_stats",
    "focus_quality_stats",
    "current_streak",
    "WeeklyComparison",
    "Trend",
    "CanceledStats",
    "TagPerformance",
    "weekly_comparison",
    "canceled_in_range",
    "canceled_stats",
    "tag_performance",
    # Events
    "TaskCreated",
    "TaskCompleted",
    "TaskCanceled",
    "TaskSkipped",
    "TaskMoved",
    "SessionStarted",
    "SessionEnded",
    "InstancesSpawned",
]

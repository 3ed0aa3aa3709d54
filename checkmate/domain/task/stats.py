"""Productivity statistics.

Pure functions over task snapshots. Every function takes its reference time
explicitly; nothing reads the clock. Day boundaries use the timezone of the
datetimes passed in.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

from checkmate.domain.types import start_of_day

from .models import FocusLevel, Session, SessionStatus, Task, TaskStatus

if TYPE_CHECKING:
    from checkmate.domain.sprint.models import Tag

# Streaks longer than a year are not counted further
MAX_STREAK_DAYS = 365


class DailyStats(BaseModel):
    date: datetime
    tasks_completed: int = 0
    points_completed: int = 0
    focus_time_seconds: int = 0
    sessions_count: int = 0

    model_config = {"frozen": True}


class WeeklyStats(BaseModel):
    week_start: datetime
    tasks_completed: int = 0
    points_completed: int = 0
    focus_time_seconds: int = 0
    sessions_count: int = 0
    points_by_tag: dict[str, int]
    daily_activity: list[DailyStats]

    model_config = {"frozen": True}


class FocusQualityStats(BaseModel):
    total: int = 0
    focused: int = 0
    neutral: int = 0
    distracted: int = 0
    focused_percent: int = 0
    avg_duration_seconds: int = 0

    model_config = {"frozen": True}


def start_of_stats_week(moment: datetime) -> datetime:
    """Monday 00:00 of ``moment``'s week."""
    day = start_of_day(moment)
    return day - timedelta(days=day.weekday())


def completed_in_range(tasks: Iterable[Task], start: datetime, end: datetime) -> list[Task]:
    """Tasks completed within ``[start, end)``."""
    return [
        task
        for task in tasks
        if task.status == TaskStatus.COMPLETED
        and task.completed_at is not None
        and start <= task.completed_at < end
    ]


def sessions_in_range(tasks: Iterable[Task], start: datetime, end: datetime) -> list[Session]:
    """Completed sessions that ended within ``[start, end)``."""
    return [
        session
        for task in tasks
        for session in task.sessions
        if session.status == SessionStatus.COMPLETED
        and session.ended_at is not None
        and start <= session.ended_at < end
    ]


def daily_stats(tasks: list[Task], day: datetime) -> DailyStats:
    start = start_of_day(day)
    end = start + timedelta(days=1)
    completed = completed_in_range(tasks, start, end)
    sessions = sessions_in_range(tasks, start, end)
    return DailyStats(
        date=start,
        tasks_completed=len(completed),
        points_completed=sum(task.total_points for task in completed),
        focus_time_seconds=sum(s.duration_seconds for s in sessions),
        sessions_count=len(sessions),
    )


def weekly_stats(tasks: list[Task], moment: datetime) -> WeeklyStats:
    """Stats for the Monday-start week containing ``moment``."""
    start = start_of_stats_week(moment)
    end = start + timedelta(days=7)
    completed = completed_in_range(tasks, start, end)
    sessions = sessions_in_range(tasks, start, end)

    points_by_tag: Counter[str] = Counter()
    for task in completed:
        points_by_tag.update(task.tag_points.to_dict())

    return WeeklyStats(
        week_start=start,
        tasks_completed=len(completed),
        points_completed=sum(task.total_points for task in completed),
        focus_time_seconds=sum(s.duration_seconds for s in sessions),
        sessions_count=len(sessions),
        points_by_tag=dict(points_by_tag),
        daily_activity=[daily_stats(tasks, start + timedelta(days=i)) for i in range(7)],
    )


def focus_quality_stats(tasks: list[Task], start: datetime, end: datetime) -> FocusQualityStats:
    sessions = sessions_in_range(tasks, start, end)
    total = len(sessions)
    if total == 0:
        return FocusQualityStats()

    levels = Counter(s.focus_level for s in sessions)
    total_duration = sum(s.duration_seconds for s in sessions)
    return FocusQualityStats(
        total=total,
        focused=levels[FocusLevel.FOCUSED],
        neutral=levels[FocusLevel.NEUTRAL],
        distracted=levels[FocusLevel.DISTRACTED],
        focused_percent=round(levels[FocusLevel.FOCUSED] * 100 / total),
        avg_duration_seconds=round(total_duration / total),
    )


def current_streak(tasks: list[Task], now: datetime) -> int:
    """Consecutive days with at least one completion, ending today.

    A day with no completions yet today does not break the streak; counting
    then starts from yesterday.
    """
    day = start_of_day(now)
    if not completed_in_range(tasks, day, day + timedelta(days=1)):
        day -= timedelta(days=1)

    streak = 0
    while streak < MAX_STREAK_DAYS:
        if not completed_in_range(tasks, day, day + timedelta(days=1)):
            break
        streak += 1
        day -= timedelta(days=1)
    return streak


# =============================================================================
# Comparisons and Breakdowns
# =============================================================================


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    SAME = "same"


class WeeklyComparison(BaseModel):
    this_week_points: int = 0
    last_week_points: int = 0
    trend: Trend = Trend.SAME

    model_config = {"frozen": True}


class CanceledStats(BaseModel):
    canceled_today: int = 0
    canceled_points_today: int = 0
    canceled_this_week: int = 0
    canceled_points_this_week: int = 0

    model_config = {"frozen": True}


class TagPerformance(BaseModel):
    tag_id: str
    tag_name: str
    tag_color: str
    points_completed: int = 0
    points_total: int = 0
    percentage: int = 0

    model_config = {"frozen": True}


def weekly_comparison(tasks: list[Task], now: datetime) -> WeeklyComparison:
    """Points completed this week against the whole week before it."""
    this_week = start_of_stats_week(now)
    last_week = this_week - timedelta(days=7)
    next_week = this_week + timedelta(days=7)
    this_points = sum(t.total_points for t in completed_in_range(tasks, this_week, next_week))
    last_points = sum(t.total_points for t in completed_in_range(tasks, last_week, this_week))

    if this_points > last_points:
        trend = Trend.UP
    elif this_points < last_points:
        trend = Trend.DOWN
    else:
        trend = Trend.SAME
    return WeeklyComparison(this_week_points=this_points, last_week_points=last_points, trend=trend)


def canceled_in_range(tasks: Iterable[Task], start: datetime, end: datetime) -> list[Task]:
    """Tasks canceled within ``[start, end)``."""
    return [
        task
        for task in tasks
        if task.status == TaskStatus.CANCELED
        and task.canceled_at is not None
        and start <= task.canceled_at < end
    ]


def canceled_stats(tasks: list[Task], now: datetime) -> CanceledStats:
    today = start_of_day(now)
    week = start_of_stats_week(now)
    day_tasks = canceled_in_range(tasks, today, today + timedelta(days=1))
    week_tasks = canceled_in_range(tasks, week, week + timedelta(days=7))
    return CanceledStats(
        canceled_today=len(day_tasks),
        canceled_points_today=sum(t.total_points for t in day_tasks),
        canceled_this_week=len(week_tasks),
        canceled_points_this_week=sum(t.total_points for t in week_tasks),
    )


def tag_performance(
    tasks: Iterable[Task],
    tags: Iterable["Tag"],
    sprint_id: str | None = None,
) -> list[TagPerformance]:
    """Completed against allocated points per tag, in ``tags`` order.

    Canceled tasks are left out. With ``sprint_id``, only tasks in that
    sprint count.
    """
    counted = [
        task
        for task in tasks
        if task.status != TaskStatus.CANCELED
        and not task.is_recurring_template
        and (sprint_id is None or task.location.sprint_id == sprint_id)
    ]

    performances = []
    for tag in tags:
        total = completed = 0
        for task in counted:
            points = task.tag_points.get(tag.id)
            total += points
            if task.status == TaskStatus.COMPLETED:
                completed += points
        performances.append(
            TagPerformance(
                tag_id=tag.id,
                tag_name=tag.name,
                tag_color=tag.color,
                points_completed=completed,
                points_total=total,
                percentage=round(completed * 100 / total) if total else 0,
            )
        )
    return performances

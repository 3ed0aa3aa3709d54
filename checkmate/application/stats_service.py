"""Stats application service."""

from datetime import datetime, timedelta

from pydantic import BaseModel

from checkmate.application.sprint_service import list_tags
from checkmate.domain.shared import Err, Ok, Result
from checkmate.domain.task import (
    CanceledStats,
    FocusQualityStats,
    TagPerformance,
    WeeklyComparison,
    WeeklyStats,
    canceled_stats,
    current_streak,
    focus_quality_stats,
    tag_performance,
    weekly_comparison,
    weekly_stats,
)
from checkmate.domain.task.stats import start_of_stats_week
from checkmate.domain.types import utc_now
from checkmate.infrastructure.storage import Repositories


class StatsSummary(BaseModel):
    week: WeeklyStats
    focus_quality: FocusQualityStats
    streak: int
    comparison: WeeklyComparison
    canceled: CanceledStats


def get_stats(repos: Repositories, now: datetime | None = None) -> Result[StatsSummary, str]:
    """This week's stats, focus quality, the completion streak, the change
    from last week and what was canceled."""
    when = now or utc_now()
    tasks = repos.tasks.find_all()
    if isinstance(tasks, Err):
        return tasks

    week_start = start_of_stats_week(when)
    return Ok(
        StatsSummary(
            week=weekly_stats(tasks.value, when),
            focus_quality=focus_quality_stats(tasks.value, week_start, week_start + timedelta(days=7)),
            streak=current_streak(tasks.value, when),
            comparison=weekly_comparison(tasks.value, when),
            canceled=canceled_stats(tasks.value, when),
        )
    )


def get_tag_performance(
    repos: Repositories,
    sprint_id: str | None = None,
) -> Result[list[TagPerformance], str]:
    """Completed against allocated points per tag, optionally for one sprint."""
    if sprint_id is not None:
        sprint = repos.sprints.find_by_id(sprint_id)
        if isinstance(sprint, Err):
            return sprint
        tasks = repos.tasks.find_by_sprint(sprint_id)
    else:
        tasks = repos.tasks.find_all()
    if isinstance(tasks, Err):
        return tasks
    tags = list_tags(repos)
    if isinstance(tags, Err):
        return tags
    return Ok(tag_performance(tasks.value, tags.value, sprint_id))

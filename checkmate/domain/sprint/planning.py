"""Sprint planning helpers.

Pure functions for working out which weekly sprints should exist.
"""

from datetime import date, datetime, timedelta

from .models import SPRINT_LENGTH_DAYS, Sprint

# Current sprint plus this many weeks ahead are kept available
PLANNING_HORIZON_WEEKS = 2


def start_of_week(day: date | datetime) -> date:
    """The Sunday on or before ``day``."""
    if isinstance(day, datetime):
        day = day.date()
    return day - timedelta(days=(day.weekday() + 1) % 7)


def required_sprint_starts(today: date | datetime) -> list[date]:
    current = start_of_week(today)
    return [
        current + timedelta(days=SPRINT_LENGTH_DAYS * week)
        for week in range(PLANNING_HORIZON_WEEKS + 1)
    ]


def ensure_sprints_exist(existing: list[Sprint], today: date | datetime) -> list[Sprint]:
    """Create the current, next and next-next sprints that are missing.

    Returns only the new sprints; ``existing`` is not modified.
    """
    known = {sprint.start_date for sprint in existing}
    return [Sprint.create(start) for start in required_sprint_starts(today) if start not in known]


def find_current_sprint(sprints: list[Sprint], now: datetime) -> Sprint | None:
    for sprint in sprints:
        if sprint.is_active(now):
            return sprint
    return None


def sprint_label(index: int) -> str:
    """Label by position relative to the current sprint."""
    if index == 0:
        return "Current Sprint"
    if index == 1:
        return "Next Sprint"
    return f"Sprint +{index}"

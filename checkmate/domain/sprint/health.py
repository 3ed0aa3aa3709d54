"""Sprint health from burn rate.

Pure calculation, recomputed on demand and never stored: it depends on the
current time and the current placement of tasks.

For each tag:
    burn rate needed = assigned points / max(1, days remaining)
    sustainable rate = capacity / 7

Thresholds are inclusive and compared exactly using ``Fraction``, so a
burn rate of exactly 1.5x the sustainable rate is off track and exactly
1.2x is at risk.
"""

from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from fractions import Fraction

from pydantic import BaseModel

from checkmate.domain.task.models import Task

from .models import SPRINT_LENGTH_DAYS, Sprint, Tag

OFF_TRACK_FACTOR = Fraction(3, 2)
AT_RISK_FACTOR = Fraction(6, 5)


class HealthStatus(str, Enum):
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    OFF_TRACK = "off_track"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    HealthStatus.ON_TRACK: 0,
    HealthStatus.AT_RISK: 1,
    HealthStatus.OFF_TRACK: 2,
}


class TagHealth(BaseModel):
    tag_id: str
    tag_name: str
    assigned_points: int
    capacity: int
    burn_rate_needed: float
    sustainable_rate: float
    health: HealthStatus

    model_config = {"frozen": True}


class SprintHealthReport(BaseModel):
    sprint_id: str
    days_remaining: int
    overall: HealthStatus
    by_tag: list[TagHealth]

    model_config = {"frozen": True}

    @property
    def warnings(self) -> list[str]:
        """One line per tag that is not on track."""
        lines = []
        for tag in self.by_tag:
            if tag.health == HealthStatus.OFF_TRACK:
                lines.append(
                    f"{tag.tag_name}: {tag.assigned_points} points need "
                    f"{tag.burn_rate_needed:.1f}/day, well above the sustainable "
                    f"{tag.sustainable_rate:.1f}/day"
                )
            elif tag.health == HealthStatus.AT_RISK:
                lines.append(
                    f"{tag.tag_name}: {tag.assigned_points} points need "
                    f"{tag.burn_rate_needed:.1f}/day, above the sustainable "
                    f"{tag.sustainable_rate:.1f}/day"
                )
        return lines


def classify(assigned_points: int, burn_rate: Fraction, sustainable_rate: Fraction) -> HealthStatus:
    """Classify one tag; nothing assigned is always on track."""
    if assigned_points <= 0:
        return HealthStatus.ON_TRACK
    if burn_rate >= sustainable_rate * OFF_TRACK_FACTOR:
        return HealthStatus.OFF_TRACK
    if burn_rate >= sustainable_rate * AT_RISK_FACTOR:
        return HealthStatus.AT_RISK
    return HealthStatus.ON_TRACK


def assigned_points(sprint: Sprint, tag_id: str, tasks: Iterable[Task]) -> int:
    """Points for ``tag_id`` over active tasks located in ``sprint``."""
    return sum(
        task.tag_points.get(tag_id)
        for task in tasks
        if task.is_active and task.location.sprint_id == sprint.id
    )


def calculate_tag_health(
    sprint: Sprint,
    tag: Tag,
    tasks: list[Task],
    now: datetime,
) -> TagHealth:
    assigned = assigned_points(sprint, tag.id, tasks)
    capacity = sprint.capacity_for(tag.id, tag.default_capacity)
    days = max(1, sprint.days_remaining(now))

    burn_rate = Fraction(assigned, days)
    sustainable = Fraction(capacity, SPRINT_LENGTH_DAYS)

    return TagHealth(
        tag_id=tag.id,
        tag_name=tag.name,
        assigned_points=assigned,
        capacity=capacity,
        burn_rate_needed=float(burn_rate),
        sustainable_rate=float(sustainable),
        health=classify(assigned, burn_rate, sustainable),
    )


def worst_health(statuses: Iterable[HealthStatus]) -> HealthStatus:
    return max(statuses, key=lambda s: s.severity, default=HealthStatus.ON_TRACK)


def calculate_sprint_health(
    sprint: Sprint,
    tasks: list[Task],
    tags: list[Tag],
    now: datetime,
) -> SprintHealthReport:
    """Health per tag plus the worst of them as the overall status."""
    by_tag = [calculate_tag_health(sprint, tag, tasks, now) for tag in tags]
    return SprintHealthReport(
        sprint_id=sprint.id,
        days_remaining=sprint.days_remaining(now),
        overall=worst_health(report.health for report in by_tag),
        by_tag=by_tag,
    )

"""Sprint domain - weekly capacity windows, tags and health.

Key Types:
    Sprint - Sunday..Saturday window with capacity overrides
    Tag - Category with a default weekly capacity
    HealthStatus, TagHealth, SprintHealthReport - Burn-rate health

Functions:
    calculate_sprint_health - Per-tag and overall health
    ensure_sprints_exist - Missing current/next/next-next sprints
    start_of_week - Sunday on or before a date
"""

from .health import (
    HealthStatus,
    SprintHealthReport,
    TagHealth,
    calculate_sprint_health,
    calculate_tag_health,
    classify,
    worst_health,
)
from .models import (
    SPRINT_LENGTH_DAYS,
    UNTAGGED_CAPACITY,
    UNTAGGED_ID,
    Sprint,
    Tag,
)
from .planning import (
    ensure_sprints_exist,
    find_current_sprint,
    required_sprint_starts,
    sprint_label,
    start_of_week,
)

__all__ = [
    # Models
    "Sprint",
    "Tag",
    "SPRINT_LENGTH_DAYS",
    "UNTAGGED_ID",
    "UNTAGGED_CAPACITY",
    # Health
    "HealthStatus",
    "TagHealth",
    "SprintHealthReport",
    "classify",
    "calculate_tag_health",
    "calculate_sprint_health",
    "worst_health",
    # Planning
    "start_of_week",
    "required_sprint_starts",
    "ensure_sprints_exist",
    "find_current_sprint",
    "sprint_label",
]

"""Recurrence calculator backed by dateutil's RFC 5545 ``rrule``.

Rules are accepted bare (``FREQ=WEEKLY;BYDAY=MO,WE``) or with the
``RRULE:`` prefix. Occurrences are anchored at the start of the requested
range, so a template's rule describes a pattern, not a fixed first date.
"""

import logging
from datetime import datetime

from dateutil.rrule import rrule, rrulestr

from checkmate.domain.ports import ValidationResult

logger = logging.getLogger(__name__)

RRULE_PREFIX = "RRULE:"

_FREQ_UNITS = {
    "YEARLY": "year",
    "MONTHLY": "month",
    "WEEKLY": "week",
    "DAILY": "day",
    "HOURLY": "hour",
    "MINUTELY": "minute",
    "SECONDLY": "second",
}
_FREQ_ADVERBS = {"YEARLY": "Yearly", "MONTHLY": "Monthly", "WEEKLY": "Weekly", "DAILY": "Daily"}
_DAY_NAMES = {
    "MO": "Mon",
    "TU": "Tue",
    "WE": "Wed",
    "TH": "Thu",
    "FR": "Fri",
    "SA": "Sat",
    "SU": "Sun",
}


def normalize_rule(rule: str) -> str:
    """Strip whitespace and any ``RRULE:`` prefix."""
    text = (rule or "").strip()
    if text.upper().startswith(RRULE_PREFIX):
        text = text[len(RRULE_PREFIX):]
    return text


def _rule_parts(rule: str) -> dict[str, str]:
    parts = {}
    for chunk in normalize_rule(rule).split(";"):
        key, sep, value = chunk.partition("=")
        if sep:
            parts[key.strip().upper()] = value.strip().upper()
    return parts


class RRuleRecurrenceCalculator:
    """RecurrenceCalculator implemented with ``dateutil.rrule``."""

    def _build(self, rule: str, dtstart: datetime) -> rrule:
        text = normalize_rule(rule)
        if not text:
            raise ValueError("Recurrence rule cannot be empty")
        parsed = rrulestr(text, dtstart=dtstart)
        if not isinstance(parsed, rrule):
            raise ValueError("Only a single RRULE is supported")
        return parsed

    def validate(self, rule: str) -> ValidationResult:
        try:
            self._build(rule, datetime(2000, 1, 2))
        except (ValueError, TypeError) as e:
            return ValidationResult.failed(str(e) or "Invalid recurrence rule")
        return ValidationResult.ok()

    def occurrences(self, rule: str, start: datetime, end: datetime) -> list[datetime]:
        """Occurrences in ``[start, end]``; an invalid rule yields none."""
        if start > end:
            return []
        try:
            return list(self._build(rule, start).between(start, end, inc=True))
        except (ValueError, TypeError) as e:
            logger.warning("Cannot expand recurrence rule %r: %s", rule, e)
            return []

    def next_occurrence(self, rule: str, after: datetime) -> datetime | None:
        """First occurrence strictly after ``after``."""
        try:
            return self._build(rule, after).after(after, inc=False)
        except (ValueError, TypeError) as e:
            logger.warning("Cannot expand recurrence rule %r: %s", rule, e)
            return None

    def describe(self, rule: str) -> str:
        """Short English description such as ``Every 2 weeks on Mon, Wed``."""
        if not self.validate(rule).valid:
            return "Invalid recurrence rule"

        parts = _rule_parts(rule)
        freq = parts.get("FREQ", "")
        interval = int(parts.get("INTERVAL", "1") or 1)

        if interval == 1 and freq in _FREQ_ADVERBS:
            text = _FREQ_ADVERBS[freq]
        else:
            unit = _FREQ_UNITS.get(freq, "period")
            text = f"Every {interval} {unit}s" if interval != 1 else f"Every {unit}"

        if "BYDAY" in parts:
            days = [_DAY_NAMES.get(d[-2:], d) for d in parts["BYDAY"].split(",") if d]
            text += " on " + ", ".join(days)
        if "COUNT" in parts:
            text += f", {parts['COUNT']} times"
        if "UNTIL" in parts:
            text += f", until {parts['UNTIL'][:8]}"
        return text

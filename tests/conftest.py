"""
Pytest configuration and fixtures for Checkmate tests.
"""

from datetime import UTC, date, datetime, timedelta

import pytest

from checkmate.domain.ports import ValidationResult
from checkmate.domain.sprint import Sprint
from checkmate.infrastructure import Repositories, SimpleEvalExpressionEvaluator

# Sunday; the sprint containing it runs Mar 1 - Mar 7 2026
SPRINT_START = date(2026, 3, 1)
NOW = datetime(2026, 3, 3, 10, 0, tzinfo=UTC)


class FakeRecurrence:
    """Returns a fixed number of occurrences for every rule in every range."""

    def __init__(self, count: int = 3, invalid: tuple[str, ...] = ()):
        self.count = count
        self.invalid = invalid
        self.calls: list[tuple[str, datetime, datetime]] = []

    def occurrences(self, rule, start, end):
        self.calls.append((rule, start, end))
        return [start + timedelta(days=i) for i in range(self.count)]

    def next_occurrence(self, rule, after):
        return after + timedelta(days=1)

    def validate(self, rule):
        if rule in self.invalid:
            return ValidationResult.failed("bad rule")
        return ValidationResult.ok()

    def describe(self, rule):
        return rule


class StaticEvaluator:
    """Evaluator whose answers are looked up by expression text.

    ``"raise"`` raises from evaluate and compile; anything unknown is False.
    """

    def __init__(self, answers: dict[str, bool] | None = None):
        self.answers = answers or {}

    def validate(self, expression):
        if expression == "raise":
            return ValidationResult.failed("boom")
        return ValidationResult.ok()

    def compile(self, expression):
        if expression == "raise":
            raise ValueError("boom")
        return lambda context: self.answers.get(expression, False)

    def evaluate(self, expression, context):
        if expression == "raise":
            raise RuntimeError("boom")
        return self.answers.get(expression, False)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def repos():
    """Fresh in-memory repositories."""
    return Repositories.in_memory()


@pytest.fixture
def sprint(repos):
    """The Mar 1 - Mar 7 2026 sprint, saved."""
    created = Sprint.create(SPRINT_START)
    repos.sprints.save(created)
    return created


@pytest.fixture
def evaluator():
    return SimpleEvalExpressionEvaluator()


@pytest.fixture
def recurrence():
    return FakeRecurrence()

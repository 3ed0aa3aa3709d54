"""
Tests for the simpleeval-backed expression evaluator.
"""

import pytest

from checkmate.infrastructure import SimpleEvalExpressionEvaluator


@pytest.fixture
def evaluator():
    return SimpleEvalExpressionEvaluator()


class TestValidate:
    @pytest.mark.parametrize(
        "expression",
        [
            "is_weekday and hour >= 9",
            'day_of_week in ("sat", "sun")',
            'has_tag("Work") or points > 3',
            "true",
        ],
    )
    def test_valid(self, evaluator, expression):
        assert evaluator.validate(expression).valid

    @pytest.mark.parametrize("expression", ["", "   ", "hour >=", "(("])
    def test_invalid(self, evaluator, expression):
        result = evaluator.validate(expression)
        assert not result.valid
        assert result.error


class TestEvaluate:
    def test_context_names(self, evaluator):
        context = {"hour": 10, "is_weekday": True}
        assert evaluator.evaluate("is_weekday and hour >= 9", context)
        assert not evaluator.evaluate("hour < 9", context)

    def test_constants(self, evaluator):
        assert evaluator.evaluate("true", {})
        assert not evaluator.evaluate("false", {})

    def test_tuple_membership(self, evaluator):
        assert evaluator.evaluate('day_of_week in ("sat", "sun")', {"day_of_week": "sun"})

    def test_tag_helpers(self, evaluator):
        context = {"tags": ["Work", "Admin"]}
        assert evaluator.evaluate('has_tag("Work")', context)
        assert not evaluator.evaluate('has_tag("Home")', context)
        assert evaluator.evaluate('has_any_tag("Home", "Admin")', context)
        assert not evaluator.evaluate('has_all_tags("Work", "Home")', context)

    def test_tag_helpers_without_tags(self, evaluator):
        assert not evaluator.evaluate('has_tag("Work")', {})

    def test_unknown_name_is_false(self, evaluator):
        assert evaluator.evaluate("missing > 1", {}) is False

    def test_empty_is_false(self, evaluator):
        assert evaluator.evaluate(" ", {}) is False

    @pytest.mark.parametrize("expression", ["hour >=", "(hour", "hour and"])
    def test_malformed_is_false(self, evaluator, expression):
        """
        Scenario: evaluate is handed an expression that does not parse
        Expected: False, never an exception
        """
        assert evaluator.evaluate(expression, {"hour": 3}) is False

    def test_failing_operation_is_false(self, evaluator):
        assert evaluator.evaluate("points / divisor > 1", {"points": 2, "divisor": 0}) is False
        assert evaluator.evaluate("tags[5] == 1", {"tags": []}) is False


class TestCompile:
    def test_reusable(self, evaluator):
        predicate = evaluator.compile("points <= 3")
        assert predicate({"points": 2})
        assert not predicate({"points": 5})

    def test_runtime_errors_are_false(self, evaluator):
        predicate = evaluator.compile("points / divisor > 1")
        assert not predicate({"points": 2, "divisor": 0})
        assert not predicate({})

    def test_invalid_raises_value_error(self, evaluator):
        with pytest.raises(ValueError):
            evaluator.compile("hour >=")

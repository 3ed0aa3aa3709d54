"""Expression evaluator backed by simpleeval.

Routine activation and task filter expressions are small Python-style
boolean expressions evaluated against a flat context, for example::

    is_weekday and time >= 540 and time < 1020
    has_tag("Work") and points <= 5
    day_of_week in ("sat", "sun")

Besides the context names, expressions can use ``true``/``false`` and the
tag helpers ``has_tag``, ``has_any_tag`` and ``has_all_tags``, which look at
the ``tags`` list in the context.
"""

import ast
import logging
from collections.abc import Mapping
from typing import Any

from simpleeval import DEFAULT_FUNCTIONS, EvalWithCompoundTypes, InvalidExpression

from checkmate.domain.ports import CompiledExpression, ValidationResult

logger = logging.getLogger(__name__)

CONSTANT_NAMES = {"true": True, "false": False}

# Raised while evaluating an expression that parsed
_EVALUATION_ERRORS = (
    InvalidExpression,
    ArithmeticError,
    LookupError,
    AttributeError,
    TypeError,
    ValueError,
)


def _tag_functions(context: Mapping[str, Any]) -> dict[str, Any]:
    tags = context.get("tags")
    names = {str(t) for t in tags} if isinstance(tags, (list, tuple, set)) else set()

    def has_tag(name: Any) -> bool:
        return str(name) in names

    def has_any_tag(*wanted: Any) -> bool:
        return any(str(n) in names for n in wanted)

    def has_all_tags(*wanted: Any) -> bool:
        return all(str(n) in names for n in wanted)

    return {"has_tag": has_tag, "has_any_tag": has_any_tag, "has_all_tags": has_all_tags}


def _evaluator(context: Mapping[str, Any]) -> EvalWithCompoundTypes:
    return EvalWithCompoundTypes(
        names={**CONSTANT_NAMES, **context},
        functions={**DEFAULT_FUNCTIONS, **_tag_functions(context)},
    )


def _run(source: str, parsed: ast.AST, context: Mapping[str, Any]) -> bool:
    try:
        return bool(_evaluator(context).eval(source, previously_parsed=parsed))
    except _EVALUATION_ERRORS as e:
        logger.debug("Expression %r failed: %s", source, e)
        return False


class SimpleEvalExpressionEvaluator:
    """ExpressionEvaluator implemented with ``simpleeval``.

    ``compile`` raises ValueError for an expression that does not parse.
    Evaluation never raises: ``evaluate`` and the compiled form both report
    False for a malformed expression, an unknown name or a failing operation.
    """

    def _parse(self, expression: str) -> ast.AST:
        if not expression or not expression.strip():
            raise ValueError("Expression cannot be empty")
        try:
            return EvalWithCompoundTypes().parse(expression.strip())
        except SyntaxError as e:
            raise ValueError(f"Invalid expression: {e.msg}") from e
        except InvalidExpression as e:
            raise ValueError(f"Invalid expression: {e}") from e

    def validate(self, expression: str) -> ValidationResult:
        try:
            self._parse(expression)
        except ValueError as e:
            return ValidationResult.failed(str(e))
        return ValidationResult.ok()

    def compile(self, expression: str) -> CompiledExpression:
        parsed = self._parse(expression)
        source = expression.strip()

        def evaluate(context: Mapping[str, Any]) -> bool:
            return _run(source, parsed, context)

        return evaluate

    def evaluate(self, expression: str, context: Mapping[str, Any]) -> bool:
        try:
            parsed = self._parse(expression)
        except ValueError as e:
            logger.debug("Expression %r rejected: %s", expression, e)
            return False
        return _run(expression.strip(), parsed, context)

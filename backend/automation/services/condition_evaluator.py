"""Boolean condition evaluation for condition nodes and trigger filters.

A condition is one or more clauses joined by ``&&``/``and`` and
``||``/``or`` (``&&`` binds tighter; there are no parentheses). Each clause
is either a comparison ``<left> <operator> <right>`` or a single operand
tested for truthiness. Operands are template-resolved after the operator
has been located, so placeholder values can never inject an operator.

Examples:
    {{trigger.status}} == active
    {{vars.retryCount}} < 3 && {{trigger.item.name}} startsWith "ACME"
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum

from automation.services.template_resolver import (
    PLACEHOLDER_PATTERN,
    RuntimeContext,
    resolve_template,
)

logger = logging.getLogger(__name__)


class ConditionOperator(str, Enum):
    """Comparison operators available in conditions."""

    EQUALS = "=="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    LESS_THAN = "<"
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN_OR_EQUAL = "<="
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"


# Symbolic operators longest first so ">=" is never read as ">"
_OPERATOR_PATTERN = re.compile(
    r"(>=|<=|==|!=|>|<)|\s(contains|startsWith|endsWith)\s"
)
_OR_PATTERN = re.compile(r"\|\||\s+or\s+")
_AND_PATTERN = re.compile(r"&&|\s+and\s+")
_QUOTED_PATTERN = re.compile(r"\"[^\"]*\"|'[^']*'")

_FALSY = {"", "false", "0", "null", "undefined", "none"}

_MASK = "\x00"


@dataclass
class ConditionResult:
    """Outcome of evaluating a condition."""

    matched: bool
    unresolved: list[str] = field(default_factory=list)


def _mask_literals(text: str) -> str:
    """Blank out placeholders and quoted strings, keeping offsets intact."""

    def _blank(match: re.Match[str]) -> str:
        return _MASK * len(match.group(0))

    masked = PLACEHOLDER_PATTERN.sub(_blank, text)
    return _QUOTED_PATTERN.sub(_blank, masked)


def _split(text: str, masked: str, pattern: re.Pattern[str]) -> list[tuple[str, str]]:
    """Split ``text`` wherever ``pattern`` matches its masked twin."""
    parts: list[tuple[str, str]] = []
    start = 0
    for match in pattern.finditer(masked):
        parts.append((text[start : match.start()], masked[start : match.start()]))
        start = match.end()
    parts.append((text[start:], masked[start:]))
    return parts


def _unquote(operand: str) -> str:
    operand = operand.strip()
    if len(operand) >= 2 and operand[0] == operand[-1] and operand[0] in ("'", '"'):
        return operand[1:-1]
    return operand


def _to_number(value: str) -> float | None:
    try:
        number = float(value)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


class ConditionEvaluator:
    """Evaluates condition expressions against a runtime context.

    Evaluation never raises: unresolved placeholders render empty and are
    reported on the result, and comparisons between incomparable values
    are simply false.
    """

    def __init__(self, context: RuntimeContext) -> None:
        self.context = context
        self._unresolved: list[str] = []

    def evaluate(self, expression: str | None) -> ConditionResult:
        """Evaluate ``expression``. An empty expression never matches."""
        self._unresolved = []
        if not expression or not expression.strip():
            return ConditionResult(matched=False)

        masked = _mask_literals(expression)
        matched = any(
            all(
                self._evaluate_clause(clause, clause_mask)
                for clause, clause_mask in _split(group, group_mask, _AND_PATTERN)
            )
            for group, group_mask in _split(expression, masked, _OR_PATTERN)
        )
        return ConditionResult(matched=matched, unresolved=list(self._unresolved))

    def _evaluate_clause(self, clause: str, masked: str) -> bool:
        """Evaluate a single comparison or truthiness clause."""
        match = _OPERATOR_PATTERN.search(masked)
        if match is None:
            value = self._resolve(clause)
            return value.strip().lower() not in _FALSY

        if match.group(1):
            operator = ConditionOperator(match.group(1))
            left_end, right_start = match.start(1), match.end(1)
        else:
            operator = ConditionOperator(match.group(2))
            left_end, right_start = match.start(2), match.end(2)

        left = self._resolve(clause[:left_end])
        right = self._resolve(clause[right_start:])
        return self._compare_values(left, operator, right)

    def _resolve(self, operand: str) -> str:
        result = resolve_template(_unquote(operand), self.context)
        self._unresolved.extend(result.unresolved)
        return result.text.strip()

    def _compare_values(self, left: str, operator: ConditionOperator, right: str) -> bool:
        """Compare two resolved operands using the given operator."""
        # String operations
        if operator == ConditionOperator.CONTAINS:
            return right.lower() in left.lower()
        elif operator == ConditionOperator.STARTS_WITH:
            return left.lower().startswith(right.lower())
        elif operator == ConditionOperator.ENDS_WITH:
            return left.lower().endswith(right.lower())

        # Numeric when both sides are numbers, otherwise string comparison
        left_number, right_number = _to_number(left), _to_number(right)
        if left_number is not None and right_number is not None:
            a: float | str = left_number
            b: float | str = right_number
        else:
            a, b = left, right

        if operator == ConditionOperator.EQUALS:
            return a == b
        elif operator == ConditionOperator.NOT_EQUALS:
            return a != b
        elif operator == ConditionOperator.GREATER_THAN:
            return a > b  # type: ignore[operator]
        elif operator == ConditionOperator.GREATER_THAN_OR_EQUAL:
            return a >= b  # type: ignore[operator]
        elif operator == ConditionOperator.LESS_THAN:
            return a < b  # type: ignore[operator]
        elif operator == ConditionOperator.LESS_THAN_OR_EQUAL:
            return a <= b  # type: ignore[operator]

        logger.warning(f"Unhandled condition operator: {operator}")
        return False


def evaluate_condition(expression: str | None, context: RuntimeContext) -> ConditionResult:
    """Evaluate ``expression`` against ``context``."""
    return ConditionEvaluator(context).evaluate(expression)

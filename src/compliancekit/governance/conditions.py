"""
Condition Evaluator

Resolves a dot-notated field against an arbitrary record and applies a
typed comparison. Evaluation is total: a missing field or an operand of the
wrong kind produces a boolean, never an exception.
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any

from .models import ConditionOperator, RuleCondition


class _Missing:
    """Sentinel for a field that could not be resolved."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def resolve_field(record: Any, field: str) -> Any:
    """Resolve a dot-notated path against a record.

    Mappings are walked by key and sequences by decimal index. Returns
    ``MISSING`` as soon as a step hits ``None``, an absent key, an
    out-of-range index or a scalar.
    """
    current: Any = record
    for part in field.split("."):
        if current is None or current is MISSING:
            return MISSING
        if isinstance(current, Mapping):
            current = current.get(part, MISSING)
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            # Canonical ASCII indexes only: "01" and non-ASCII digits are absent.
            if not (part.isascii() and part.isdigit()) or (len(part) > 1 and part[0] == "0"):
                return MISSING
            index = int(part)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equals(actual: Any, expected: Any) -> bool:
    """Kind-aware equality: ``True`` never equals ``1`` and ``"1"`` never equals ``1``."""
    if actual is MISSING or expected is MISSING:
        return False
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual is expected
    if _is_number(actual) or _is_number(expected):
        return _is_number(actual) and _is_number(expected) and actual == expected
    if isinstance(actual, str) or isinstance(expected, str):
        return isinstance(actual, str) and isinstance(expected, str) and actual == expected
    if actual is None or expected is None:
        return actual is None and expected is None
    if isinstance(actual, re.Pattern) or isinstance(expected, re.Pattern):
        return (
            isinstance(actual, re.Pattern)
            and isinstance(expected, re.Pattern)
            and actual.pattern == expected.pattern
            and actual.flags == expected.flags
        )
    if isinstance(actual, Mapping) and isinstance(expected, Mapping):
        if actual.keys() != expected.keys():
            return False
        return all(strict_equals(actual[k], expected[k]) for k in actual)
    if isinstance(actual, Sequence) and isinstance(expected, Sequence):
        if len(actual) != len(expected):
            return False
        return all(strict_equals(a, e) for a, e in zip(actual, expected))
    return False


def evaluate_condition(condition: RuleCondition, record: Any) -> bool:
    """Evaluate a single condition against a record."""
    actual = resolve_field(record, condition.field)
    expected = condition.value
    op = condition.operator

    if op == ConditionOperator.EQUALS:
        return strict_equals(actual, expected)
    elif op == ConditionOperator.NOT_EQUALS:
        return not strict_equals(actual, expected)
    elif op == ConditionOperator.CONTAINS:
        if isinstance(actual, str) and isinstance(expected, str):
            return expected in actual
        return False
    elif op == ConditionOperator.NOT_CONTAINS:
        # Vacuous pass when either side is not a string.
        if isinstance(actual, str) and isinstance(expected, str):
            return expected not in actual
        return True
    elif op == ConditionOperator.GREATER_THAN:
        if _is_number(actual) and _is_number(expected):
            return actual > expected
        return False
    elif op == ConditionOperator.LESS_THAN:
        if _is_number(actual) and _is_number(expected):
            return actual < expected
        return False
    elif op == ConditionOperator.MATCHES:
        if (
            isinstance(actual, str)
            and isinstance(expected, re.Pattern)
            and isinstance(expected.pattern, str)
        ):
            return expected.search(actual) is not None
        return False
    return False

"""Field lookup, condition evaluation and placeholder rendering over trigger data."""

import re
from typing import Any

from flowline.models.graph import ConditionConfig, ConditionOperator

_PLACEHOLDER = re.compile(r"\{\{\s*([\w.-]+)\s*\}\}")
_MISSING = object()


def resolve_field(data: dict[str, Any], path: str) -> Any:
    """Look up a dotted path such as ``contact.email``. Missing paths give None."""
    current: Any = data
    for part in path.split("."):
        if isinstance(current, dict):
            current = current.get(part, _MISSING)
        elif isinstance(current, list) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else _MISSING
        else:
            current = _MISSING
        if current is _MISSING:
            return None
    return current


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple, set)):
        return len(value) == 0
    return False


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _equals(actual: Any, expected: str) -> bool:
    left, right = _as_number(actual), _as_number(expected)
    if left is not None and right is not None and left == right:
        return True
    return as_text(actual) == expected


def _contains(actual: Any, expected: str) -> bool:
    if isinstance(actual, (list, tuple, set)):
        return expected in {as_text(item) for item in actual}
    return expected in as_text(actual)


def evaluate_condition(config: ConditionConfig, data: dict[str, Any]) -> bool:
    """Evaluate a Condition node's config against trigger data.

    Equality compares numerically when both sides are numbers and as text
    otherwise. Ordering operators compare numerically; a non-numeric side
    makes them false.
    """
    actual = resolve_field(data, config.field)
    expected = config.value
    operator = config.operator

    if operator == ConditionOperator.EQUALS:
        return _equals(actual, expected)
    if operator == ConditionOperator.NOT_EQUALS:
        return not _equals(actual, expected)
    if operator == ConditionOperator.CONTAINS:
        return _contains(actual, expected)
    if operator == ConditionOperator.NOT_CONTAINS:
        return not _contains(actual, expected)
    if operator == ConditionOperator.IS_EMPTY:
        return _is_empty(actual)
    if operator == ConditionOperator.IS_NOT_EMPTY:
        return not _is_empty(actual)

    left, right = _as_number(actual), _as_number(expected)
    if left is None or right is None:
        return False
    if operator == ConditionOperator.GREATER_THAN:
        return left > right
    if operator == ConditionOperator.LESS_THAN:
        return left < right

    raise ValueError(f"Unsupported operator: {operator}")


def render_template(template: str, data: dict[str, Any]) -> str:
    """Replace ``{{path}}`` placeholders with values from ``data``."""
    return _PLACEHOLDER.sub(lambda m: as_text(resolve_field(data, m.group(1))), template)

"""Answer value helpers shared by submission, export and notification code."""

from typing import Any

MULTI_VALUE_SEPARATOR = ", "


def is_answer_missing(value: Any) -> bool:
    """True for absent, null, blank strings and empty multi-value answers."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def to_storable(value: Any) -> Any:
    """Convert a multi-value answer into a JSON list.

    Sets have no order, so they are stored sorted.
    """
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, tuple):
        return list(value)
    return value


def as_value_list(value: Any) -> list[Any]:
    """Current values of a multi-choice answer, whatever shape it was set with."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(to_storable(value))
    return [value]


def format_answer(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return MULTI_VALUE_SEPARATOR.join(str(v) for v in to_storable(value))
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)

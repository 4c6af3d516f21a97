# reportable/filters/models.py
"""
Filter value types.

A ``Filter`` is a single immutable predicate (column, comparator, operand) that
serializes to the flat wire form ``{"column", "operator", "value"}``.
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from reportable.core.exceptions import DecodeError, InvalidFilterError


class FilterComparator(str, enum.Enum):
    """Comparators supported by filters. The value is the wire token."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "gt"
    GREATER_THAN_OR_EQUAL = "gte"
    LESS_THAN = "lt"
    LESS_THAN_OR_EQUAL = "lte"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IN = "in"
    NOT_IN = "not_in"
    BETWEEN = "between"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"

    @classmethod
    def from_token(cls, token: Any) -> "FilterComparator":
        """Resolve a wire token, accepting the older symbolic spellings."""
        if isinstance(token, cls):
            return token
        if not isinstance(token, str):
            raise DecodeError(f"Filter operator must be a string, got {type(token).__name__}")
        normalized = token.strip()
        comparator = _LEGACY_TOKENS.get(normalized)
        if comparator is not None:
            return comparator
        try:
            return cls(normalized.lower())
        except ValueError:
            raise DecodeError(f"Unknown filter operator: {token!r}") from None

    def takes_value(self) -> bool:
        return self not in (FilterComparator.IS_NULL, FilterComparator.IS_NOT_NULL)

    def takes_list(self) -> bool:
        return self in (FilterComparator.IN, FilterComparator.NOT_IN)

    def takes_pattern(self) -> bool:
        return self in (
            FilterComparator.CONTAINS,
            FilterComparator.NOT_CONTAINS,
            FilterComparator.STARTS_WITH,
            FilterComparator.ENDS_WITH,
        )


_LEGACY_TOKENS = {
    "=": FilterComparator.EQUALS,
    "!=": FilterComparator.NOT_EQUALS,
    "<>": FilterComparator.NOT_EQUALS,
    ">": FilterComparator.GREATER_THAN,
    ">=": FilterComparator.GREATER_THAN_OR_EQUAL,
    "<": FilterComparator.LESS_THAN,
    "<=": FilterComparator.LESS_THAN_OR_EQUAL,
    "does_not_contain": FilterComparator.NOT_CONTAINS,
}


def _normalize_value(column: str, comparator: FilterComparator, value: Any) -> Any:
    if not comparator.takes_value():
        return None

    if value is None:
        raise InvalidFilterError(f"Filter '{column} {comparator.value}' requires a value")

    if comparator.takes_list():
        if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple, set, frozenset)):
            raise InvalidFilterError(f"Filter '{column} {comparator.value}' requires a list of values")
        if not value:
            raise InvalidFilterError(f"Filter '{column} {comparator.value}' requires at least one value")
        return tuple(value)

    if comparator == FilterComparator.BETWEEN:
        if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)) or len(value) != 2:
            raise InvalidFilterError(f"Filter '{column} between' requires exactly two values (min, max)")
        return tuple(value)

    if isinstance(value, (list, tuple, set, frozenset, dict)):
        raise InvalidFilterError(f"Filter '{column} {comparator.value}' requires a single value")

    return value


@dataclass(frozen=True)
class Filter:
    """A single column predicate. List operands are stored as tuples."""

    column: str
    comparator: FilterComparator
    value: Any = None

    def __post_init__(self):
        if not isinstance(self.column, str) or not self.column.strip():
            raise InvalidFilterError("Filter column must be a non-empty string")
        comparator = FilterComparator.from_token(self.comparator)
        object.__setattr__(self, "comparator", comparator)
        object.__setattr__(self, "value", _normalize_value(self.column, comparator, self.value))

    # ===== NAMED CONSTRUCTORS =====

    @classmethod
    def make(cls, column: str, comparator: FilterComparator, value: Any = None) -> "Filter":
        return cls(column, comparator, value)

    @classmethod
    def equals(cls, column: str, value: Any) -> "Filter":
        return cls(column, FilterComparator.EQUALS, value)

    @classmethod
    def not_equals(cls, column: str, value: Any) -> "Filter":
        return cls(column, FilterComparator.NOT_EQUALS, value)

    @classmethod
    def greater_than(cls, column: str, value: Any) -> "Filter":
        return cls(column, FilterComparator.GREATER_THAN, value)

    @classmethod
    def greater_than_or_equal(cls, column: str, value: Any) -> "Filter":
        return cls(column, FilterComparator.GREATER_THAN_OR_EQUAL, value)

    @classmethod
    def less_than(cls, column: str, value: Any) -> "Filter":
        return cls(column, FilterComparator.LESS_THAN, value)

    @classmethod
    def less_than_or_equal(cls, column: str, value: Any) -> "Filter":
        return cls(column, FilterComparator.LESS_THAN_OR_EQUAL, value)

    @classmethod
    def contains(cls, column: str, value: str) -> "Filter":
        return cls(column, FilterComparator.CONTAINS, value)

    @classmethod
    def does_not_contain(cls, column: str, value: str) -> "Filter":
        return cls(column, FilterComparator.NOT_CONTAINS, value)

    @classmethod
    def starts_with(cls, column: str, value: str) -> "Filter":
        return cls(column, FilterComparator.STARTS_WITH, value)

    @classmethod
    def ends_with(cls, column: str, value: str) -> "Filter":
        return cls(column, FilterComparator.ENDS_WITH, value)

    @classmethod
    def in_(cls, column: str, values) -> "Filter":
        return cls(column, FilterComparator.IN, values)

    @classmethod
    def not_in(cls, column: str, values) -> "Filter":
        return cls(column, FilterComparator.NOT_IN, values)

    @classmethod
    def between(cls, column: str, minimum: Any, maximum: Any) -> "Filter":
        return cls(column, FilterComparator.BETWEEN, (minimum, maximum))

    @classmethod
    def is_null(cls, column: str) -> "Filter":
        return cls(column, FilterComparator.IS_NULL)

    @classmethod
    def is_not_null(cls, column: str) -> "Filter":
        return cls(column, FilterComparator.IS_NOT_NULL)

    # ===== SERIALIZATION =====

    def to_dict(self) -> Dict[str, Any]:
        """Flat wire form. Tuple operands are emitted as lists."""
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {
            "column": self.column,
            "operator": self.comparator.value,
            "value": value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Filter":
        """Decode the wire form, raising ``DecodeError`` on anything malformed."""
        if not isinstance(data, Mapping):
            raise DecodeError("Filter data must be a mapping")
        if "column" not in data or "operator" not in data:
            raise DecodeError("Filter data requires 'column' and 'operator'")

        comparator = FilterComparator.from_token(data["operator"])
        value = data.get("value")
        if (comparator.takes_list() or comparator == FilterComparator.BETWEEN) and isinstance(value, dict):
            # Query strings can decode sparse lists as index-keyed mappings
            value = [value[key] for key in sorted(value, key=_index_key)]

        try:
            return cls(str(data["column"]), comparator, value)
        except InvalidFilterError as e:
            raise DecodeError(str(e)) from e


def _index_key(key: Any) -> Any:
    try:
        return (0, int(key))
    except (TypeError, ValueError):
        return (1, str(key))


def describe(filter_: Filter) -> str:
    """Short human readable form used in log lines."""
    if not filter_.comparator.takes_value():
        return f"{filter_.column} {filter_.comparator.value}"
    return f"{filter_.column} {filter_.comparator.value} {filter_.value!r}"

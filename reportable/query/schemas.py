"""
Query building types.

Filters are compiled into backend-neutral ``Predicate`` values; each query
source translates predicates into its own native form.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class PredicateOperator(str, Enum):
    """Primitive predicate operations every query source must understand."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GE = "ge"
    LT = "lt"
    LE = "le"
    LIKE = "like"
    NOT_LIKE = "not_like"
    IN = "in"
    NOT_IN = "not_in"
    BETWEEN = "between"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class Predicate:
    """A single AND-able condition on one column."""

    column: str
    operator: PredicateOperator
    operand: Any = None
    # Escape character used inside LIKE patterns
    escape: Optional[str] = None


@dataclass
class CompiledQuery:
    """Raw query text and its ordered bound parameters, for audit logging."""

    sql: str
    parameters: List[Any] = field(default_factory=list)

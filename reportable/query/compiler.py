"""
Filter compiler.

Translates a ``FilterCollection`` into predicates applied, in order, as a flat
AND conjunction on a query source. Both dispatch-time auditing and export
execution go through ``QueryCompiler`` so the SQL recorded on an export is the
SQL that runs.
"""

import logging
from typing import Callable, Dict, Iterable

from reportable.core.exceptions import CompileError
from reportable.filters.models import Filter, FilterComparator, describe
from reportable.query.schemas import LIKE_ESCAPE, CompiledQuery, Predicate, PredicateOperator
from reportable.query.source import QuerySource

logger = logging.getLogger(__name__)


def _escape_like(value) -> str:
    text = str(value)
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _pattern(prefix: str, suffix: str, negate: bool = False) -> Callable[[Filter], Predicate]:
    def build(filter_: Filter) -> Predicate:
        escaped = _escape_like(filter_.value)
        operator = PredicateOperator.NOT_LIKE if negate else PredicateOperator.LIKE
        escape = LIKE_ESCAPE if escaped != str(filter_.value) else None
        return Predicate(filter_.column, operator, f"{prefix}{escaped}{suffix}", escape)

    return build


def _simple(operator: PredicateOperator) -> Callable[[Filter], Predicate]:
    def build(filter_: Filter) -> Predicate:
        return Predicate(filter_.column, operator, filter_.value)

    return build


def _nullity(operator: PredicateOperator) -> Callable[[Filter], Predicate]:
    def build(filter_: Filter) -> Predicate:
        return Predicate(filter_.column, operator)

    return build


# Every FilterComparator must appear here
PREDICATE_BUILDERS: Dict[FilterComparator, Callable[[Filter], Predicate]] = {
    FilterComparator.EQUALS: _simple(PredicateOperator.EQ),
    FilterComparator.NOT_EQUALS: _simple(PredicateOperator.NE),
    FilterComparator.GREATER_THAN: _simple(PredicateOperator.GT),
    FilterComparator.GREATER_THAN_OR_EQUAL: _simple(PredicateOperator.GE),
    FilterComparator.LESS_THAN: _simple(PredicateOperator.LT),
    FilterComparator.LESS_THAN_OR_EQUAL: _simple(PredicateOperator.LE),
    FilterComparator.CONTAINS: _pattern("%", "%"),
    FilterComparator.NOT_CONTAINS: _pattern("%", "%", negate=True),
    FilterComparator.STARTS_WITH: _pattern("", "%"),
    FilterComparator.ENDS_WITH: _pattern("%", ""),
    FilterComparator.IN: _simple(PredicateOperator.IN),
    FilterComparator.NOT_IN: _simple(PredicateOperator.NOT_IN),
    FilterComparator.BETWEEN: _simple(PredicateOperator.BETWEEN),
    FilterComparator.IS_NULL: _nullity(PredicateOperator.IS_NULL),
    FilterComparator.IS_NOT_NULL: _nullity(PredicateOperator.IS_NOT_NULL),
}


class QueryCompiler:
    """Applies filters to a query source as an AND chain."""

    def __init__(self, builders: Dict[FilterComparator, Callable[[Filter], Predicate]] = None):
        self.builders = builders if builders is not None else PREDICATE_BUILDERS

    def to_predicate(self, filter_: Filter) -> Predicate:
        builder = self.builders.get(filter_.comparator)
        if builder is None:
            # The comparator enum and this mapping have drifted apart
            raise CompileError(f"No predicate mapping for comparator '{filter_.comparator.value}'")
        return builder(filter_)

    def compile(self, source: QuerySource, filters: Iterable[Filter]) -> QuerySource:
        """Return ``source`` with every filter applied; unchanged when there are none."""
        for filter_ in filters:
            logger.debug("Applying filter %s", describe(filter_))
            source = source.apply_predicate(self.to_predicate(filter_))
        return source

    def inspect(self, source: QuerySource) -> CompiledQuery:
        """Raw text and bound parameters of a compiled source, without executing it."""
        return source.compiled_text()

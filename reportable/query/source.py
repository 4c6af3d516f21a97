# reportable/query/source.py
"""Query sources: the backends that filters are compiled against.

A query source is immutable from the caller's point of view: applying a
predicate returns a new source.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import not_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from reportable.core.exceptions import CompileError
from reportable.query.schemas import CompiledQuery, Predicate, PredicateOperator

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class QuerySource(ABC):
    """Capability every report backend provides.

    LIKE case sensitivity belongs to the backend: SQLite and MySQL match
    case-insensitively by default, PostgreSQL does not.
    """

    @abstractmethod
    def apply_predicate(self, predicate: Predicate) -> "QuerySource":
        """Return a new source with ``predicate`` ANDed onto this one."""

    @abstractmethod
    def fetch_chunk(self, size: int, offset: int) -> List[Row]:
        """Fetch at most ``size`` rows starting at ``offset``, in query order."""

    @abstractmethod
    def fetch_all(self) -> List[Row]:
        """Fetch every row."""

    @abstractmethod
    def compiled_text(self) -> CompiledQuery:
        """Raw query text and ordered parameters, without executing."""

    def iter_chunks(self, size: int) -> Iterator[List[Row]]:
        """Yield consecutive non-empty batches until the result set is exhausted."""
        if size < 1:
            raise ValueError("Chunk size must be at least 1")
        offset = 0
        while True:
            rows = self.fetch_chunk(size, offset)
            if not rows:
                return
            yield rows
            if len(rows) < size:
                return
            offset += len(rows)


# ===== SQLALCHEMY =====


class SqlAlchemyQuerySource(QuerySource):
    """Query source over a SQLAlchemy ``Select`` executed with a session.

    Filter columns resolve against the statement's selected columns (labels
    included) first, then against the columns of its FROM tables.
    """

    def __init__(self, statement: Select, session: Session):
        self.statement = statement
        self.session = session

    def _resolve_column(self, name: str):
        selected = self.statement.selected_columns
        if name in selected:
            return selected[name]

        table_name, _, column_name = name.rpartition(".")
        for from_clause in self.statement.get_final_froms():
            columns = getattr(from_clause, "c", None)
            if columns is None:
                continue
            if table_name and getattr(from_clause, "name", None) != table_name:
                continue
            if column_name in columns:
                return columns[column_name]

        raise CompileError(f"Unknown column '{name}' for this query")

    def _condition(self, predicate: Predicate):
        column = self._resolve_column(predicate.column)
        operand = predicate.operand
        op = predicate.operator

        if op == PredicateOperator.EQ:
            return column == operand
        if op == PredicateOperator.NE:
            return column != operand
        if op == PredicateOperator.GT:
            return column > operand
        if op == PredicateOperator.GE:
            return column >= operand
        if op == PredicateOperator.LT:
            return column < operand
        if op == PredicateOperator.LE:
            return column <= operand
        if op == PredicateOperator.LIKE:
            return column.like(operand, escape=predicate.escape)
        if op == PredicateOperator.NOT_LIKE:
            return column.not_like(operand, escape=predicate.escape)
        if op == PredicateOperator.IN:
            return column.in_(list(operand))
        if op == PredicateOperator.NOT_IN:
            return not_(column.in_(list(operand)))
        if op == PredicateOperator.BETWEEN:
            low, high = operand
            return column.between(low, high)
        if op == PredicateOperator.IS_NULL:
            return column.is_(None)
        if op == PredicateOperator.IS_NOT_NULL:
            return column.is_not(None)
        raise CompileError(f"Unsupported predicate operator: {op}")

    def apply_predicate(self, predicate: Predicate) -> "SqlAlchemyQuerySource":
        return SqlAlchemyQuerySource(self.statement.where(self._condition(predicate)), self.session)

    def fetch_chunk(self, size: int, offset: int) -> List[Row]:
        result = self.session.execute(self.statement.limit(size).offset(offset))
        return [dict(row) for row in result.mappings()]

    def fetch_all(self) -> List[Row]:
        result = self.session.execute(self.statement)
        return [dict(row) for row in result.mappings()]

    def compiled_text(self) -> CompiledQuery:
        dialect = self.session.get_bind().dialect
        compiled = self.statement.compile(dialect=dialect)
        parameters = [_jsonable(value) for value in compiled.params.values()]
        return CompiledQuery(sql=self._raw_sql(dialect, str(compiled)), parameters=parameters)

    def _raw_sql(self, dialect, fallback: str) -> str:
        """Compile SQLAlchemy query to raw SQL string with literal values."""
        try:
            return str(self.statement.compile(dialect=dialect, compile_kwargs={"literal_binds": True}))
        except (SQLAlchemyError, NotImplementedError) as e:
            logger.warning("Could not render literal SQL, keeping placeholders: %s", e)
            return fallback


def _jsonable(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


# ===== IN-MEMORY =====


def _like_to_regex(pattern: str, escape: Optional[str], case_sensitive: bool = False) -> "re.Pattern[str]":
    parts = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if escape and char == escape and index + 1 < len(pattern):
            parts.append(re.escape(pattern[index + 1]))
            index += 2
            continue
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
        index += 1
    flags = re.DOTALL if case_sensitive else re.IGNORECASE | re.DOTALL
    return re.compile("^" + "".join(parts) + "$", flags)


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(value: Any, operand: Any) -> bool:
        # SQL semantics: comparisons against NULL never match
        if value is None:
            return False
        try:
            return op(value, operand)
        except TypeError as e:
            raise CompileError(f"Cannot compare {value!r} with {operand!r}: {e}") from e

    return check


def _like(negate: bool) -> Callable[..., bool]:
    def check(value: Any, operand: Any, escape: Optional[str], case_sensitive: bool) -> bool:
        if value is None:
            return False
        matched = _like_to_regex(operand, escape, case_sensitive).match(str(value)) is not None
        return not matched if negate else matched

    return check


_ROW_CHECKS: Dict[PredicateOperator, Callable[[Any, Any], bool]] = {
    PredicateOperator.EQ: _compare(lambda value, operand: value == operand),
    PredicateOperator.NE: _compare(lambda value, operand: value != operand),
    PredicateOperator.GT: _compare(lambda value, operand: value > operand),
    PredicateOperator.GE: _compare(lambda value, operand: value >= operand),
    PredicateOperator.LT: _compare(lambda value, operand: value < operand),
    PredicateOperator.LE: _compare(lambda value, operand: value <= operand),
    PredicateOperator.IN: _compare(lambda value, operand: value in operand),
    PredicateOperator.NOT_IN: _compare(lambda value, operand: value not in operand),
    PredicateOperator.BETWEEN: _compare(lambda value, operand: operand[0] <= value <= operand[1]),
    PredicateOperator.IS_NULL: lambda value, operand: value is None,
    PredicateOperator.IS_NOT_NULL: lambda value, operand: value is not None,
}

_LIKE_CHECKS = {
    PredicateOperator.LIKE: _like(negate=False),
    PredicateOperator.NOT_LIKE: _like(negate=True),
}

_SQL_SYMBOLS = {
    PredicateOperator.EQ: "= ?",
    PredicateOperator.NE: "!= ?",
    PredicateOperator.GT: "> ?",
    PredicateOperator.GE: ">= ?",
    PredicateOperator.LT: "< ?",
    PredicateOperator.LE: "<= ?",
    PredicateOperator.LIKE: "LIKE ?",
    PredicateOperator.NOT_LIKE: "NOT LIKE ?",
    PredicateOperator.IN: "IN",
    PredicateOperator.NOT_IN: "NOT IN",
    PredicateOperator.BETWEEN: "BETWEEN ? AND ?",
    PredicateOperator.IS_NULL: "IS NULL",
    PredicateOperator.IS_NOT_NULL: "IS NOT NULL",
}


class InMemoryQuerySource(QuerySource):
    """Query source over a list of row mappings, kept in list order.

    LIKE matches case-insensitively unless ``case_sensitive`` is set, so a
    source standing in for PostgreSQL should pass ``case_sensitive=True``.
    """

    def __init__(
        self,
        rows: Sequence[Row],
        name: str = "rows",
        predicates: Tuple[Predicate, ...] = (),
        case_sensitive: bool = False,
    ):
        self.rows = list(rows)
        self.name = name
        self.predicates = predicates
        self.case_sensitive = case_sensitive

    def apply_predicate(self, predicate: Predicate) -> "InMemoryQuerySource":
        if predicate.operator not in _ROW_CHECKS and predicate.operator not in _LIKE_CHECKS:
            raise CompileError(f"Unsupported predicate operator: {predicate.operator}")
        known = set().union(*(row.keys() for row in self.rows)) if self.rows else None
        if known is not None and predicate.column not in known:
            raise CompileError(f"Unknown column '{predicate.column}' for {self.name}")
        return InMemoryQuerySource(self.rows, self.name, self.predicates + (predicate,), self.case_sensitive)

    def _matches(self, row: Row) -> bool:
        for predicate in self.predicates:
            value = row.get(predicate.column)
            if predicate.operator in _LIKE_CHECKS:
                ok = _LIKE_CHECKS[predicate.operator](
                    value, predicate.operand, predicate.escape, self.case_sensitive
                )
            else:
                ok = _ROW_CHECKS[predicate.operator](value, predicate.operand)
            if not ok:
                return False
        return True

    def fetch_all(self) -> List[Row]:
        return [dict(row) for row in self.rows if self._matches(row)]

    def fetch_chunk(self, size: int, offset: int) -> List[Row]:
        return self.fetch_all()[offset:offset + size]

    def compiled_text(self) -> CompiledQuery:
        clauses = []
        parameters: List[Any] = []
        for predicate in self.predicates:
            symbol = _SQL_SYMBOLS[predicate.operator]
            if predicate.operator in (PredicateOperator.IN, PredicateOperator.NOT_IN):
                values = list(predicate.operand)
                clauses.append(f"{predicate.column} {symbol} ({', '.join('?' for _ in values)})")
                parameters.extend(values)
            elif predicate.operator == PredicateOperator.BETWEEN:
                clauses.append(f"{predicate.column} {symbol}")
                parameters.extend(predicate.operand)
            elif predicate.operator in (PredicateOperator.IS_NULL, PredicateOperator.IS_NOT_NULL):
                clauses.append(f"{predicate.column} {symbol}")
            else:
                clauses.append(f"{predicate.column} {symbol}")
                parameters.append(predicate.operand)

        sql = f"SELECT * FROM {self.name}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        return CompiledQuery(sql=sql, parameters=[_jsonable(p) for p in parameters])

"""
Query module for report exports.

Main Components:
- QuerySource: capability implemented by every backend (SQLAlchemy, in-memory)
- QueryCompiler: turns filters into an AND chain of predicates on a source
- Schemas: predicate and compiled-query value types
"""

from .compiler import QueryCompiler
from .schemas import CompiledQuery, Predicate, PredicateOperator
from .source import InMemoryQuerySource, QuerySource, SqlAlchemyQuerySource

__all__ = [
    "QueryCompiler",
    "QuerySource",
    "SqlAlchemyQuerySource",
    "InMemoryQuerySource",
    "CompiledQuery",
    "Predicate",
    "PredicateOperator",
]

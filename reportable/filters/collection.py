# reportable/filters/collection.py
"""Ordered, optionally grouped collections of filters and their wire forms."""

import json
import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from reportable.core.config import ReportableConfig, get_config
from reportable.core.exceptions import DecodeError
from reportable.filters.models import Filter
from reportable.filters.querystring import build_query, parse_query

logger = logging.getLogger(__name__)


def _default_group(config: Optional[ReportableConfig]) -> str:
    return (config or get_config()).filter_group


class FilterCollection:
    """
    An ordered list of filters with an optional group label.

    The group label only names the query-string parameter the collection is
    serialized under; when it is ``None`` the configured default group is used
    at the time of serialization.
    """

    def __init__(self, filters: Optional[Iterable[Filter]] = None, group: Optional[str] = None):
        self._filters: List[Filter] = list(filters or [])
        self._group = group

    @classmethod
    def make(cls, filters: Optional[Iterable[Filter]] = None, group: Optional[str] = None) -> "FilterCollection":
        return cls(filters, group)

    # ===== DECODING =====

    @classmethod
    def from_array(cls, data: Any, group: Optional[str] = None) -> "FilterCollection":
        """
        Build a collection from a list of ``{column, operator, value}`` mappings.

        Entries without a ``column`` or ``operator`` are skipped; an entry with an
        unknown operator still raises ``DecodeError``.
        """
        if isinstance(data, Mapping):
            # Sparse query-string lists arrive as index-keyed mappings
            data = list(data.values())
        if not isinstance(data, (list, tuple)):
            return cls([], group)

        filters = []
        for entry in data:
            if not isinstance(entry, Mapping) or "column" not in entry or "operator" not in entry:
                logger.debug("Skipping malformed filter entry: %r", entry)
                continue
            if entry["column"] in (None, "") or entry["operator"] in (None, ""):
                logger.debug("Skipping filter entry with empty column/operator: %r", entry)
                continue
            filters.append(Filter.from_dict(entry))
        return cls(filters, group)

    @classmethod
    def from_query_string(
        cls,
        query_string: str,
        group: Optional[str] = None,
        config: Optional[ReportableConfig] = None,
    ) -> "FilterCollection":
        parameter = group or _default_group(config)
        parsed = parse_query(query_string)
        return cls.from_array(parsed.get(parameter), group)

    @classmethod
    def from_request(
        cls,
        request: Any,
        group: Optional[str] = None,
        config: Optional[ReportableConfig] = None,
    ) -> "FilterCollection":
        """Read filters from a Starlette/FastAPI request's query parameters."""
        return cls.from_query_string(str(request.query_params), group, config)

    @classmethod
    def from_json(cls, payload: str, group: Optional[str] = None) -> "FilterCollection":
        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Invalid filter JSON: {e}") from e
        return cls.from_array(data, group)

    # ===== BUILDING =====

    def with_group(self, group: Optional[str]) -> "FilterCollection":
        self._group = group
        return self

    @property
    def group(self) -> Optional[str]:
        return self._group

    def query_parameter(self, config: Optional[ReportableConfig] = None) -> str:
        """The query-string key: the group label or the configured default."""
        return self._group or _default_group(config)

    def add(self, filter_: Filter) -> "FilterCollection":
        if not isinstance(filter_, Filter):
            raise TypeError(f"Expected Filter, got {type(filter_).__name__}")
        self._filters.append(filter_)
        return self

    def add_many(self, filters: Iterable[Filter]) -> "FilterCollection":
        for filter_ in filters:
            self.add(filter_)
        return self

    def merge(self, other: "FilterCollection") -> "FilterCollection":
        """New collection with this collection's filters, then ``other``'s, under this group."""
        return FilterCollection(self._filters + other.all(), self._group)

    # ===== QUERYING =====

    def all(self) -> List[Filter]:
        return list(self._filters)

    def count(self) -> int:
        return len(self._filters)

    def is_empty(self) -> bool:
        return not self._filters

    def is_not_empty(self) -> bool:
        return not self.is_empty()

    def for_column(self, column: str) -> List[Filter]:
        return [f for f in self._filters if f.column == column]

    def has_column(self, column: str) -> bool:
        return any(f.column == column for f in self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def __iter__(self) -> Iterator[Filter]:
        return iter(list(self._filters))

    def __getitem__(self, index: int) -> Filter:
        return self._filters[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FilterCollection):
            return NotImplemented
        return self._filters == other._filters and self._group == other._group

    def __repr__(self) -> str:
        return f"FilterCollection(filters={self._filters!r}, group={self._group!r})"

    # ===== ENCODING =====

    def to_array(self) -> List[Dict[str, Any]]:
        return [f.to_dict() for f in self._filters]

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_array(), **kwargs)

    def to_query_array(self, config: Optional[ReportableConfig] = None) -> Dict[str, List[Dict[str, Any]]]:
        if self.is_empty():
            return {}
        return {self.query_parameter(config): self.to_array()}

    def to_query_string(self, config: Optional[ReportableConfig] = None) -> str:
        if self.is_empty():
            return ""
        return build_query(self.to_query_array(config))

    def append_to_url(self, url: str, config: Optional[ReportableConfig] = None) -> str:
        if self.is_empty():
            return url
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{self.to_query_string(config)}"

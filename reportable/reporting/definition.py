# reportable/reporting/definition.py
"""
Report definitions.

A report definition names a base query, how its columns are labelled in the
CSV header, and where the CSV goes. Callers adjust filters and output settings
on an instance and then dispatch it; dispatch snapshots the instance into a
``ReportDescriptor`` so later changes never reach an export already queued.

Subclasses that take constructor arguments must return them from
``arguments()`` so the report can be rebuilt from its descriptor.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Union

from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from reportable.core.config import ReportableConfig, get_config
from reportable.filters.collection import FilterCollection
from reportable.filters.models import Filter
from reportable.query.compiler import QueryCompiler
from reportable.query.source import QuerySource, SqlAlchemyQuerySource
from reportable.reporting.schemas import ExportMode, ReportDescriptor


def _kebab(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()


class ReportDefinition(ABC):
    """Base class for every exportable report."""

    # Registry tag; defaults to the dotted import path of the class
    report_type: ClassVar[Optional[str]] = None

    _filters: Optional[FilterCollection] = None
    _disk: Optional[str] = None
    _path: Optional[str] = None
    _chunk_size: Optional[int] = None
    _mode: ExportMode = ExportMode.CHUNKED

    @classmethod
    def type_tag(cls) -> str:
        return cls.report_type or f"{cls.__module__}.{cls.__qualname__}"

    # ===== HOOKS FOR SUBCLASSES =====

    @abstractmethod
    def query(self) -> Select:
        """The base query. Give it an explicit ORDER BY for stable chunking."""

    def query_source(self, session: Session) -> QuerySource:
        """Wrap the base query for execution; override for non-SQL backends."""
        return SqlAlchemyQuerySource(self.query(), session)

    def filename(self) -> str:
        name = type(self).__name__
        if name.endswith("Report") and name != "Report":
            name = name[: -len("Report")]
        return f"{_kebab(name)}.csv"

    def map_headers(self) -> Dict[str, str]:
        """Column name -> header label. Unmapped columns use their raw name."""
        return {}

    def arguments(self) -> Dict[str, Any]:
        """Constructor keyword arguments needed to rebuild this report."""
        return {}

    # ===== FILTERS =====

    def get_filter_collection(self) -> FilterCollection:
        if self._filters is None:
            self._filters = FilterCollection()
        return self._filters

    def get_filters(self) -> List[Filter]:
        return self.get_filter_collection().all()

    def with_filters(self, filters: Union[FilterCollection, Iterable[Filter]]) -> "ReportDefinition":
        if isinstance(filters, FilterCollection):
            self._filters = FilterCollection(filters.all(), filters.group)
        else:
            self._filters = FilterCollection(filters)
        return self

    def add_filter(self, filter_: Filter) -> "ReportDefinition":
        self.get_filter_collection().add(filter_)
        return self

    # ===== OUTPUT SETTINGS =====

    def to_disk(self, disk: str) -> "ReportDefinition":
        self._disk = disk
        return self

    def to_path(self, path: str) -> "ReportDefinition":
        self._path = path.strip("/")
        return self

    def all_at_once(self) -> "ReportDefinition":
        self._mode = ExportMode.BULK
        return self

    def chunked(self, chunk_size: Optional[int] = None) -> "ReportDefinition":
        if chunk_size is not None and chunk_size < 1:
            raise ValueError("Chunk size must be at least 1")
        self._mode = ExportMode.CHUNKED
        if chunk_size is not None:
            self._chunk_size = chunk_size
        return self

    def disk(self, config: Optional[ReportableConfig] = None) -> str:
        return self._disk or (config or get_config()).disk

    def path(self, config: Optional[ReportableConfig] = None) -> str:
        if self._path is not None:
            return self._path
        return (config or get_config()).output_path.strip("/")

    def output_path(self, config: Optional[ReportableConfig] = None) -> str:
        directory = self.path(config)
        return f"{directory}/{self.filename()}" if directory else self.filename()

    def chunk_size(self, config: Optional[ReportableConfig] = None) -> int:
        return self._chunk_size or (config or get_config()).chunk_size

    def mode(self) -> ExportMode:
        return self._mode

    # ===== BUILDING =====

    def build_query(self, session: Session, compiler: Optional[QueryCompiler] = None) -> QuerySource:
        """The base query with every filter applied."""
        compiler = compiler or QueryCompiler()
        return compiler.compile(self.query_source(session), self.get_filters())

    def to_descriptor(self, config: Optional[ReportableConfig] = None) -> ReportDescriptor:
        filters = self.get_filter_collection()
        return ReportDescriptor(
            report_type=self.type_tag(),
            arguments=dict(self.arguments()),
            filters=filters.to_array(),
            filter_group=filters.group,
            disk=self.disk(config),
            path=self.path(config),
            chunk_size=self.chunk_size(config),
            mode=self.mode(),
        )

    @classmethod
    def from_descriptor(cls, descriptor: ReportDescriptor) -> "ReportDefinition":
        """Rebuild a report exactly as it was when the descriptor was taken."""
        from reportable.reporting.registry import registry

        report_cls = registry.get(descriptor.report_type)
        report = report_cls(**descriptor.arguments)
        report.with_filters(descriptor.filter_collection())
        report.to_disk(descriptor.disk)
        report.to_path(descriptor.path)
        report._mode = descriptor.mode
        report._chunk_size = descriptor.chunk_size
        return report

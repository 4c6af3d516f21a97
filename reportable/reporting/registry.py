import importlib
import logging
from typing import Dict, List, Optional, Type

from reportable.core.exceptions import UnknownReportTypeError

logger = logging.getLogger(__name__)


class ReportRegistry:
    """Maps report type tags to report definition classes."""

    def __init__(self):
        self.reports: Dict[str, Type] = {}

    def register(self, report_cls: Optional[Type] = None, *, name: Optional[str] = None):
        """Register a report class. Usable as ``@registry.register`` or ``@registry.register(name=...)``."""

        def decorator(cls: Type) -> Type:
            tag = name or cls.type_tag()
            if name:
                cls.report_type = name
            existing = self.reports.get(tag)
            if existing is not None and existing is not cls:
                logger.warning("Report type '%s' re-registered: %s replaces %s", tag, cls, existing)
            self.reports[tag] = cls
            return cls

        if report_cls is not None:
            return decorator(report_cls)
        return decorator

    def get(self, tag: str) -> Type:
        """Resolve a tag to a class, importing dotted ``module.Class`` tags on demand."""
        from reportable.reporting.definition import ReportDefinition

        if tag in self.reports:
            return self.reports[tag]

        module_name, _, class_name = tag.rpartition(".")
        if module_name:
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                raise UnknownReportTypeError(f"Unknown report type '{tag}': {e}") from e
            report_cls = getattr(module, class_name, None)
            if isinstance(report_cls, type) and issubclass(report_cls, ReportDefinition):
                self.reports[tag] = report_cls
                return report_cls

        raise UnknownReportTypeError(f"Unknown report type '{tag}'")

    def get_all(self) -> List[Type]:
        return list(self.reports.values())


# Create the global registry
registry = ReportRegistry()
register_report = registry.register

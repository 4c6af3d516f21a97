"""Report definitions, their serializable descriptors and the type registry."""

from .definition import ReportDefinition
from .registry import ReportRegistry, register_report, registry
from .schemas import ExportMode, ReportDescriptor

__all__ = [
    "ReportDefinition",
    "ReportDescriptor",
    "ExportMode",
    "ReportRegistry",
    "register_report",
    "registry",
]

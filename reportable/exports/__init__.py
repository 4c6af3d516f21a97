"""Export records and the pipeline that fills them."""

from reportable.exports.executor import ExportExecutor, ExportResult
from reportable.exports.models import ExportStatus, ReportExport
from reportable.exports.service import ReportExportService

__all__ = ["ExportExecutor", "ExportResult", "ExportStatus", "ReportExport", "ReportExportService"]

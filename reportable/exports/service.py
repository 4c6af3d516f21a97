# reportable/exports/service.py
"""Service for creating, dispatching and tracking report exports."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from reportable.core.config import ReportableConfig, get_config
from reportable.core.exceptions import ExportNotRetryableError
from reportable.exports.dao import ReportExportDAO
from reportable.exports.dispatcher import CeleryExportDispatcher, ExportDispatcher
from reportable.exports.models import ExportStatus, ReportExport
from reportable.query.compiler import QueryCompiler
from reportable.reporting.definition import ReportDefinition
from reportable.reporting.schemas import ReportDescriptor

logger = logging.getLogger(__name__)


class ReportExportService:
    """Export lifecycle with persistence.

    Export records live in the config database (``db``); report queries are
    compiled against the data warehouse (``dw_db``).
    """

    def __init__(
        self,
        db: Session,
        dw_db: Session,
        dispatcher: Optional[ExportDispatcher] = None,
        config: Optional[ReportableConfig] = None,
        compiler: Optional[QueryCompiler] = None,
    ):
        self.dao = ReportExportDAO(db)
        self.dw_db = dw_db
        self.config = config or get_config()
        self.dispatcher = dispatcher or CeleryExportDispatcher(config=self.config)
        self.compiler = compiler or QueryCompiler()

    # ===== CREATION & DISPATCH =====

    def create_from_report(
        self, report: ReportDefinition, retried_from: Optional[ReportExport] = None
    ) -> ReportExport:
        """Snapshot a report into a new PENDING export record."""
        descriptor = report.to_descriptor(self.config)
        compiled = self.compiler.inspect(report.build_query(self.dw_db, self.compiler))

        export = self.dao.create(
            report_type=descriptor.report_type,
            report_descriptor=descriptor.model_dump(mode="json"),
            query_sql=compiled.sql,
            query_bindings=compiled.parameters,
            status=ExportStatus.PENDING,
            output_disk=descriptor.disk,
            output_path=report.output_path(self.config),
            rows_processed=0,
            retried_from_id=retried_from.id if retried_from is not None else None,
        )
        logger.info("Created export %s for %s", export.id, descriptor.report_type)
        return export

    def dispatch(self, export: ReportExport) -> ReportExport:
        """Mark an export DISPATCHED and enqueue it."""
        export.mark_as_dispatched()
        self.dao.save(export)
        try:
            self.dispatcher.dispatch(export.id)
        except Exception as e:
            logger.exception("Failed to enqueue export %s", export.id)
            export.mark_as_failed(f"Could not enqueue export: {e}")
            self.dao.save(export)
            raise
        return export

    def dispatch_report(self, report: ReportDefinition) -> ReportExport:
        return self.dispatch(self.create_from_report(report))

    def retry(self, export: ReportExport) -> ReportExport:
        """Dispatch a new export for the same report snapshot, linked to ``export``."""
        if not export.can_retry():
            raise ExportNotRetryableError(
                f"Export {export.id} is {export.status.value}; only failed exports can be retried"
            )
        report = self.get_report(export)
        retry = self.create_from_report(report, retried_from=export)
        logger.info("Export %s retried as export %s", export.id, retry.id)
        return self.dispatch(retry)

    # ===== LOOKUPS =====

    def get(self, export_id: int) -> Optional[ReportExport]:
        return self.dao.get_by_id(export_id)

    def get_all(self, skip: int = 0, limit: int = 100, status: Optional[ExportStatus] = None) -> List[ReportExport]:
        return self.dao.get_all(skip=skip, limit=limit, status=status)

    def get_retries(self, export: ReportExport) -> List[ReportExport]:
        return self.dao.get_retries(export.id)

    def get_report(self, export: ReportExport) -> ReportDefinition:
        """Rebuild the report definition captured when the export was created."""
        descriptor = ReportDescriptor.model_validate(export.report_descriptor)
        return ReportDefinition.from_descriptor(descriptor)

    # ===== STATE TRANSITIONS =====

    def mark_as_processing(self, export: ReportExport) -> ReportExport:
        export.mark_as_processing()
        return self.dao.save(export)

    def mark_as_completed(self, export: ReportExport) -> ReportExport:
        export.mark_as_completed()
        return self.dao.save(export)

    def mark_as_failed(self, export: ReportExport, message: str) -> ReportExport:
        export.mark_as_failed(message)
        return self.dao.save(export)

    def update_progress(
        self, export: ReportExport, rows_processed: int, total_rows: Optional[int] = None
    ) -> ReportExport:
        export.update_progress(rows_processed, total_rows)
        return self.dao.save(export)

# reportable/exports/executor.py
"""
Export executor.

Runs one export record: rebuilds its report, streams the filtered rows into a
temporary CSV file, then moves the file to its storage disk. Progress is saved
after every chunk, so an interrupted run leaves the record at the last chunk
boundary. Only a fully written file ever reaches the destination path.

The executor never raises for export failures. It records them on the export
and returns them in ``ExportResult``; the job queue adapter calls
``raise_for_failure()`` so the queue sees the failure too.
"""

import logging
import os
import tempfile
import time
from dataclasses import dataclass
from typing import Optional

from reportable.core.exceptions import ExecutionError, InvalidTransitionError, ReportableError
from reportable.exports.models import ExportStatus, ReportExport
from reportable.exports.service import ReportExportService
from reportable.exports.storage import LocalStorage, Storage
from reportable.exports.writer import CsvWriter
from reportable.query.source import QuerySource
from reportable.reporting.schemas import ExportMode

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """Outcome of one executor run."""

    export_id: int
    status: ExportStatus
    rows_processed: int = 0
    total_rows: Optional[int] = None
    output_disk: Optional[str] = None
    output_path: Optional[str] = None
    execution_time_ms: Optional[float] = None
    error: Optional[ReportableError] = None

    @property
    def success(self) -> bool:
        return self.error is None and self.status == ExportStatus.COMPLETED

    def raise_for_failure(self) -> None:
        if self.error is not None:
            raise self.error

    def to_dict(self) -> dict:
        return {
            "export_id": self.export_id,
            "status": self.status.value,
            "rows_processed": self.rows_processed,
            "total_rows": self.total_rows,
            "output_disk": self.output_disk,
            "output_path": self.output_path,
            "execution_time_ms": self.execution_time_ms,
            "error": str(self.error) if self.error else None,
        }


class ExportExecutor:
    """Streams a report's rows to CSV and keeps its export record current."""

    def __init__(self, service: ReportExportService, storage: Optional[Storage] = None):
        self.service = service
        self.config = service.config
        self.storage = storage or LocalStorage(config=self.config)

    def run_by_id(self, export_id: int) -> ExportResult:
        export = self.service.get(export_id)
        if export is None:
            error = ExecutionError(f"Export {export_id} does not exist")
            return ExportResult(export_id=export_id, status=ExportStatus.FAILED, error=error)
        return self.run(export)

    def run(self, export: ReportExport) -> ExportResult:
        start_time = time.time()
        try:
            self.service.mark_as_processing(export)
        except InvalidTransitionError as e:
            # Already running elsewhere or finished; leave the record alone
            logger.warning("Export %s not started: %s", export.id, e)
            return self._result(export, start_time, error=e)

        logger.info("Processing export %s (%s)", export.id, export.report_type)
        temp_path = None
        try:
            report = self.service.get_report(export)
            source = report.build_query(self.service.dw_db, self.service.compiler)

            fd, temp_path = tempfile.mkstemp(
                prefix=f"export-{export.id}-", suffix=".csv", dir=self.config.temp_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                writer = CsvWriter(handle, report.map_headers())
                if report.mode() == ExportMode.BULK:
                    self._stream_bulk(export, source, writer)
                else:
                    self._stream_chunked(export, source, writer, report.chunk_size(self.config))

            self.storage.put_file(export.output_disk, export.output_path, temp_path)
            self.service.mark_as_completed(export)
        except Exception as e:
            error = self._wrap(e)
            logger.exception("Export %s failed: %s", export.id, error)
            self._record_failure(export, error)
            return self._result(export, start_time, error=error)
        finally:
            if temp_path and os.path.exists(temp_path):
                os.remove(temp_path)

        result = self._result(export, start_time)
        logger.info(
            "Export %s completed: %s rows to %s:%s in %.0fms",
            export.id,
            result.rows_processed,
            export.output_disk,
            export.output_path,
            result.execution_time_ms,
        )
        return result

    # ===== STREAMING =====

    def _stream_chunked(self, export: ReportExport, source: QuerySource, writer: CsvWriter, chunk_size: int) -> None:
        processed = 0
        for rows in source.iter_chunks(chunk_size):
            writer.write_rows(rows)
            processed += len(rows)
            self.service.update_progress(export, processed)
            logger.debug("Export %s: %s rows written", export.id, processed)

    def _stream_bulk(self, export: ReportExport, source: QuerySource, writer: CsvWriter) -> None:
        rows = source.fetch_all()
        total = len(rows)
        self.service.update_progress(export, 0, total)
        writer.write_rows(rows)
        self.service.update_progress(export, total, total)

    # ===== FAILURE HANDLING =====

    @staticmethod
    def _wrap(error: Exception) -> ReportableError:
        if isinstance(error, ReportableError):
            return error
        message = str(error) or type(error).__name__
        wrapped = ExecutionError(message)
        wrapped.__cause__ = error
        return wrapped

    def _record_failure(self, export: ReportExport, error: ReportableError) -> None:
        try:
            # Drop whatever the failed statement left pending on the session
            self.service.dao.db.rollback()
            if not export.is_finished():
                self.service.mark_as_failed(export, str(error))
        except Exception:
            logger.exception("Could not record failure on export %s", export.id)

    @staticmethod
    def _result(export: ReportExport, start_time: float, error: Optional[ReportableError] = None) -> ExportResult:
        return ExportResult(
            export_id=export.id,
            status=export.status,
            rows_processed=export.rows_processed or 0,
            total_rows=export.total_rows,
            output_disk=export.output_disk,
            output_path=export.output_path,
            execution_time_ms=(time.time() - start_time) * 1000,
            error=error,
        )

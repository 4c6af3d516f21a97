# reportable/exports/models.py
"""Export record model: one row per export attempt."""

import enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from reportable.core.database import Base
from reportable.core.exceptions import InvalidTransitionError


class ExportStatus(str, enum.Enum):
    """Lifecycle of an export. Values are stored in the database."""

    PENDING = "pending"
    DISPATCHED = "dispatched"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    def is_finished(self) -> bool:
        return self in (ExportStatus.COMPLETED, ExportStatus.FAILED)

    def is_running(self) -> bool:
        return self in (ExportStatus.DISPATCHED, ExportStatus.PROCESSING)

    def can_transition_to(self, target: "ExportStatus") -> bool:
        if self.is_finished():
            return False
        return _STATUS_RANK[target] > _STATUS_RANK[self]


_STATUS_RANK = {
    ExportStatus.PENDING: 0,
    ExportStatus.DISPATCHED: 1,
    ExportStatus.PROCESSING: 2,
    ExportStatus.COMPLETED: 3,
    ExportStatus.FAILED: 3,
}

MAX_ERROR_MESSAGE_LENGTH = 1000


class ReportExport(Base):
    """A persisted export attempt with progress counters and retry lineage."""

    __tablename__ = "report_exports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    report_type: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    report_descriptor: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    # Audit copy of the compiled query; never re-executed from text
    query_sql: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    query_bindings: Mapped[Optional[List[Any]]] = mapped_column(JSON, nullable=True)

    status: Mapped[ExportStatus] = mapped_column(
        SQLEnum(ExportStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ExportStatus.PENDING,
        index=True,
    )
    output_disk: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    output_path: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    rows_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_rows: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    failed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    retried_from_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("report_exports.id"), nullable=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    retried_from: Mapped[Optional["ReportExport"]] = relationship(
        "ReportExport", remote_side=[id], back_populates="retries"
    )
    retries: Mapped[List["ReportExport"]] = relationship(
        "ReportExport", back_populates="retried_from", order_by="ReportExport.id"
    )

    # ===== STATUS =====

    def transition_to(self, target: ExportStatus) -> None:
        """Move forward along PENDING -> DISPATCHED -> PROCESSING -> COMPLETED|FAILED."""
        current = self.status or ExportStatus.PENDING
        if not current.can_transition_to(target):
            raise InvalidTransitionError(
                f"Export {self.id} cannot move from {current.value} to {target.value}"
            )
        self.status = target

    def mark_as_dispatched(self) -> None:
        self.transition_to(ExportStatus.DISPATCHED)

    def mark_as_processing(self) -> None:
        self.transition_to(ExportStatus.PROCESSING)
        self.started_at = datetime.now(timezone.utc)

    def mark_as_completed(self) -> None:
        self.transition_to(ExportStatus.COMPLETED)
        self.completed_at = datetime.now(timezone.utc)

    def mark_as_failed(self, message: str) -> None:
        self.transition_to(ExportStatus.FAILED)
        self.failed_at = datetime.now(timezone.utc)
        if message and len(message) > MAX_ERROR_MESSAGE_LENGTH:
            message = message[: MAX_ERROR_MESSAGE_LENGTH - 3] + "..."
        self.error_message = message or "Unknown error"

    def update_progress(self, rows_processed: int, total_rows: Optional[int] = None) -> None:
        self.rows_processed = rows_processed
        if total_rows is not None:
            self.total_rows = total_rows

    def is_finished(self) -> bool:
        return self.status.is_finished()

    def is_running(self) -> bool:
        return self.status.is_running()

    def can_retry(self) -> bool:
        return self.status == ExportStatus.FAILED

    def progress_percentage(self) -> Optional[float]:
        if not self.total_rows:
            return None
        return round((self.rows_processed or 0) / self.total_rows * 100, 2)

    def __repr__(self) -> str:
        return f"<ReportExport id={self.id} type={self.report_type} status={self.status}>"

"""Pydantic schemas for the exports API."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from reportable.exports.models import ExportStatus


class ReportExportRead(BaseModel):
    """An export record with its derived progress flags."""

    id: int
    report_type: str
    status: ExportStatus
    output_disk: Optional[str] = None
    output_path: Optional[str] = None
    rows_processed: int = 0
    total_rows: Optional[int] = None
    progress_percentage: Optional[float] = None
    is_finished: bool = False
    is_running: bool = False
    can_retry: bool = False
    error_message: Optional[str] = None
    query_sql: Optional[str] = None
    query_bindings: Optional[List[Any]] = None
    report_descriptor: Dict[str, Any] = {}
    retried_from_id: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    # The model exposes these as methods; read them as values
    @field_validator("progress_percentage", "is_finished", "is_running", "can_retry", mode="before")
    @classmethod
    def call_methods(cls, v):
        return v() if callable(v) else v


class ReportExportSummary(BaseModel):
    """Lightweight export listing entry."""

    id: int
    report_type: str
    status: ExportStatus
    rows_processed: int = 0
    total_rows: Optional[int] = None
    output_path: Optional[str] = None
    retried_from_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

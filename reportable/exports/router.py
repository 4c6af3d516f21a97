# reportable/exports/router.py
"""API router for export records: listing, inspection and retry."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from reportable.core.dependencies import DWSessionDep, SessionDep
from reportable.core.exceptions import ExportNotRetryableError
from reportable.exports.models import ExportStatus
from reportable.exports.schemas import ReportExportRead, ReportExportSummary
from reportable.exports.service import ReportExportService

router = APIRouter(prefix="/exports", tags=["exports"])


# Dependency functions
def get_export_service(db: SessionDep, dw_db: DWSessionDep) -> ReportExportService:
    return ReportExportService(db, dw_db)


# ===== EXPORT ENDPOINTS =====


@router.get("/", response_model=List[ReportExportSummary])
def get_exports(
    skip: int = 0,
    limit: int = 100,
    status: Optional[ExportStatus] = None,
    service: ReportExportService = Depends(get_export_service),
) -> List[ReportExportSummary]:
    """List exports, newest first."""
    return service.get_all(skip=skip, limit=limit, status=status)


@router.get("/{export_id}", response_model=ReportExportRead)
def get_export(export_id: int, service: ReportExportService = Depends(get_export_service)) -> ReportExportRead:
    export = service.get(export_id)
    if not export:
        raise HTTPException(status_code=404, detail="Export not found")
    return export


@router.get("/{export_id}/retries", response_model=List[ReportExportSummary])
def get_export_retries(
    export_id: int, service: ReportExportService = Depends(get_export_service)
) -> List[ReportExportSummary]:
    """Exports created by retrying this one, oldest first."""
    export = service.get(export_id)
    if not export:
        raise HTTPException(status_code=404, detail="Export not found")
    return service.get_retries(export)


@router.post("/{export_id}/retry", response_model=ReportExportRead, status_code=201)
def retry_export(export_id: int, service: ReportExportService = Depends(get_export_service)) -> ReportExportRead:
    """Dispatch a new export for the same report, linked to the failed one."""
    export = service.get(export_id)
    if not export:
        raise HTTPException(status_code=404, detail="Export not found")
    try:
        return service.retry(export)
    except ExportNotRetryableError as e:
        raise HTTPException(status_code=409, detail=str(e))

# reportable/exports/dao.py
"""Data Access Object for export records."""

from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from reportable.core.base_dao import BaseDAO
from reportable.exports.models import ReportExport


class ReportExportDAO(BaseDAO[ReportExport]):
    """DAO for export record operations."""

    def __init__(self, db_session: Session):
        super().__init__(ReportExport, db_session)

    def get_retries(self, export_id: int) -> List[ReportExport]:
        """Exports created as retries of ``export_id``, oldest first."""
        query = (
            select(ReportExport)
            .where(ReportExport.retried_from_id == export_id)
            .order_by(ReportExport.id)
        )
        return list(self.db.execute(query).scalars().all())

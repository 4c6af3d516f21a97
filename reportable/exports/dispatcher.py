"""Hand-off of export records to the job queue."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from reportable.core.config import ReportableConfig, get_config

logger = logging.getLogger(__name__)


class ExportDispatcher(ABC):
    """Enqueues one unit of work per export record id."""

    @abstractmethod
    def dispatch(self, export_id: int) -> None:
        ...


class CeleryExportDispatcher(ExportDispatcher):
    """Sends exports to the Celery ``process_report_export`` task.

    ``connection`` is a broker URL; when set, jobs are published there instead
    of on the Celery app's default broker.
    """

    def __init__(
        self,
        queue: Optional[str] = None,
        config: Optional[ReportableConfig] = None,
        connection: Optional[str] = None,
    ):
        config = config or get_config()
        self.queue = queue or config.queue
        self.connection = connection or config.connection

    def dispatch(self, export_id: int) -> None:
        # Imported here: the task module imports this package
        from task_queue.tasks.exports import process_report_export

        if self.connection:
            with process_report_export.app.connection_for_write(self.connection) as conn:
                result = process_report_export.apply_async(args=[export_id], queue=self.queue, connection=conn)
        else:
            result = process_report_export.apply_async(args=[export_id], queue=self.queue)
        logger.info("Queued export %s on '%s' as task %s", export_id, self.queue, result.id)

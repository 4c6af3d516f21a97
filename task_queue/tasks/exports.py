"""
Report export tasks
"""

import logging
from pathlib import Path

from celery import Task, shared_task

from reportable.core.config import get_config
from reportable.core.exceptions import InvalidTransitionError
from reportable.exports.dao import ReportExportDAO
from reportable.exports.executor import ExportExecutor
from reportable.exports.service import ReportExportService
from task_queue.config.celery_app import app  # noqa: F401
from task_queue.config.db import get_db_session, get_dw_db_session

# Configure logging
logger = logging.getLogger('task_queue.tasks.exports')
logger.setLevel(logging.INFO)

# Ensure log directory exists
log_dir = Path(__file__).resolve().parent.parent / 'logs'
log_dir.mkdir(exist_ok=True)

# Add file handler for export tasks
file_handler = logging.FileHandler(log_dir / 'export_tasks.log')
file_handler.setFormatter(logging.Formatter(
    '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
))
logger.addHandler(file_handler)


class ExportTask(Task):
    """Marks the export FAILED when the task dies without recording it."""

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        if isinstance(exc, InvalidTransitionError):
            # Another run owns the record
            return

        export_id = args[0] if args else kwargs.get('export_id')
        db = get_db_session()
        try:
            export = ReportExportDAO(db).get_by_id(export_id)
            if export is not None and not export.is_finished():
                export.mark_as_failed(str(exc) or type(exc).__name__)
                db.commit()
                logger.warning(f"Export {export_id} marked failed after task {task_id} failed: {exc}")
        except Exception as e:
            logger.exception(f"Could not mark export {export_id} failed: {str(e)}")
        finally:
            db.close()


@shared_task(bind=True, base=ExportTask, name='task_queue.tasks.exports.process_report_export')
def process_report_export(self, export_id):
    """
    Run one export record to completion

    Args:
        export_id: The ID of the export record to process

    Returns:
        dict: The export result
    """
    logger.info(f"Processing export {export_id} (task {self.request.id})")

    db = get_db_session()
    dw_db = get_dw_db_session()
    try:
        service = ReportExportService(db, dw_db, config=get_config())
        result = ExportExecutor(service).run_by_id(export_id)
        result.raise_for_failure()

        logger.info(f"Export {export_id} completed successfully. Result: {result.to_dict()}")
        return result.to_dict()

    except Exception as e:
        logger.error(f"Export {export_id} failed: {str(e)}")
        raise

    finally:
        db.close()
        dw_db.close()

"""
Celery application for report exports
"""

from celery import Celery
import os
from pathlib import Path

os.environ.setdefault('PROJECT_ROOT', str(Path(__file__).resolve().parent.parent.parent))

# Create the Celery app
app = Celery('reportable_tasks')

# Load configuration from Python module
app.config_from_object('task_queue.config.celeryconfig')

# Auto-discover tasks from all registered apps
app.autodiscover_tasks(['task_queue.tasks'])

if __name__ == '__main__':
    app.start()

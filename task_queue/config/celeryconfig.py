"""
Celery configuration settings
"""
import os

from reportable.core.config import get_config

# Broker settings
broker_url = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
result_backend = os.environ.get('CELERY_RESULT_BACKEND', 'redis://localhost:6379/0')

# Task serialization format
task_serializer = 'json'
accept_content = ['json']
result_serializer = 'json'
timezone = 'UTC'
enable_utc = True

# Worker settings
worker_concurrency = int(os.environ.get('CELERY_WORKER_CONCURRENCY', '4'))
worker_max_tasks_per_child = 100  # Maximum number of tasks a worker process executes before it's replaced
worker_prefetch_multiplier = 1  # Exports are long; take one at a time

# Task routing
task_routes = {
    'task_queue.tasks.exports.*': {'queue': get_config().queue},
}

# Task monitoring
task_send_sent_event = True  # Required for task monitoring tools like Flower
task_track_started = True
worker_send_task_events = True

# Task time limits
task_time_limit = int(os.environ.get('CELERY_TASK_TIME_LIMIT', '3600'))  # Hard time limit in seconds
task_soft_time_limit = int(os.environ.get('CELERY_TASK_SOFT_TIME_LIMIT', '3000'))  # Soft time limit

# Task result settings
result_expires = 60 * 60 * 24 * 7  # Results expire in 1 week

#!/usr/bin/env python
"""
Worker process starter script for the export queue
"""

import argparse
import sys
from pathlib import Path

# Ensure the task_queue package is in the Python path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from reportable.core.config import get_config
from task_queue.config.celery_app import app


def start_worker(queue=None, concurrency=None, loglevel='INFO'):
    """Start a Celery worker process"""
    queue = queue or get_config().queue
    print(f"Starting worker for queue: {queue}")

    worker_args = [
        'worker',
        f'--queues={queue}',
        f'--loglevel={loglevel}',
        '--hostname=%h_%n',  # Hostname format: hostname_queuename
    ]

    if concurrency:
        worker_args.append(f'--concurrency={concurrency}')

    app.worker_main(argv=worker_args)


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Start the report export worker')

    parser.add_argument(
        '--queue',
        type=str,
        default=None,
        help='Queue to process (defaults to REPORTABLE_QUEUE)'
    )

    parser.add_argument(
        '--concurrency',
        type=int,
        help='Number of worker processes'
    )

    parser.add_argument(
        '--loglevel',
        type=str,
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Log level'
    )

    args = parser.parse_args()

    start_worker(
        queue=args.queue,
        concurrency=args.concurrency,
        loglevel=args.loglevel
    )

"""
QueueDispatcher: fans worker tasks out onto the durable queue, one message each.
Sends run concurrently; tasks already sent are never recalled.
"""

import concurrent.futures
import logging
import time
from typing import List

import clients.sqs_client as sqs_client
from models.quiz_models import WorkerTask
from utils.exceptions import QueueUnavailableError

logger = logging.getLogger(__name__)

MAX_SEND_THREADS = 8


class QueueDispatcher:

    def __init__(self, queue=None):
        self.queue = queue or sqs_client

    def ensure_available(self) -> None:
        """Raise QueueUnavailableError if no queue is configured."""
        self.queue.get_queue_url()

    def dispatch(self, tasks: List[WorkerTask]) -> int:
        """
        Send every task. Returns the number sent.

        Raises:
            QueueUnavailableError: no queue configured, or at least one send
                failed (sent_count says how many made it).
        """
        if not tasks:
            return 0
        self.ensure_available()

        start = time.time()
        sent = 0
        failures = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=min(MAX_SEND_THREADS, len(tasks))) as executor:
            future_to_task = {
                executor.submit(self.queue.send_task, task.to_message(), task.quiz_id, task.worker_index): task
                for task in tasks
            }
            for future in concurrent.futures.as_completed(future_to_task):
                task = future_to_task[future]
                try:
                    message_id = future.result()
                    sent += 1
                    logger.info(f"📤 Sent task {task.worker_index} for quiz {task.quiz_id} ({message_id})")
                except Exception as e:
                    logger.error(f"❌ Failed to send task {task.worker_index} for quiz {task.quiz_id}: {e}")
                    failures.append((task.worker_index, str(e)))

        if failures:
            quiz_id = tasks[0].quiz_id
            raise QueueUnavailableError(
                f"Failed to dispatch {len(failures)} of {len(tasks)} worker tasks",
                sent_count=sent,
                context={"quiz_id": quiz_id, "failed_workers": sorted(i for i, _ in failures)},
            )

        logger.info(f"✅ Dispatched {sent} worker tasks in {time.time() - start:.2f}s")
        return sent

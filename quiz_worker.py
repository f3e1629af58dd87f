"""
Quiz worker entrypoint.

  handler(event, context)  AWS Lambda SQS trigger. Returns batchItemFailures so
                           only the failed records are redelivered.
  poll()                   Long-polling consumer for running outside Lambda:
                               python quiz_worker.py
"""

import logging
import sys
import time
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

import clients.sqs_client as sqs_client
from models.quiz_models import WorkerTask
from services.quiz_worker import QuizWorker
from utils import settings

logger = logging.getLogger(__name__)
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)

POLL_ERROR_BACKOFF_SECONDS = 5

_worker = None


def get_worker() -> QuizWorker:
    global _worker
    if _worker is None:
        _worker = QuizWorker()
    return _worker


def process_message(body: str, worker: Optional[QuizWorker] = None) -> None:
    """
    Run one message body through the worker.
    Malformed bodies are logged and dropped; redelivery would never fix them.
    """
    try:
        task = WorkerTask.from_message(body)
    except PydanticValidationError as e:
        logger.error(f"❌ Dropping malformed worker task: {e}")
        return
    (worker or get_worker()).consume(task)


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, List[Dict[str, str]]]:
    records = event.get("Records", [])
    logger.info(f"Received {len(records)} SQS records")
    failures = []
    for record in records:
        message_id = record.get("messageId")
        try:
            process_message(record["body"])
        except Exception as e:
            logger.error(f"❌ Record {message_id} failed, leaving for redelivery: {e}", exc_info=True)
            failures.append({"itemIdentifier": message_id})
    return {"batchItemFailures": failures}


def poll(max_batches: Optional[int] = None, wait_seconds: int = 20) -> int:
    """
    Receive, process and delete messages until interrupted (or max_batches
    receives have run). Failed messages are not deleted and reappear after the
    visibility timeout. Returns the number of messages processed successfully.
    """
    processed = 0
    batches = 0
    logger.info("👂 Polling quiz worker queue")
    while max_batches is None or batches < max_batches:
        batches += 1
        try:
            messages = sqs_client.receive(wait_seconds=wait_seconds)
        except Exception as e:
            logger.error(f"❌ Receive failed: {e}")
            time.sleep(POLL_ERROR_BACKOFF_SECONDS)
            continue

        for message in messages:
            try:
                process_message(message["Body"])
            except Exception as e:
                logger.error(f"❌ Message {message.get('MessageId')} failed, will be redelivered: {e}", exc_info=True)
                continue
            processed += 1
            try:
                sqs_client.delete(message["ReceiptHandle"])
            except Exception as e:
                logger.error(f"❌ Could not delete message {message.get('MessageId')}, it will be redelivered: {e}")
    return processed


if __name__ == "__main__":
    try:
        poll()
    except KeyboardInterrupt:
        logger.info("Worker stopped")

"""
SQS client for the quiz worker queue.
Each worker task is one message; the queue gives at-least-once delivery.
"""

import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from utils import settings
from utils.exceptions import QueueUnavailableError

logger = logging.getLogger(__name__)

_sqs_client = None


def _get_sqs_client():
    global _sqs_client
    if _sqs_client is None:
        kwargs: Dict[str, Any] = {"region_name": settings.AWS_REGION}
        if settings.SQS_ENDPOINT_URL:
            # ElasticMQ / localstack for local development
            kwargs["endpoint_url"] = settings.SQS_ENDPOINT_URL
        _sqs_client = boto3.client("sqs", **kwargs)
    return _sqs_client


def get_queue_url() -> str:
    """Configured worker queue URL, or QueueUnavailableError."""
    if not settings.QUIZ_QUEUE_URL:
        raise QueueUnavailableError("QUIZ_QUEUE_URL not configured")
    return settings.QUIZ_QUEUE_URL


def send_task(body: str, quiz_id: str, worker_index: int) -> str:
    """Send one task message. Returns the SQS MessageId."""
    queue_url = get_queue_url()
    try:
        response = _get_sqs_client().send_message(
            QueueUrl=queue_url,
            MessageBody=body,
            MessageAttributes={
                "quizId": {"DataType": "String", "StringValue": quiz_id},
                "workerIndex": {"DataType": "Number", "StringValue": str(worker_index)},
            },
        )
    except (ClientError, BotoCoreError) as e:
        logger.error(f"❌ Failed to send task to worker queue: {e}")
        raise QueueUnavailableError(
            f"Failed to send task to worker queue: {e}",
            context={"quiz_id": quiz_id, "worker_index": worker_index},
        )
    return response["MessageId"]


def receive(max_messages: int = 10, wait_seconds: int = 20, visibility_timeout: Optional[int] = None) -> List[Dict[str, Any]]:
    """Long-poll the worker queue. Returns raw SQS message dicts."""
    kwargs: Dict[str, Any] = {
        "QueueUrl": get_queue_url(),
        "MaxNumberOfMessages": max_messages,
        "WaitTimeSeconds": wait_seconds,
        "MessageAttributeNames": ["All"],
    }
    if visibility_timeout is not None:
        kwargs["VisibilityTimeout"] = visibility_timeout
    response = _get_sqs_client().receive_message(**kwargs)
    return response.get("Messages", [])


def delete(receipt_handle: str) -> None:
    """Acknowledge a processed message."""
    _get_sqs_client().delete_message(QueueUrl=get_queue_url(), ReceiptHandle=receipt_handle)

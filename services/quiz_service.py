"""
QuizService: request-side orchestration for quiz generation.

  1. create_quiz:  rate limit, retrieve chunks, create the record, split and dispatch
  2. get_status:   progress derived from persisted question rows
  3. list_quizzes: a user's quizzes, newest first
  4. delete_quiz:  remove a quiz and its collected questions

Blocking client calls run in worker threads via asyncio.to_thread.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import clients.redis_client as redis_client
import clients.supabase_client as supabase_client
from models.quiz_models import GenerateQuizRequest, GenerateQuizResponse, Quiz, QuizStatus
from services import work_distributor
from services.chunk_retriever import ChunkRetriever
from services.completion_tracker import progress_percent
from services.queue_dispatcher import QueueDispatcher
from utils import settings
from utils.exceptions import NotFoundError, QueueUnavailableError, RateLimitError

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 100


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def is_stalled(quiz: Quiz, now: Optional[datetime] = None, stall_seconds: Optional[int] = None) -> bool:
    """True once a quiz has been processing for longer than stall_seconds."""
    if quiz.status != QuizStatus.PROCESSING:
        return False
    now = now or datetime.now(timezone.utc)
    limit = stall_seconds if stall_seconds is not None else settings.QUIZ_STALL_SECONDS
    return (now - _as_utc(quiz.created_at)).total_seconds() > limit


def _iso(value: Optional[datetime]) -> Optional[str]:
    return _as_utc(value).isoformat() if value else None


class QuizService:

    def __init__(
        self,
        store=None,
        retriever: Optional[ChunkRetriever] = None,
        dispatcher: Optional[QueueDispatcher] = None,
        rate_limiter=None,
    ):
        self.store = store or supabase_client
        self.retriever = retriever or ChunkRetriever(store=self.store)
        self.dispatcher = dispatcher or QueueDispatcher()
        self.rate_limiter = rate_limiter or redis_client

    # =========================================================================
    # Create
    # =========================================================================

    async def create_quiz(self, request: GenerateQuizRequest) -> GenerateQuizResponse:
        start = time.time()
        user_id = request.user_id

        allowed, retry_after = await self.rate_limiter.check_rate_limit(user_id)
        if not allowed:
            raise RateLimitError(retry_after, context={"user_id": user_id})

        # Fail before creating anything if the queue is not configured
        self.dispatcher.ensure_available()

        chunks = await asyncio.to_thread(
            self.retriever.retrieve, request.topic, request.question_count, user_id
        )
        logger.info(f"⏱️ Retrieval took {time.time() - start:.2f}s")

        metadata = request.to_metadata()
        quiz = await asyncio.to_thread(self.store.create_quiz_record, user_id, metadata)

        distribution = work_distributor.calculate_distribution(metadata.question_count, len(chunks))
        tasks = work_distributor.create_tasks(chunks, metadata, distribution, quiz.id)

        try:
            await asyncio.to_thread(self.dispatcher.dispatch, tasks)
        except QueueUnavailableError as e:
            logger.error(f"❌ Dispatch failed for quiz {quiz.id} after {e.sent_count} sends: {e.message}")
            await asyncio.to_thread(self.store.mark_quiz_error, quiz.id, f"Failed to start quiz generation: {e.message}")
            e.context["quiz_id"] = quiz.id
            raise

        logger.info(
            f"✅ Quiz {quiz.id} dispatched to {distribution.worker_count} workers in {time.time() - start:.2f}s"
        )
        return GenerateQuizResponse(
            quiz_id=quiz.id,
            status=QuizStatus.PROCESSING,
            message=f"Quiz generation started with {distribution.worker_count} workers",
        )

    # =========================================================================
    # Read
    # =========================================================================

    async def get_status(self, quiz_id: str) -> Dict[str, Any]:
        quiz = await asyncio.to_thread(self.store.get_quiz_record, quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz {quiz_id} not found", context={"quiz_id": quiz_id})

        expected = quiz.metadata.question_count
        if quiz.status == QuizStatus.PROCESSING:
            persisted = await asyncio.to_thread(self.store.count_quiz_questions, quiz_id)
        else:
            persisted = len(quiz.questions)

        payload: Dict[str, Any] = {
            "quizId": quiz.id,
            "status": quiz.status.value,
            "progress": progress_percent(persisted, expected, quiz.status),
            "metadata": quiz.metadata.model_dump(mode="json", by_alias=True),
            "createdAt": _iso(quiz.created_at),
            "updatedAt": _iso(quiz.updated_at),
        }
        if quiz.status == QuizStatus.READY:
            payload["questions"] = [q.model_dump(mode="json", by_alias=True) for q in quiz.questions]
            payload["completedAt"] = _iso(quiz.completed_at)
        elif quiz.status == QuizStatus.ERROR:
            payload["error"] = quiz.error
        else:
            payload["collectedQuestions"] = persisted
            payload["stalled"] = is_stalled(quiz)
        return payload

    async def list_quizzes(self, user_id: str, limit: int = 20) -> Dict[str, Any]:
        limit = max(1, min(limit, MAX_LIST_LIMIT))
        quizzes = await asyncio.to_thread(self.store.list_user_quizzes, user_id, limit)
        return {
            "userId": user_id,
            "quizzes": [
                {
                    "quizId": q.id,
                    "quizName": q.metadata.quiz_name,
                    "status": q.status.value,
                    "difficulty": q.metadata.difficulty.value,
                    "questionCount": q.metadata.question_count,
                    "createdAt": _iso(q.created_at),
                    "completedAt": _iso(q.completed_at),
                }
                for q in quizzes
            ],
        }

    # =========================================================================
    # Delete
    # =========================================================================

    async def delete_quiz(self, quiz_id: str) -> Dict[str, Any]:
        deleted = await asyncio.to_thread(self.store.delete_quiz, quiz_id)
        if not deleted:
            raise NotFoundError(f"Quiz {quiz_id} not found", context={"quiz_id": quiz_id})
        logger.info(f"🗑️ Deleted quiz {quiz_id}")
        return {"message": "Quiz deleted successfully", "quizId": quiz_id}

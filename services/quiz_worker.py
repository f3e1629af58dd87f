"""
QuizWorker: processes one WorkerTask.

generate -> validate (one corrective retry) -> append -> check completion -> finalize.
Safe under redelivery: tasks for quizzes that are gone or no longer
processing are skipped, and finalization is idempotent.
"""

import logging
import time
from typing import List, Optional

import clients.llm_client as llm_client
import clients.supabase_client as supabase_client
from models.quiz_models import Question, QuizStatus, WorkerTask
from prompts.quiz_prompts import build_quiz_prompt, build_retry_prompt
from services import response_validator
from services.completion_tracker import CompletionTracker
from services.finalizer import Finalizer
from utils import settings
from utils.exceptions import FinalizationError, ParseError

logger = logging.getLogger(__name__)

POLICY_SKIP = "skip"
POLICY_FAIL_QUIZ = "fail_quiz"


class QuizWorker:

    def __init__(self, store=None, llm=None, parse_failure_policy: Optional[str] = None):
        self.store = store or supabase_client
        self.llm = llm or llm_client
        self.parse_failure_policy = parse_failure_policy or settings.QUIZ_PARSE_FAILURE_POLICY
        self.tracker = CompletionTracker(self.store)
        self.finalizer = Finalizer(self.store)

    def consume(self, task: WorkerTask) -> int:
        """
        Process one task. Returns the number of questions appended.
        Raises on transient failures so the queue redelivers the message.
        """
        start = time.time()
        quiz_id = task.quiz_id
        logger.info(
            f"🚀 Worker {task.worker_index} started for quiz {quiz_id}: "
            f"{task.question_count} questions from {len(task.chunks)} chunks"
        )

        quiz = self.store.get_quiz_record(quiz_id)
        if quiz is None:
            logger.warning(f"Quiz {quiz_id} no longer exists, dropping task {task.worker_index}")
            return 0
        if quiz.status != QuizStatus.PROCESSING:
            logger.info(f"Quiz {quiz_id} is {quiz.status.value}, ignoring task {task.worker_index}")
            return 0

        questions = self._generate(task)
        if questions is None:
            return 0

        appended = self.store.append_quiz_questions(quiz_id, questions, task.worker_index)
        logger.info(f"💾 Worker {task.worker_index} appended {appended} questions to quiz {quiz_id}")

        if self.tracker.is_complete(quiz_id):
            try:
                self.finalizer.finalize(quiz_id)
            except FinalizationError as e:
                # finalize() has already marked the quiz error
                logger.error(f"❌ Finalization failed for quiz {quiz_id}: {e.message}")

        logger.info(f"✅ Worker {task.worker_index} finished quiz {quiz_id} in {time.time() - start:.2f}s")
        return appended

    def _generate(self, task: WorkerTask) -> Optional[List[Question]]:
        """Model call plus validation, retried once with a corrective prompt. None means give up."""
        prompt = build_quiz_prompt(
            task.chunks, task.question_count, task.difficulty, task.topic, task.additional_instructions
        )
        raw = self.llm.generate(prompt)
        try:
            return response_validator.parse(raw, task.question_count)
        except ParseError as first:
            logger.warning(
                f"⚠️ Worker {task.worker_index} got invalid output for quiz {task.quiz_id}, retrying: {first.message}"
            )
            retry_prompt = build_retry_prompt(
                task.chunks,
                task.question_count,
                task.difficulty,
                first.message,
                task.topic,
                task.additional_instructions,
            )
            raw = self.llm.generate(retry_prompt)
            try:
                return response_validator.parse(raw, task.question_count)
            except ParseError as second:
                self._handle_parse_failure(task, second)
                return None

    def _handle_parse_failure(self, task: WorkerTask, error: ParseError) -> None:
        if self.parse_failure_policy == POLICY_FAIL_QUIZ:
            message = f"Worker {task.worker_index} produced invalid questions: {error.message}"
            if self.store.mark_quiz_error(task.quiz_id, message):
                logger.error(f"❌ Quiz {task.quiz_id} marked error: {message}")
            return
        logger.error(
            f"❌ Worker {task.worker_index} skipped for quiz {task.quiz_id} after retry: {error.message}"
        )

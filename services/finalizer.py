"""
Finalizer: turns collected questions into the final quiz, exactly once.

Any number of workers may call finalize() for the same quiz. Only the caller
whose conditional processing -> ready update matches the row wins; every
other call is a no-op.
"""

import logging
import random
from typing import List, Tuple

import clients.supabase_client as supabase_client
from models.quiz_models import FinalizeResult, Question, QuizStatus
from utils.exceptions import FinalizationError

logger = logging.getLogger(__name__)


def dedupe_questions(questions: List[Question]) -> Tuple[List[Question], int]:
    """Drop repeats by trimmed, case-insensitive text, keeping the first. Returns (unique, removed)."""
    seen = set()
    unique = []
    for q in questions:
        key = q.dedup_key()
        if key in seen:
            continue
        seen.add(key)
        unique.append(q)
    return unique, len(questions) - len(unique)


class Finalizer:

    def __init__(self, store=None):
        self.store = store or supabase_client

    def finalize(self, quiz_id: str) -> FinalizeResult:
        quiz = self.store.get_quiz_record(quiz_id)
        if quiz is None:
            logger.warning(f"Quiz {quiz_id} not found, nothing to finalize")
            return FinalizeResult(quiz_id=quiz_id, finalized=False)
        if quiz.status != QuizStatus.PROCESSING:
            logger.info(f"Quiz {quiz_id} already {quiz.status.value}, skipping finalization")
            return FinalizeResult(quiz_id=quiz_id, finalized=False)

        collected = self.store.get_quiz_questions(quiz_id)
        if not collected:
            error = FinalizationError(quiz_id)
            self.store.mark_quiz_error(quiz_id, error.message)
            logger.error(f"❌ Quiz {quiz_id}: {error.message}")
            raise error

        unique, removed = dedupe_questions(collected)
        if removed:
            logger.info(f"🔍 Removed {removed} duplicate questions from quiz {quiz_id}")

        random.shuffle(unique)

        target = quiz.metadata.question_count
        truncated = 0
        if len(unique) > target:
            truncated = len(unique) - target
            unique = unique[:target]
        elif len(unique) < target:
            logger.warning(f"⚠️ Quiz {quiz_id} finalized with {len(unique)}/{target} questions")

        if not self.store.complete_quiz(quiz_id, unique):
            logger.info(f"Quiz {quiz_id} was finalized by another worker")
            return FinalizeResult(quiz_id=quiz_id, finalized=False)

        logger.info(f"✅ Quiz {quiz_id} ready with {len(unique)} questions")
        return FinalizeResult(
            quiz_id=quiz_id,
            finalized=True,
            question_count=len(unique),
            duplicates_removed=removed,
            truncated=truncated,
        )

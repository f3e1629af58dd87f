"""
CompletionTracker: decides whether all workers for a quiz are done, from
persisted state only.
"""

import logging

import clients.supabase_client as supabase_client
from models.quiz_models import QuizStatus

logger = logging.getLogger(__name__)


def progress_percent(persisted: int, expected: int, status: QuizStatus = QuizStatus.PROCESSING) -> int:
    """100 when ready, 0 on error, otherwise the collected share capped at 99."""
    if status == QuizStatus.READY:
        return 100
    if status == QuizStatus.ERROR or expected <= 0:
        return 0
    return min(round(persisted / expected * 100), 99)


class CompletionTracker:

    def __init__(self, store=None):
        self.store = store or supabase_client

    def is_complete(self, quiz_id: str) -> bool:
        quiz = self.store.get_quiz_record(quiz_id)
        if quiz is None:
            logger.warning(f"Quiz {quiz_id} not found while checking completion")
            return False

        expected = quiz.metadata.question_count
        persisted = self.store.count_quiz_questions(quiz_id)
        logger.info(f"📊 Quiz {quiz_id}: {persisted}/{expected} questions collected")
        return persisted >= expected

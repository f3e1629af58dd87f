"""
Supabase persistence for quizzes.

Tables (see sql/quiz_schema.sql):
  quizzes         one row per quiz; metadata and the final question list are jsonb
  quiz_questions  one row per accepted question, appended by workers
  files           uploaded source files (read-only here)

Workers only ever insert into quiz_questions, so concurrent appends never
overwrite each other. The quiz row's status changes only through
transition_quiz_status(), a single UPDATE ... WHERE status = <expected>.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

from models.quiz_models import Question, Quiz, QuizMetadata, QuizStatus
from utils import settings
from utils.exceptions import StorageError

logger = logging.getLogger(__name__)

_supabase_client: Optional[Client] = None


def get_supabase() -> Client:
    global _supabase_client
    if _supabase_client is None:
        url = settings.SUPABASE_URL
        key = settings.SUPABASE_KEY
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
        _supabase_client = create_client(url, key)
    return _supabase_client


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _execute(query, action: str):
    """Run a PostgREST query, wrapping any failure in StorageError."""
    try:
        return query.execute()
    except Exception as e:
        logger.error(f"❌ Supabase {action} failed: {e}")
        raise StorageError(f"Failed to {action}: {e}")


def _row_to_quiz(row: Dict[str, Any]) -> Quiz:
    return Quiz(
        id=str(row["id"]),
        user_id=row["user_id"],
        metadata=QuizMetadata.model_validate(row["metadata"]),
        status=QuizStatus(row["status"]),
        questions=[Question.model_validate(q) for q in (row.get("questions") or [])],
        error=row.get("error"),
        created_at=row["created_at"],
        updated_at=row.get("updated_at"),
        completed_at=row.get("completed_at"),
    )


# Files

def get_enabled_file_ids(user_id: str) -> List[str]:
    """
    IDs of the user's files that finished processing and are enabled.
    A missing is_enabled flag counts as enabled.
    """
    response = _execute(
        get_supabase().table(settings.FILES_TABLE)
        .select("id")
        .eq("user_id", user_id)
        .eq("status", "ready")
        .or_("is_enabled.is.null,is_enabled.eq.true"),
        "query enabled files",
    )
    file_ids = [str(row["id"]) for row in (response.data or [])]
    logger.info(f"📁 Found {len(file_ids)} enabled and ready files for user {user_id}")
    return file_ids


# Quiz records

def create_quiz_record(user_id: str, metadata: QuizMetadata) -> Quiz:
    """Insert a new quiz in processing state and return it."""
    now = _now()
    row = {
        "id": str(uuid.uuid4()),
        "user_id": user_id,
        "metadata": metadata.model_dump(mode="json", by_alias=True),
        "status": QuizStatus.PROCESSING.value,
        "questions": [],
        "created_at": now,
        "updated_at": now,
    }
    response = _execute(get_supabase().table(settings.QUIZ_TABLE).insert(row), "create quiz record")
    if not response.data:
        raise StorageError(f"Supabase insert failed or row not returned: {response}")
    logger.info(f"📝 Created quiz record {row['id']}")
    return _row_to_quiz(response.data[0])


def get_quiz_record(quiz_id: str) -> Optional[Quiz]:
    response = _execute(
        get_supabase().table(settings.QUIZ_TABLE).select("*").eq("id", quiz_id).limit(1),
        f"get quiz {quiz_id}",
    )
    if not response.data:
        return None
    return _row_to_quiz(response.data[0])


def list_user_quizzes(user_id: str, limit: int = 100) -> List[Quiz]:
    response = _execute(
        get_supabase().table(settings.QUIZ_TABLE)
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .limit(limit),
        f"list quizzes for user {user_id}",
    )
    return [_row_to_quiz(row) for row in (response.data or [])]


def delete_quiz(quiz_id: str) -> bool:
    """Delete a quiz and its collected questions. Returns False if it did not exist."""
    _execute(
        get_supabase().table(settings.QUIZ_QUESTIONS_TABLE).delete().eq("quiz_id", quiz_id),
        f"delete questions for quiz {quiz_id}",
    )
    response = _execute(
        get_supabase().table(settings.QUIZ_TABLE).delete().eq("id", quiz_id),
        f"delete quiz {quiz_id}",
    )
    return bool(response.data)


# Collected questions

def append_quiz_questions(quiz_id: str, questions: List[Question], worker_index: Optional[int] = None) -> int:
    """Insert one row per question. Additive; never touches other workers' rows."""
    if not questions:
        return 0
    rows = [
        {
            "quiz_id": quiz_id,
            "worker_index": worker_index,
            "question": q.model_dump(mode="json", by_alias=True),
        }
        for q in questions
    ]
    _execute(
        get_supabase().table(settings.QUIZ_QUESTIONS_TABLE).insert(rows),
        f"append questions to quiz {quiz_id}",
    )
    _execute(
        get_supabase().table(settings.QUIZ_TABLE).update({"updated_at": _now()}).eq("id", quiz_id),
        f"touch quiz {quiz_id}",
    )
    return len(rows)


def count_quiz_questions(quiz_id: str) -> int:
    response = _execute(
        get_supabase().table(settings.QUIZ_QUESTIONS_TABLE)
        .select("id", count="exact")
        .eq("quiz_id", quiz_id),
        f"count questions for quiz {quiz_id}",
    )
    return response.count or 0


def get_quiz_questions(quiz_id: str) -> List[Question]:
    """All collected questions in insertion order."""
    response = _execute(
        get_supabase().table(settings.QUIZ_QUESTIONS_TABLE)
        .select("question, created_at")
        .eq("quiz_id", quiz_id)
        .order("created_at")
        .order("id"),
        f"load questions for quiz {quiz_id}",
    )
    return [Question.model_validate(row["question"]) for row in (response.data or [])]


# Status transitions

def transition_quiz_status(
    quiz_id: str,
    expected: QuizStatus,
    new_status: QuizStatus,
    fields: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    Compare-and-swap on status: UPDATE quizzes SET ... WHERE id = :id AND status = :expected.
    Returns True only for the caller whose update matched the row.
    """
    update = {"status": new_status.value, "updated_at": _now()}
    if fields:
        update.update(fields)
    response = _execute(
        get_supabase().table(settings.QUIZ_TABLE)
        .update(update)
        .eq("id", quiz_id)
        .eq("status", expected.value),
        f"transition quiz {quiz_id} {expected.value} -> {new_status.value}",
    )
    return bool(response.data)


def complete_quiz(quiz_id: str, questions: List[Question]) -> bool:
    """processing -> ready, storing the final list and completion time in the same update."""
    return transition_quiz_status(
        quiz_id,
        QuizStatus.PROCESSING,
        QuizStatus.READY,
        {
            "questions": [q.model_dump(mode="json", by_alias=True) for q in questions],
            "completed_at": _now(),
        },
    )


def mark_quiz_error(quiz_id: str, message: str) -> bool:
    """processing -> error. A quiz that already finished is left alone."""
    return transition_quiz_status(
        quiz_id,
        QuizStatus.PROCESSING,
        QuizStatus.ERROR,
        {"error": message},
    )

"""
In-memory stand-ins for the store, vector index, embedder, queue, language
model and rate limiter. Same call signatures as the client modules.
"""

import json
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from models.quiz_models import Question, Quiz, QuizMetadata, QuizStatus
from utils.exceptions import QueueUnavailableError


def question_dict(text: str, difficulty: str = "medium") -> Dict[str, Any]:
    return {
        "questionText": text,
        "options": [f"{text} A", f"{text} B", f"{text} C", f"{text} D"],
        "correctAnswer": 1,
        "explanation": f"Because of {text}",
        "difficulty": difficulty,
    }


def questions_json(texts: List[str], difficulty: str = "medium") -> str:
    return json.dumps({"questions": [question_dict(t, difficulty) for t in texts]})


def make_question(text: str) -> Question:
    return Question.model_validate(question_dict(text))


class FakeStore:

    def __init__(self, enabled_files: Optional[Dict[str, List[str]]] = None):
        self.enabled_files = enabled_files or {}
        self.quizzes: Dict[str, Quiz] = {}
        self.rows: Dict[str, List[Dict[str, Any]]] = {}
        self.complete_calls = 0
        self._lock = threading.Lock()

    def get_enabled_file_ids(self, user_id: str) -> List[str]:
        return list(self.enabled_files.get(user_id, []))

    def create_quiz_record(self, user_id: str, metadata: QuizMetadata) -> Quiz:
        now = datetime.now(timezone.utc)
        quiz = Quiz(
            id=str(uuid.uuid4()),
            user_id=user_id,
            metadata=metadata,
            status=QuizStatus.PROCESSING,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self.quizzes[quiz.id] = quiz
            self.rows[quiz.id] = []
        return quiz

    def get_quiz_record(self, quiz_id: str) -> Optional[Quiz]:
        with self._lock:
            return self.quizzes.get(quiz_id)

    def list_user_quizzes(self, user_id: str, limit: int = 100) -> List[Quiz]:
        with self._lock:
            owned = [q for q in self.quizzes.values() if q.user_id == user_id]
        owned.sort(key=lambda q: q.created_at, reverse=True)
        return owned[:limit]

    def delete_quiz(self, quiz_id: str) -> bool:
        with self._lock:
            self.rows.pop(quiz_id, None)
            return self.quizzes.pop(quiz_id, None) is not None

    def append_quiz_questions(self, quiz_id: str, questions: List[Question], worker_index: Optional[int] = None) -> int:
        with self._lock:
            bucket = self.rows.setdefault(quiz_id, [])
            for q in questions:
                bucket.append({"worker_index": worker_index, "question": q})
        return len(questions)

    def count_quiz_questions(self, quiz_id: str) -> int:
        with self._lock:
            return len(self.rows.get(quiz_id, []))

    def get_quiz_questions(self, quiz_id: str) -> List[Question]:
        with self._lock:
            return [row["question"] for row in self.rows.get(quiz_id, [])]

    def transition_quiz_status(
        self,
        quiz_id: str,
        expected: QuizStatus,
        new_status: QuizStatus,
        fields: Optional[Dict[str, Any]] = None,
    ) -> bool:
        with self._lock:
            quiz = self.quizzes.get(quiz_id)
            if quiz is None or quiz.status != expected:
                return False
            update = {"status": new_status, "updated_at": datetime.now(timezone.utc)}
            update.update(fields or {})
            self.quizzes[quiz_id] = quiz.model_copy(update=update)
            return True

    def complete_quiz(self, quiz_id: str, questions: List[Question]) -> bool:
        self.complete_calls += 1
        return self.transition_quiz_status(
            quiz_id,
            QuizStatus.PROCESSING,
            QuizStatus.READY,
            {"questions": list(questions), "completed_at": datetime.now(timezone.utc)},
        )

    def mark_quiz_error(self, quiz_id: str, message: str) -> bool:
        return self.transition_quiz_status(quiz_id, QuizStatus.PROCESSING, QuizStatus.ERROR, {"error": message})


def hit(chunk_id: str, score: float, file_id: str = "file-1", with_text: bool = True) -> Dict[str, Any]:
    metadata = {"fileId": file_id}
    if with_text:
        metadata["text"] = f"content of {chunk_id}"
    return {"id": chunk_id, "score": score, "metadata": metadata}


class FakeVectorIndex:

    def __init__(self, search_hits: Optional[List[Dict[str, Any]]] = None, sample_hits: Optional[List[Dict[str, Any]]] = None):
        self.search_hits = search_hits or []
        self.sample_hits = sample_hits or []
        self.search_calls: List[Dict[str, Any]] = []
        self.sample_calls: List[Dict[str, Any]] = []

    def search(self, embedding, top_k, file_ids=None, namespace="default"):
        self.search_calls.append(
            {"embedding": embedding, "top_k": top_k, "file_ids": file_ids, "namespace": namespace}
        )
        return [dict(h) for h in self.search_hits[:top_k]]

    def random_sample(self, file_ids, count, namespace="default"):
        self.sample_calls.append({"file_ids": file_ids, "count": count, "namespace": namespace})
        return [dict(h) for h in self.sample_hits[:count]]


class FakeEmbedder:

    def __init__(self):
        self.calls: List[List[str]] = []

    def embed(self, texts, model=None):
        self.calls.append(list(texts))
        return [[0.1, 0.2, 0.3] for _ in texts]


class FakeQueue:
    """Records sent bodies. fail_workers lists worker indexes whose send raises."""

    def __init__(self, configured: bool = True, fail_workers: Optional[List[int]] = None):
        self.configured = configured
        self.fail_workers = set(fail_workers or [])
        self.sent: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def get_queue_url(self) -> str:
        if not self.configured:
            raise QueueUnavailableError("QUIZ_QUEUE_URL not configured")
        return "https://sqs.test/queue"

    def send_task(self, body: str, quiz_id: str, worker_index: int) -> str:
        if worker_index in self.fail_workers:
            raise QueueUnavailableError("send failed")
        with self._lock:
            self.sent.append({"body": body, "quiz_id": quiz_id, "worker_index": worker_index})
            return f"msg-{len(self.sent)}"

    def bodies(self) -> List[str]:
        with self._lock:
            return [m["body"] for m in sorted(self.sent, key=lambda m: m["worker_index"])]


class FakeLLM:
    """Returns scripted responses in order, or whatever respond(prompt) returns."""

    def __init__(self, responses: Optional[List[str]] = None, respond: Optional[Callable[[str], str]] = None):
        self.responses = list(responses or [])
        self.respond = respond
        self.prompts: List[str] = []
        self._lock = threading.Lock()

    def generate(self, prompt: str, model_key: Optional[str] = None) -> str:
        with self._lock:
            self.prompts.append(prompt)
            if self.respond is not None:
                return self.respond(prompt)
            return self.responses.pop(0)


class FakeRateLimiter:

    def __init__(self, allowed: bool = True, retry_after: int = 0):
        self.allowed = allowed
        self.retry_after = retry_after
        self.calls: List[str] = []

    async def check_rate_limit(self, user_id: str, max_requests=None, window_seconds=None):
        self.calls.append(user_id)
        return (True, 0) if self.allowed else (False, self.retry_after)

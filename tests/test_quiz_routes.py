import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

import routes.quiz_routes as quiz_routes
from main import app
from services.chunk_retriever import ChunkRetriever
from services.queue_dispatcher import QueueDispatcher
from services.quiz_service import QuizService
from tests.fakes import FakeEmbedder, FakeQueue, FakeRateLimiter, FakeStore, FakeVectorIndex, hit


class TestQuizRoutes(unittest.TestCase):

    def setUp(self):
        self.store = FakeStore(enabled_files={"user-1": ["file-1"]})
        self.queue = FakeQueue()
        self.rate_limiter = FakeRateLimiter()
        index = FakeVectorIndex(sample_hits=[hit(f"c{i}", 0.0) for i in range(30)])
        service = QuizService(
            store=self.store,
            retriever=ChunkRetriever(vector_index=index, embedder=FakeEmbedder(), store=self.store),
            dispatcher=QueueDispatcher(self.queue),
            rate_limiter=self.rate_limiter,
        )
        patcher = patch.object(quiz_routes, "quiz_service", service)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.client = TestClient(app)

    def _body(self, **overrides):
        body = {
            "userId": "user-1",
            "questionCount": 10,
            "quizName": "Genetics",
            "minutes": 20,
            "difficulty": "easy",
        }
        body.update(overrides)
        return body

    def test_create_returns_202(self):
        response = self.client.post("/api/v1/quizzes", json=self._body())
        self.assertEqual(response.status_code, 202)
        data = response.json()
        self.assertEqual(data["status"], "processing")
        self.assertIn(data["quizId"], self.store.quizzes)
        self.assertEqual(len(self.queue.sent), 2)

    def test_unsupported_question_count(self):
        response = self.client.post("/api/v1/quizzes", json=self._body(questionCount=15))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "INVALID_REQUEST")
        self.assertEqual(self.store.quizzes, {})

    def test_blank_quiz_name(self):
        response = self.client.post("/api/v1/quizzes", json=self._body(quizName="   "))
        self.assertEqual(response.status_code, 400)

    def test_minutes_out_of_range(self):
        response = self.client.post("/api/v1/quizzes", json=self._body(minutes=500))
        self.assertEqual(response.status_code, 400)

    def test_unknown_difficulty(self):
        response = self.client.post("/api/v1/quizzes", json=self._body(difficulty="brutal"))
        self.assertEqual(response.status_code, 400)

    def test_no_enabled_files(self):
        response = self.client.post("/api/v1/quizzes", json=self._body(userId="user-9"))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "NO_ENABLED_FILES")

    def test_rate_limited(self):
        self.rate_limiter.allowed = False
        self.rate_limiter.retry_after = 42
        response = self.client.post("/api/v1/quizzes", json=self._body())
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.json()["error"], "RATE_LIMITED")
        self.assertEqual(response.headers["Retry-After"], "42")

    def test_queue_unavailable(self):
        self.queue.configured = False
        response = self.client.post("/api/v1/quizzes", json=self._body())
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["error"], "QUEUE_UNAVAILABLE")

    def test_status_and_list_and_delete(self):
        quiz_id = self.client.post("/api/v1/quizzes", json=self._body()).json()["quizId"]

        status = self.client.get(f"/api/v1/quizzes/{quiz_id}")
        self.assertEqual(status.status_code, 200)
        self.assertEqual(status.json()["progress"], 0)

        listing = self.client.get("/api/v1/quizzes", params={"userId": "user-1"})
        self.assertEqual(listing.status_code, 200)
        self.assertEqual([q["quizId"] for q in listing.json()["quizzes"]], [quiz_id])

        deleted = self.client.delete(f"/api/v1/quizzes/{quiz_id}")
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(self.client.get(f"/api/v1/quizzes/{quiz_id}").status_code, 404)

    def test_list_requires_user(self):
        self.assertEqual(self.client.get("/api/v1/quizzes").status_code, 400)

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")


if __name__ == "__main__":
    unittest.main()

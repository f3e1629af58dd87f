import threading
import unittest

from models.quiz_models import Difficulty, QuizMetadata, QuizStatus
from services.completion_tracker import CompletionTracker, progress_percent
from services.finalizer import Finalizer, dedupe_questions
from tests.fakes import FakeStore, make_question
from utils.exceptions import FinalizationError


def _new_quiz(store, count=10):
    metadata = QuizMetadata(quiz_name="Chem", minutes=20, difficulty=Difficulty.HARD, question_count=count)
    return store.create_quiz_record("user-1", metadata)


class TestCompletionTracker(unittest.TestCase):

    def setUp(self):
        self.store = FakeStore()
        self.tracker = CompletionTracker(self.store)

    def test_incomplete_until_count_reached(self):
        quiz = _new_quiz(self.store, 10)
        self.store.append_quiz_questions(quiz.id, [make_question(f"Q{i}") for i in range(5)], 0)
        self.assertFalse(self.tracker.is_complete(quiz.id))
        self.store.append_quiz_questions(quiz.id, [make_question(f"R{i}") for i in range(5)], 1)
        self.assertTrue(self.tracker.is_complete(quiz.id))

    def test_overfill_is_complete(self):
        quiz = _new_quiz(self.store, 2)
        self.store.append_quiz_questions(quiz.id, [make_question(f"Q{i}") for i in range(3)], 0)
        self.assertTrue(self.tracker.is_complete(quiz.id))

    def test_missing_quiz(self):
        self.assertFalse(self.tracker.is_complete("nope"))

    def test_progress_percent(self):
        self.assertEqual(progress_percent(5, 10), 50)
        self.assertEqual(progress_percent(10, 10), 99)
        self.assertEqual(progress_percent(0, 10), 0)
        self.assertEqual(progress_percent(3, 10, QuizStatus.READY), 100)
        self.assertEqual(progress_percent(7, 10, QuizStatus.ERROR), 0)


class TestFinalizer(unittest.TestCase):

    def setUp(self):
        self.store = FakeStore()
        self.finalizer = Finalizer(self.store)

    def test_dedupe_keeps_first_case_insensitive(self):
        questions = [make_question("What is pH?"), make_question("  what is PH? "), make_question("What is a mole?")]
        unique, removed = dedupe_questions(questions)
        self.assertEqual(removed, 1)
        self.assertEqual([q.question_text for q in unique], ["What is pH?", "What is a mole?"])

    def test_finalize_marks_ready(self):
        quiz = _new_quiz(self.store, 10)
        self.store.append_quiz_questions(quiz.id, [make_question(f"Q{i}") for i in range(10)], 0)
        result = self.finalizer.finalize(quiz.id)

        self.assertTrue(result.finalized)
        self.assertEqual(result.question_count, 10)
        stored = self.store.get_quiz_record(quiz.id)
        self.assertEqual(stored.status, QuizStatus.READY)
        self.assertEqual(len(stored.questions), 10)
        self.assertIsNotNone(stored.completed_at)

    def test_truncates_overfill(self):
        quiz = _new_quiz(self.store, 10)
        self.store.append_quiz_questions(quiz.id, [make_question(f"Q{i}") for i in range(12)], 0)
        result = self.finalizer.finalize(quiz.id)
        self.assertEqual(result.truncated, 2)
        self.assertEqual(len(self.store.get_quiz_record(quiz.id).questions), 10)

    def test_accepts_underfill_after_dedup(self):
        quiz = _new_quiz(self.store, 4)
        texts = ["A", "B", "C", "a"]
        self.store.append_quiz_questions(quiz.id, [make_question(t) for t in texts], 0)
        result = self.finalizer.finalize(quiz.id)
        self.assertTrue(result.finalized)
        self.assertEqual(result.duplicates_removed, 1)
        self.assertEqual(len(self.store.get_quiz_record(quiz.id).questions), 3)

    def test_empty_quiz_is_marked_error(self):
        quiz = _new_quiz(self.store, 10)
        with self.assertRaises(FinalizationError):
            self.finalizer.finalize(quiz.id)
        stored = self.store.get_quiz_record(quiz.id)
        self.assertEqual(stored.status, QuizStatus.ERROR)
        self.assertEqual(stored.error, "No questions found for finalization")

    def test_second_call_is_noop(self):
        quiz = _new_quiz(self.store, 2)
        self.store.append_quiz_questions(quiz.id, [make_question("Q1"), make_question("Q2")], 0)
        self.assertTrue(self.finalizer.finalize(quiz.id).finalized)
        first = self.store.get_quiz_record(quiz.id)

        self.assertFalse(self.finalizer.finalize(quiz.id).finalized)
        self.assertEqual(self.store.get_quiz_record(quiz.id), first)

    def test_concurrent_finalize_marks_ready_exactly_once(self):
        quiz = _new_quiz(self.store, 10)
        self.store.append_quiz_questions(quiz.id, [make_question(f"Q{i}") for i in range(10)], 0)

        barrier = threading.Barrier(2)
        original_get = self.store.get_quiz_record

        def racing_get(quiz_id):
            record = original_get(quiz_id)
            # both callers read "processing" before either writes
            barrier.wait(timeout=5)
            return record

        self.store.get_quiz_record = racing_get
        results = []

        def run():
            results.append(self.finalizer.finalize(quiz.id))

        threads = [threading.Thread(target=run) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        self.store.get_quiz_record = original_get
        self.assertEqual(sum(1 for r in results if r.finalized), 1)
        self.assertEqual(self.store.complete_calls, 2)
        stored = self.store.get_quiz_record(quiz.id)
        self.assertEqual(stored.status, QuizStatus.READY)
        texts = [q.question_text for q in stored.questions]
        self.assertEqual(len(texts), len(set(texts)))


if __name__ == "__main__":
    unittest.main()

import unittest

from models.quiz_models import Difficulty, QuizMetadata, RetrievedChunk
from services.work_distributor import calculate_distribution, create_tasks


def _chunks(n):
    return [RetrievedChunk(id=f"c{i}", text=f"text {i}", file_id="f1", score=1.0) for i in range(n)]


def _metadata(count, topic=None):
    return QuizMetadata(
        quiz_name="Biology",
        minutes=15,
        difficulty=Difficulty.MEDIUM,
        question_count=count,
        topic=topic,
    )


class TestCalculateDistribution(unittest.TestCase):

    def test_table_sizes(self):
        self.assertEqual(calculate_distribution(10, 10).worker_count, 2)
        self.assertEqual(calculate_distribution(20, 20).worker_count, 4)
        self.assertEqual(calculate_distribution(30, 30).worker_count, 6)

    def test_fallback_for_unlisted_size(self):
        with self.assertLogs("services.work_distributor", level="WARNING"):
            dist = calculate_distribution(22, 22)
        self.assertEqual(dist.worker_count, 5)
        self.assertEqual(dist.questions_per_worker, 5)
        self.assertEqual(dist.chunks_per_worker, 5)

    def test_fallback_is_capped(self):
        self.assertEqual(calculate_distribution(50, 50).worker_count, 6)

    def test_clamped_when_few_chunks(self):
        dist = calculate_distribution(30, 3)
        self.assertEqual(dist.worker_count, 3)
        self.assertEqual(dist.chunks_per_worker, 1)
        self.assertEqual(dist.questions_per_worker, 10)

    def test_single_chunk_means_single_worker(self):
        dist = calculate_distribution(20, 1)
        self.assertEqual(dist.worker_count, 1)
        self.assertEqual(dist.questions_per_worker, 20)

    def test_rejects_empty_input(self):
        with self.assertRaises(ValueError):
            calculate_distribution(10, 0)


class TestCreateTasks(unittest.TestCase):

    def test_question_allocation_sums_exactly(self):
        for count in (10, 20, 30):
            chunks = _chunks(count)
            dist = calculate_distribution(count, len(chunks))
            tasks = create_tasks(chunks, _metadata(count), dist, "quiz-1")
            self.assertEqual(sum(t.question_count for t in tasks), count)
            self.assertTrue(all(t.question_count >= 1 for t in tasks))

    def test_twenty_two_questions_split(self):
        chunks = _chunks(22)
        dist = calculate_distribution(22, 22)
        tasks = create_tasks(chunks, _metadata(22), dist, "quiz-1")
        self.assertEqual([t.question_count for t in tasks], [5, 5, 5, 5, 2])
        self.assertEqual([t.worker_index for t in tasks], [0, 1, 2, 3, 4])

    def test_chunk_slices_partition_the_array(self):
        for chunk_count in (1, 2, 3, 7, 10, 11, 19, 20, 29, 30, 45):
            for count in (10, 20, 22, 30):
                chunks = _chunks(chunk_count)
                dist = calculate_distribution(count, chunk_count)
                tasks = create_tasks(chunks, _metadata(count), dist, "quiz-1")
                flattened = [c.id for t in tasks for c in t.chunks]
                self.assertEqual(flattened, [c.id for c in chunks], (chunk_count, count))
                self.assertTrue(all(t.chunks for t in tasks), (chunk_count, count))
                self.assertEqual(sum(t.question_count for t in tasks), count)

    def test_tasks_carry_quiz_settings(self):
        chunks = _chunks(10)
        metadata = _metadata(10, topic="photosynthesis")
        tasks = create_tasks(chunks, metadata, calculate_distribution(10, 10), "quiz-9")
        for task in tasks:
            self.assertEqual(task.quiz_id, "quiz-9")
            self.assertEqual(task.difficulty, Difficulty.MEDIUM)
            self.assertEqual(task.topic, "photosynthesis")

    def test_task_message_uses_camel_case(self):
        chunks = _chunks(10)
        task = create_tasks(chunks, _metadata(10), calculate_distribution(10, 10), "quiz-1")[0]
        body = task.to_message()
        self.assertIn('"quizId":"quiz-1"', body)
        self.assertIn('"workerIndex":0', body)
        self.assertEqual(type(task).from_message(body), task)


if __name__ == "__main__":
    unittest.main()

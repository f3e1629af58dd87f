"""
WorkDistributor: splits a quiz into per-worker tasks.
"""

import logging
import math
from typing import List

from models.quiz_models import Distribution, QuizMetadata, RetrievedChunk, WorkerTask

logger = logging.getLogger(__name__)

# Workers per supported quiz size
WORKER_TABLE = {10: 2, 20: 4, 30: 6}
QUESTIONS_PER_WORKER_FALLBACK = 5
MAX_WORKERS = 6


def _fallback_worker_count(question_count: int) -> int:
    return min(math.ceil(question_count / QUESTIONS_PER_WORKER_FALLBACK), MAX_WORKERS)


def calculate_distribution(question_count: int, chunk_count: int) -> Distribution:
    """
    Worker count from WORKER_TABLE (or the fallback), reduced until the last
    worker still gets at least one chunk and at least one question.
    """
    if question_count < 1:
        raise ValueError(f"question_count must be positive, got {question_count}")
    if chunk_count < 1:
        raise ValueError(f"chunk_count must be positive, got {chunk_count}")

    worker_count = WORKER_TABLE.get(question_count)
    if worker_count is None:
        worker_count = _fallback_worker_count(question_count)
        logger.warning(
            f"⚠️ No worker table entry for {question_count} questions, using fallback of {worker_count} workers"
        )

    planned = worker_count
    while worker_count > 1:
        chunks_per_worker = math.ceil(chunk_count / worker_count)
        questions_per_worker = math.ceil(question_count / worker_count)
        last = worker_count - 1
        if last * chunks_per_worker < chunk_count and last * questions_per_worker < question_count:
            break
        worker_count -= 1

    if worker_count != planned:
        logger.info(f"Reduced workers from {planned} to {worker_count} for {chunk_count} chunks")

    return Distribution(
        worker_count=worker_count,
        chunks_per_worker=math.ceil(chunk_count / worker_count),
        questions_per_worker=math.ceil(question_count / worker_count),
    )


def create_tasks(
    chunks: List[RetrievedChunk],
    metadata: QuizMetadata,
    distribution: Distribution,
    quiz_id: str,
) -> List[WorkerTask]:
    """
    Contiguous chunk slices, one per worker. The last worker takes the rest of
    the chunks and exactly the remaining questions.
    """
    tasks = []
    last = distribution.worker_count - 1
    for i in range(distribution.worker_count):
        start = i * distribution.chunks_per_worker
        end = len(chunks) if i == last else min(start + distribution.chunks_per_worker, len(chunks))

        if i == last:
            question_count = metadata.question_count - distribution.questions_per_worker * last
        else:
            question_count = distribution.questions_per_worker

        tasks.append(WorkerTask(
            quiz_id=quiz_id,
            chunks=chunks[start:end],
            difficulty=metadata.difficulty,
            topic=metadata.topic,
            additional_instructions=metadata.additional_instructions,
            question_count=question_count,
            worker_index=i,
        ))

    logger.info(
        f"📦 Split quiz {quiz_id} into {len(tasks)} tasks: "
        f"questions {[t.question_count for t in tasks]}, chunks {[len(t.chunks) for t in tasks]}"
    )
    return tasks

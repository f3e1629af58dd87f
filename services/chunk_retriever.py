"""
ChunkRetriever: picks the source chunks a quiz is generated from.

  focused  (topic given): embed the topic, similarity search over the user's
           enabled files, keep the chunks above the largest score drop,
           then resize to exactly question_count.
  general  (no topic):    unranked random sample across enabled files.
"""

import logging
import random
import time
from typing import Any, Dict, List, Optional

import clients.openai_client as openai_client
import clients.pinecone_client as pinecone_client
import clients.supabase_client as supabase_client
from models.quiz_models import RetrievedChunk
from utils.exceptions import NoContentFoundError, NoEnabledFilesError, ValidationError

logger = logging.getLogger(__name__)

SEARCH_MULTIPLIER = 4
MAX_SEARCH_RESULTS = 100
MIN_SCORE_DROP = 0.01
MIN_QUESTION_COUNT = 1
MAX_QUESTION_COUNT = 50
MISSING_TEXT_PLACEHOLDER = "Text not available"


def find_adaptive_threshold(hits: List[Dict[str, Any]], min_drop: float = MIN_SCORE_DROP) -> List[Dict[str, Any]]:
    """
    Sort hits by score (highest first) and cut at the largest drop between
    neighbours that exceeds min_drop. No such drop keeps everything.
    At least one hit is always kept.
    """
    if len(hits) <= 1:
        return list(hits)

    ranked = sorted(hits, key=lambda h: h.get("score") or 0.0, reverse=True)
    breakpoint_at = len(ranked)
    max_drop = 0.0
    for i in range(len(ranked) - 1):
        drop = (ranked[i].get("score") or 0.0) - (ranked[i + 1].get("score") or 0.0)
        if drop > max_drop and drop > min_drop:
            max_drop = drop
            breakpoint_at = i + 1

    relevant = ranked[:max(breakpoint_at, 1)]
    logger.info(f"📊 Adaptive threshold: {len(relevant)}/{len(hits)} chunks, max drop: {max_drop:.3f}")
    return relevant


def repeat_to_target(items: List[Any], target: int) -> List[Any]:
    """
    Resize to exactly target items. Larger inputs are shuffled and cut.
    Smaller inputs are filled with successive shuffled passes, so every item
    appears once before any item appears twice.
    """
    if not items or target <= 0:
        return []
    if len(items) >= target:
        return random.sample(items, target)

    logger.info(f"🔄 Repeating {len(items)} chunks to reach {target}")
    result: List[Any] = []
    while len(result) < target:
        shuffled = list(items)
        random.shuffle(shuffled)
        result.extend(shuffled[:target - len(result)])
    return result


def _to_chunk(hit: Dict[str, Any]) -> RetrievedChunk:
    metadata = hit.get("metadata") or {}
    return RetrievedChunk(
        id=str(hit["id"]),
        text=metadata.get("text") or MISSING_TEXT_PLACEHOLDER,
        file_id=str(metadata.get("fileId", "")),
        score=hit.get("score"),
    )


class ChunkRetriever:

    def __init__(self, vector_index=None, embedder=None, store=None):
        self.vector_index = vector_index or pinecone_client
        self.embedder = embedder or openai_client
        self.store = store or supabase_client

    def retrieve(self, focus_area: Optional[str], question_count: int, user_id: str) -> List[RetrievedChunk]:
        if (
            isinstance(question_count, bool)
            or not isinstance(question_count, int)
            or not MIN_QUESTION_COUNT <= question_count <= MAX_QUESTION_COUNT
        ):
            raise ValidationError(
                f"Question count must be between {MIN_QUESTION_COUNT} and {MAX_QUESTION_COUNT}",
                context={"question_count": question_count},
            )

        start = time.time()
        namespace = pinecone_client.get_user_namespace(user_id)
        logger.info(f"🔧 Using namespace: {namespace}")

        file_ids = self.store.get_enabled_file_ids(user_id)
        if not file_ids:
            raise NoEnabledFilesError(user_id)
        logger.info(f"📚 Found {len(file_ids)} enabled files")

        focus = focus_area.strip() if focus_area else ""
        if focus:
            hits = self._search_focused(focus, question_count, file_ids, namespace)
        else:
            hits = self._search_general(question_count, file_ids, namespace)

        chunks = [_to_chunk(h) for h in hits]
        logger.info(
            f"✅ Retrieved {len(chunks)} chunks for quiz generation in {time.time() - start:.2f}s"
        )
        return chunks

    def _search_focused(
        self, focus: str, question_count: int, file_ids: List[str], namespace: str
    ) -> List[Dict[str, Any]]:
        logger.info(f"🎯 Searching for \"{focus}\" content")
        embedding = self.embedder.embed([focus])[0]
        top_k = min(question_count * SEARCH_MULTIPLIER, MAX_SEARCH_RESULTS)
        hits = self.vector_index.search(embedding, top_k, file_ids=file_ids, namespace=namespace)
        if not hits:
            raise NoContentFoundError(
                f"No content found for \"{focus}\". Try a broader search term.",
                context={"focus_area": focus},
            )
        relevant = find_adaptive_threshold(hits)
        return repeat_to_target(relevant, question_count)

    def _search_general(self, question_count: int, file_ids: List[str], namespace: str) -> List[Dict[str, Any]]:
        logger.info("🎲 Getting random content")
        hits = self.vector_index.random_sample(file_ids, question_count, namespace=namespace)
        if not hits:
            raise NoContentFoundError("No content available. Please check your files are processed.")
        return hits

"""
Pinecone access for quiz chunk retrieval.

Chunks live in one index, partitioned per user by namespace (user_<userId>),
with metadata {fileId, chunkIndex, text}. Two read paths:
  - search(): ranked similarity search restricted to a set of files
  - random_sample(): unranked sampling across files via random query vectors
"""

import logging
import random
from typing import List, Dict, Any, Optional

from pinecone import Pinecone

from utils import settings
from utils.exceptions import StorageError

logger = logging.getLogger(__name__)

_pc: Optional[Pinecone] = None
_index = None


def get_index():
    """Lazy-init the Pinecone index handle."""
    global _pc, _index
    if _index is None:
        if not settings.PINECONE_API_KEY:
            raise StorageError("PINECONE_API_KEY must be set", error_code="VECTOR_INDEX_UNAVAILABLE")
        _pc = Pinecone(api_key=settings.PINECONE_API_KEY)
        _index = _pc.Index(settings.PINECONE_INDEX_NAME)
        logger.info(f"Initialized Pinecone index {settings.PINECONE_INDEX_NAME}")
    return _index


def get_user_namespace(user_id: Optional[str] = None) -> str:
    """Namespace for user separation: user_<userId>, or 'default' for system chunks."""
    return f"user_{user_id}" if user_id else "default"


def get_filter_dict(file_ids: Optional[List[str]] = None) -> Dict[str, Any]:
    if not file_ids:
        return {}
    if len(file_ids) == 1:
        return {"fileId": {"$eq": file_ids[0]}}
    return {"fileId": {"$in": list(file_ids)}}


def _to_hit(match) -> Dict[str, Any]:
    return {
        "id": match.id,
        "score": match.score,
        "metadata": dict(match.metadata or {}),
    }


def search(
    embedding: List[float],
    top_k: int,
    file_ids: Optional[List[str]] = None,
    namespace: str = "default",
) -> List[Dict[str, Any]]:
    """
    Ranked similarity search.

    Args:
        embedding: Dense query embedding.
        top_k: Number of results to retrieve.
        file_ids: Restrict results to these source files.
        namespace: Per-user namespace.

    Returns:
        List of hits (dicts with id, score, metadata), highest score first.
    """
    query_kwargs: Dict[str, Any] = {
        "vector": embedding,
        "top_k": top_k,
        "include_metadata": True,
        "namespace": namespace,
    }
    filter_dict = get_filter_dict(file_ids)
    if filter_dict:
        query_kwargs["filter"] = filter_dict

    try:
        results = get_index().query(**query_kwargs)
    except StorageError:
        raise
    except Exception as e:
        logger.error(f"❌ Pinecone search failed: {e}")
        raise StorageError(f"Failed to search Pinecone: {e}", error_code="VECTOR_SEARCH_FAILED")

    hits = [_to_hit(m) for m in (results.matches or [])]
    # Drop anything outside the requested files in case the filter was ignored
    if file_ids:
        allowed = set(file_ids)
        hits = [h for h in hits if h["metadata"].get("fileId") in allowed]

    logger.info(f"🎯 Found {len(hits)} matching chunks (namespace: {namespace})")
    return hits


def _random_vector(dimension: int) -> List[float]:
    return [random.uniform(-1.0, 1.0) for _ in range(dimension)]


def _sample_file(file_id: str, count: int, namespace: str) -> Optional[List[Dict[str, Any]]]:
    """Random chunks from one file: query with a random vector, shuffle, take count. None if the query failed."""
    try:
        results = get_index().query(
            vector=_random_vector(settings.EMBEDDING_DIMENSION),
            top_k=count * 3,
            include_metadata=True,
            namespace=namespace,
            filter={"fileId": {"$eq": file_id}},
        )
    except StorageError:
        raise
    except Exception as e:
        logger.warning(f"⚠️ Could not get chunks from file {file_id}: {e}")
        return None

    matches = [m for m in (results.matches or []) if m.metadata]
    random.shuffle(matches)
    hits = []
    for match in matches[:count]:
        hit = _to_hit(match)
        hit["metadata"].setdefault("fileId", file_id)
        hits.append(hit)

    logger.info(f"📦 Retrieved {len(hits)} random chunks from file {file_id}")
    return hits


def random_sample(
    file_ids: List[str],
    count: int,
    namespace: str = "default",
) -> List[Dict[str, Any]]:
    """
    Unranked sampling across files. Files are visited in random order, each
    contributing up to ceil(count / len(file_ids)) chunks, until count is reached.
    """
    if not file_ids or count <= 0:
        return []

    per_file = max(1, -(-count // len(file_ids)))
    shuffled_ids = list(file_ids)
    random.shuffle(shuffled_ids)

    hits: List[Dict[str, Any]] = []
    failed = 0
    for file_id in shuffled_ids:
        if len(hits) >= count:
            break
        sampled = _sample_file(file_id, per_file, namespace)
        if sampled is None:
            failed += 1
            continue
        hits.extend(sampled)

    if failed == len(shuffled_ids):
        raise StorageError(
            f"Failed to sample chunks from any of {failed} files", error_code="VECTOR_SEARCH_FAILED"
        )

    random.shuffle(hits)
    return hits[:count]

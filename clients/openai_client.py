import logging
from typing import List, Dict, Any, Optional

from openai import OpenAI

from utils import settings
from utils.exceptions import StudiaError

logger = logging.getLogger(__name__)

_client: Optional[OpenAI] = None


def get_client() -> OpenAI:
    global _client
    if _client is None:
        if not settings.OPENAI_API_KEY:
            raise StudiaError("OPENAI_API_KEY not configured", error_code="LLM_UNAVAILABLE")
        _client = OpenAI(api_key=settings.OPENAI_API_KEY)
    return _client


def embed(texts: List[str], model: Optional[str] = None) -> List[List[float]]:
    """
    Embed texts with OpenAI (text-embedding-3-large by default).
    Args:
        texts: Strings to embed.
        model: Embedding model name.
    Returns:
        One vector per input, in input order.
    Raises:
        Exception if the API call fails.
    """
    if not texts:
        return []
    try:
        response = get_client().embeddings.create(
            model=model or settings.EMBEDDING_MODEL,
            input=texts,
        )
    except StudiaError:
        raise
    except Exception as e:
        raise Exception(f"OpenAI embedding failed: {e}")

    vectors = [item.embedding for item in sorted(response.data, key=lambda d: d.index)]
    if vectors and len(vectors[0]) != settings.EMBEDDING_DIMENSION:
        logger.warning(
            f"Embedding dimension {len(vectors[0])} does not match configured {settings.EMBEDDING_DIMENSION}"
        )
    return vectors


def generate_completion(
    messages: List[Dict[str, str]],
    model: str = "gpt-4o-mini",
    temperature: float = 0.7,
    max_tokens: int = 4000,
) -> Dict[str, Any]:
    """
    Run a chat completion and return the text plus token usage.
    Raises:
        Exception if the API call fails or returns no content.
    """
    try:
        response = get_client().chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except StudiaError:
        raise
    except Exception as e:
        raise Exception(f"OpenAI {model} failed: {e}")

    content = response.choices[0].message.content if response.choices else None
    if not content:
        raise Exception("No content received from OpenAI")

    usage = getattr(response, "usage", None)
    return {
        "text": content,
        "input_tokens": getattr(usage, "prompt_tokens", 0) or 0,
        "output_tokens": getattr(usage, "completion_tokens", 0) or 0,
    }

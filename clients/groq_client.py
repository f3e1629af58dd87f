import logging
from typing import List, Dict, Any, Optional

from groq import Groq

from utils import settings
from utils.exceptions import StudiaError

logger = logging.getLogger(__name__)

_client: Optional[Groq] = None


def get_client() -> Groq:
    global _client
    if _client is None:
        if not settings.GROQ_API_KEY:
            raise StudiaError("GROQ_API_KEY not configured", error_code="LLM_UNAVAILABLE")
        _client = Groq(api_key=settings.GROQ_API_KEY)
    return _client


def generate_completion(
    messages: List[Dict[str, str]],
    model: str = "openai/gpt-oss-120b",
    temperature: float = 0.7,
    max_tokens: int = 4096,
) -> Dict[str, Any]:
    """
    Run a Groq chat completion and return the text plus token usage.
    Raises:
        Exception if the API call fails or returns no content.
    """
    try:
        response = get_client().chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            stream=False
        )
    except StudiaError:
        raise
    except Exception as e:
        raise Exception(f"Groq {model} failed: {e}")

    content = response.choices[0].message.content if response.choices else None
    if not content:
        raise Exception("No content received from Groq")

    usage = getattr(response, "usage", None)
    return {
        "text": content,
        "input_tokens": getattr(usage, "prompt_tokens", 0) or 0,
        "output_tokens": getattr(usage, "completion_tokens", 0) or 0,
    }

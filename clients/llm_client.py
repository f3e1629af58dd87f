"""
Provider-agnostic entrypoint for quiz generation calls.
Picks OpenAI or Groq from utils.model_config and returns raw model text.
"""

import logging
import time
from typing import Optional

import clients.groq_client as groq_client
import clients.openai_client as openai_client
from utils import settings
from utils.model_config import DEFAULT_MODEL, ModelConfig, ModelProvider

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert educational content creator specializing in creating "
    "high-quality assessment questions. Always return valid JSON as requested."
)


def generate(prompt: str, model_key: Optional[str] = None) -> str:
    """
    Send a quiz prompt to the configured model.

    Args:
        prompt: Fully rendered user prompt.
        model_key: Key into MODEL_CONFIGS; defaults to QUIZ_MODEL.

    Returns:
        The model's raw text response (expected to contain JSON).
    """
    key = model_key or settings.QUIZ_MODEL or DEFAULT_MODEL
    config = ModelConfig.get_config(key)
    messages = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]

    start = time.time()
    if config["provider"] == ModelProvider.GROQ:
        result = groq_client.generate_completion(
            messages,
            model=config["model"],
            temperature=config["temperature"],
            max_tokens=config["max_tokens"],
        )
    else:
        result = openai_client.generate_completion(
            messages,
            model=config["model"],
            temperature=config["temperature"],
            max_tokens=config["max_tokens"],
        )
    elapsed_ms = int((time.time() - start) * 1000)

    cost = ModelConfig.estimate_cost(key, result["input_tokens"], result["output_tokens"])
    logger.info(
        f"📝 {config['model']} responded in {elapsed_ms}ms "
        f"({result['input_tokens']} in / {result['output_tokens']} out, ~${cost})"
    )
    return result["text"]

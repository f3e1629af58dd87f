"""
Model configuration and switching for quiz generation.
Centralized model management so workers and prompts agree on limits.
"""

from typing import Dict, Any, Optional
from enum import Enum

from utils import settings


class ModelProvider(str, Enum):
    OPENAI = "openai"
    GROQ = "groq"


# Model configurations
MODEL_CONFIGS: Dict[str, Dict[str, Any]] = {
    "gpt-4o-mini": {
        "provider": ModelProvider.OPENAI,
        "model": "gpt-4o-mini",
        "max_tokens": 4000,
        "cost_per_1k_input": 0.00015,
        "cost_per_1k_output": 0.0006,
        "temperature": 0.7
    },
    "gpt-4o": {
        "provider": ModelProvider.OPENAI,
        "model": "gpt-4o",
        "max_tokens": 4000,
        "cost_per_1k_input": 0.0025,
        "cost_per_1k_output": 0.01,
        "temperature": 0.7
    },
    "gpt-oss-120b": {
        "provider": ModelProvider.GROQ,
        "model": "openai/gpt-oss-120b",
        "max_tokens": 4096,
        "cost_per_1k_input": 0.00015,
        "cost_per_1k_output": 0.0006,
        "temperature": 0.7
    },
    "llama-4-scout": {
        "provider": ModelProvider.GROQ,
        "model": "meta-llama/llama-4-scout-17b-16e-instruct",
        "max_tokens": 4096,
        "cost_per_1k_input": 0.00011,
        "cost_per_1k_output": 0.00034,
        "temperature": 0.7
    }
}

DEFAULT_MODEL = "gpt-4o-mini"


class ModelConfig:
    """Model configuration manager"""

    @staticmethod
    def get_config(model_key: Optional[str] = None) -> Dict[str, Any]:
        """Get configuration for specified model, the QUIZ_MODEL setting, or default"""
        key = model_key or settings.QUIZ_MODEL or DEFAULT_MODEL

        if key not in MODEL_CONFIGS:
            raise ValueError(f"Unknown model: {key}. Available: {list(MODEL_CONFIGS.keys())}")

        return MODEL_CONFIGS[key]

    @staticmethod
    def estimate_cost(model_key: str, input_tokens: int, output_tokens: int) -> float:
        """Estimate cost for a request"""
        config = ModelConfig.get_config(model_key)

        input_cost = (input_tokens / 1000) * config["cost_per_1k_input"]
        output_cost = (output_tokens / 1000) * config["cost_per_1k_output"]

        return round(input_cost + output_cost, 4)

# Prompts module initialization

# Quiz Generation Prompts
from .quiz_prompts import (
    build_quiz_prompt,
    build_retry_prompt,
)

__all__ = [
    'build_quiz_prompt',
    'build_retry_prompt',
]

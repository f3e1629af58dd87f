"""
Prompts for worker-side quiz question generation.
"""

from typing import List, Optional

from models.quiz_models import Difficulty, RetrievedChunk


# ─── Difficulty maps ───────────────────────────────────────────────────────
_DIFFICULTY_SPECS = {
    Difficulty.EASY: {
        "cognitive": "comprehension and recall",
        "focus": "Test definitions, key facts, and basic understanding. Questions should be answerable after one reading.",
    },
    Difficulty.MEDIUM: {
        "cognitive": "application and analysis",
        "focus": "Test concept relationships, cause-and-effect, and application to new situations.",
    },
    Difficulty.HARD: {
        "cognitive": "synthesis and evaluation",
        "focus": "Test critical thinking, complex problem-solving, and integration of multiple concepts.",
    },
}

_OUTPUT_FORMAT = """{
  "questions": [
    {
      "questionText": "What is the main concept discussed in the content?",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": 0,
      "explanation": "Option A is correct because...",
      "difficulty": "medium"
    }
  ]
}"""


def _sources_block(chunks: List[RetrievedChunk]) -> str:
    return "\n\n---\n\n".join(
        f"=== Source {i + 1} ===\n{chunk.text}" for i, chunk in enumerate(chunks)
    )


def build_quiz_prompt(
    chunks: List[RetrievedChunk],
    question_count: int,
    difficulty: Difficulty,
    topic: Optional[str] = None,
    additional_instructions: Optional[str] = None,
) -> str:
    level = _DIFFICULTY_SPECS[Difficulty(difficulty)]
    difficulty_value = Difficulty(difficulty).value

    focus_lines = ""
    if topic:
        focus_lines += f"Focus: {topic}\n"
    if additional_instructions:
        focus_lines += f"Instructions: {additional_instructions}\n"

    return f"""Create exactly {question_count} {difficulty_value} multiple-choice quiz questions testing {level['cognitive']} from the provided content.

{level['focus']}

{focus_lines}
REQUIREMENTS:
1. Each question must have exactly 4 distinct, non-empty options
2. Only one option is correct; correctAnswer is its 0-based index (0-3)
3. Incorrect options must be plausible but clearly wrong
4. Every question needs a clear explanation of why the correct answer is right
5. Base every question on the provided content, not general knowledge
6. Each question must be self-contained and must not repeat another question
7. Set "difficulty" to "{difficulty_value}" for every question
8. Generate questions, options and explanations in the SAME LANGUAGE as the source content

CONTENT:
{_sources_block(chunks)}

Return your response in the following JSON format:
{_OUTPUT_FORMAT}

Generate exactly {question_count} questions. Do not include any text before or after the JSON."""


def build_retry_prompt(
    chunks: List[RetrievedChunk],
    question_count: int,
    difficulty: Difficulty,
    previous_error: str,
    topic: Optional[str] = None,
    additional_instructions: Optional[str] = None,
) -> str:
    """Corrective prompt used once after the first response failed validation."""
    base = build_quiz_prompt(chunks, question_count, difficulty, topic, additional_instructions)
    return f"""Previous attempt failed with error: {previous_error}

Please try again with more careful attention to the JSON format and the requirements.

{base}

CRITICAL: Ensure your response is valid JSON with no extra text before or after the JSON object."""

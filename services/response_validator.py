"""
ResponseValidator: turns raw language-model text into validated Question records.

The model is asked for {"questions": [...]}, but a bare array is accepted too,
as are the field names `question` and `correctIndex`. Validation is strict:
one bad element rejects the whole response.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from models.quiz_models import Difficulty, Question
from utils.exceptions import ParseError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"(?:^|\n)[ \t]*```(?:json|JSON)?[ \t]*\n(.*?)\n[ \t]*```", re.DOTALL)
_OPENERS = {"[": "]", "{": "}"}
_VALID_DIFFICULTIES = {d.value for d in Difficulty}


def strip_code_fences(text: str) -> str:
    """Body of the first fenced block, or the text unchanged when there is none."""
    match = _FENCE_RE.search(text)
    return (match.group(1) if match else text).strip()


def extract_json_region(text: str) -> Optional[str]:
    """
    First balanced [...] or {...} region, ignoring brackets inside JSON strings.
    Returns None if there is no opener or it is never closed.
    """
    start = None
    for i, ch in enumerate(text):
        if ch in _OPENERS:
            start = i
            break
    if start is None:
        return None

    stack = []
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in ("]", "}"):
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return text[start:i + 1]
    return None


def _pick(item: Dict[str, Any], *names: str) -> Any:
    for name in names:
        if name in item:
            return item[name]
    return None


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate_question(item: Any, index: int) -> Question:
    """Validate one element. Raises ParseError naming the index and the broken rule."""
    if not isinstance(item, dict):
        raise ParseError(f"Question {index + 1} is not an object", index=index, rule="not_an_object")

    text = _pick(item, "questionText", "question")
    if _is_blank(text):
        raise ParseError(
            f"Question {index + 1}: questionText must be a non-empty string", index=index, rule="question_text"
        )

    options = item.get("options")
    if not isinstance(options, list) or len(options) != 4:
        raise ParseError(
            f"Question {index + 1}: options must contain exactly 4 items", index=index, rule="option_count"
        )
    if any(_is_blank(opt) for opt in options):
        raise ParseError(
            f"Question {index + 1}: all options must be non-empty strings", index=index, rule="option_blank"
        )
    if len({opt.strip().lower() for opt in options}) != 4:
        raise ParseError(f"Question {index + 1}: all options must be unique", index=index, rule="option_unique")

    correct = _pick(item, "correctAnswer", "correctIndex")
    if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct <= 3:
        raise ParseError(
            f"Question {index + 1}: correctAnswer must be an integer between 0 and 3, got {correct!r}",
            index=index,
            rule="correct_answer",
        )

    explanation = item.get("explanation")
    if _is_blank(explanation):
        raise ParseError(
            f"Question {index + 1}: explanation must be a non-empty string", index=index, rule="explanation"
        )

    difficulty = item.get("difficulty")
    if not isinstance(difficulty, str) or difficulty not in _VALID_DIFFICULTIES:
        raise ParseError(
            f"Question {index + 1}: difficulty must be \"easy\", \"medium\", or \"hard\", got {difficulty!r}",
            index=index,
            rule="difficulty",
        )

    return Question(
        question_text=text.strip(),
        options=[opt.strip() for opt in options],
        correct_answer=correct,
        explanation=explanation.strip(),
        difficulty=Difficulty(difficulty),
    )


def parse(raw_text: str, expected_count: int) -> List[Question]:
    """
    Parse and validate model output.

    Raises:
        ParseError: no JSON found, malformed JSON, wrong shape, or any invalid element.
    """
    if not raw_text or not raw_text.strip():
        raise ParseError("Empty response from model", rule="empty_response")

    region = extract_json_region(strip_code_fences(raw_text))
    if region is None:
        raise ParseError("No valid JSON found in response", rule="no_json")

    try:
        parsed = json.loads(region)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in response: {e}", rule="invalid_json")

    if isinstance(parsed, dict):
        items = parsed.get("questions")
        if not isinstance(items, list):
            raise ParseError("Invalid response format: missing questions array", rule="missing_questions")
    elif isinstance(parsed, list):
        items = parsed
    else:
        raise ParseError("Response is not a JSON array or object", rule="wrong_shape")

    if not items:
        raise ParseError("Response contained no questions", rule="no_questions")

    questions = [validate_question(item, i) for i, item in enumerate(items)]

    if len(questions) != expected_count:
        logger.warning(f"Expected {expected_count} questions, got {len(questions)}")

    return questions

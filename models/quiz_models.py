"""
Pydantic models for the quiz pipeline.
Wire format is camelCase (HTTP bodies, queue messages, stored metadata);
Python attributes are snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum


SUPPORTED_QUESTION_COUNTS = (10, 20, 30)


# Enums for type safety and validation
class QuizStatus(str, Enum):
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Content Models
class RetrievedChunk(_WireModel):
    """A chunk returned by retrieval. Travels inside worker tasks."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    text: str
    file_id: str = Field(..., alias="fileId")
    score: Optional[float] = None


class Question(_WireModel):
    """A validated multiple-choice question"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    question_text: str = Field(..., alias="questionText")
    options: List[str] = Field(..., min_length=4, max_length=4)
    correct_answer: int = Field(..., alias="correctAnswer", ge=0, le=3)
    explanation: str
    difficulty: Difficulty

    def dedup_key(self) -> str:
        return self.question_text.strip().lower()


# Quiz Models
class QuizMetadata(_WireModel):
    """What the user asked for"""
    quiz_name: str = Field(..., alias="quizName")
    minutes: int
    difficulty: Difficulty
    question_count: int = Field(..., alias="questionCount", ge=1)
    topic: Optional[str] = None
    additional_instructions: Optional[str] = Field(None, alias="additionalInstructions")


class Quiz(_WireModel):
    """Quiz record as persisted"""
    id: str
    user_id: str = Field(..., alias="userId")
    metadata: QuizMetadata
    status: QuizStatus = QuizStatus.PROCESSING
    questions: List[Question] = []
    error: Optional[str] = None
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    completed_at: Optional[datetime] = Field(None, alias="completedAt")


class WorkerTask(_WireModel):
    """One unit of question generation, serialized as a queue message"""
    quiz_id: str = Field(..., alias="quizId")
    chunks: List[RetrievedChunk]
    difficulty: Difficulty
    topic: Optional[str] = None
    additional_instructions: Optional[str] = Field(None, alias="additionalInstructions")
    question_count: int = Field(..., alias="questionCount", ge=1)
    worker_index: int = Field(..., alias="workerIndex", ge=0)

    def to_message(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_message(cls, body: str) -> "WorkerTask":
        return cls.model_validate_json(body)


class Distribution(BaseModel):
    """How a quiz is split across workers"""
    model_config = ConfigDict(frozen=True)

    worker_count: int
    chunks_per_worker: int
    questions_per_worker: int


# Request / Response Models
class GenerateQuizRequest(_WireModel):
    """Request to generate a quiz"""
    user_id: str = Field(..., alias="userId", min_length=1)
    question_count: int = Field(..., alias="questionCount")
    quiz_name: str = Field(..., alias="quizName")
    minutes: int = Field(..., ge=1, le=180)
    difficulty: Difficulty
    topic: Optional[str] = None
    additional_instructions: Optional[str] = Field(None, alias="additionalInstructions")

    @field_validator("question_count")
    @classmethod
    def _supported_count(cls, v: int) -> int:
        if v not in SUPPORTED_QUESTION_COUNTS:
            raise ValueError("questionCount must be 10, 20, or 30")
        return v

    @field_validator("quiz_name")
    @classmethod
    def _non_blank_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("quizName is required")
        return v.strip()

    @field_validator("topic")
    @classmethod
    def _non_blank_topic(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("topic must be a non-empty string if provided")
        return v.strip() if v is not None else None

    def to_metadata(self) -> QuizMetadata:
        return QuizMetadata(
            quiz_name=self.quiz_name,
            minutes=self.minutes,
            difficulty=self.difficulty,
            question_count=self.question_count,
            topic=self.topic,
            additional_instructions=self.additional_instructions,
        )


class GenerateQuizResponse(_WireModel):
    quiz_id: str = Field(..., alias="quizId")
    status: QuizStatus
    message: str


class FinalizeResult(BaseModel):
    """Outcome of a finalize attempt"""
    quiz_id: str
    finalized: bool
    question_count: int = 0
    duplicates_removed: int = 0
    truncated: int = 0

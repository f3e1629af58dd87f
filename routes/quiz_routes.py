"""
FastAPI routes for quiz generation.

  POST   /api/v1/quizzes
      Start asynchronous quiz generation. Returns 202 with the quiz id;
      workers fill the quiz in the background.

  GET    /api/v1/quizzes/{quiz_id}
      Status and progress; questions once ready.

  GET    /api/v1/quizzes?userId=...&limit=...
      A user's quizzes, newest first.

  DELETE /api/v1/quizzes/{quiz_id}
      Delete a quiz and its collected questions.

Domain errors propagate to the StudiaError handler in main.py.
"""

import logging

from fastapi import APIRouter, Body, Query

from models.quiz_models import GenerateQuizRequest
from services.quiz_service import QuizService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["quizzes"])

quiz_service = QuizService()


# ─── Endpoints ────────────────────────────────────────────────────────────────

@router.post("/quizzes", status_code=202)
async def generate_quiz(body: GenerateQuizRequest = Body(...)):
    """
    Body:
        userId:                 Owner of the quiz and of the source files.
        questionCount:          10, 20 or 30.
        quizName:               Display name.
        minutes:                Time budget, 1-180.
        difficulty:             easy | medium | hard.
        topic:                  Optional focus area; omitted means random sampling.
        additionalInstructions: Optional free text passed to the model.
    """
    logger.info(f"Quiz request from user {body.user_id}: {body.question_count} {body.difficulty.value} questions")
    response = await quiz_service.create_quiz(body)
    return response.model_dump(mode="json", by_alias=True)


@router.get("/quizzes/{quiz_id}")
async def get_quiz_status(quiz_id: str):
    return await quiz_service.get_status(quiz_id)


@router.get("/quizzes")
async def list_quizzes(
    user_id: str = Query(..., alias="userId", min_length=1),
    limit: int = Query(20, ge=1, le=100),
):
    return await quiz_service.list_quizzes(user_id, limit)


@router.delete("/quizzes/{quiz_id}")
async def delete_quiz(quiz_id: str):
    return await quiz_service.delete_quiz(quiz_id)

"""
AI API endpoints

Handles:
- Question generation
- Answer feedback
- Concept explanation
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from voiceprep.api.dependencies import get_feedback_service, get_question_service
from voiceprep.core.errors import InterviewError
from voiceprep.core.feedback_service import FeedbackService
from voiceprep.core.question_generator import QuestionGenerationService

router = APIRouter()


# ============================================================================
# REQUEST MODELS
# ============================================================================

class GenerateQuestionsRequest(BaseModel):
    """Request model for question generation."""
    model_config = ConfigDict(populate_by_name=True)

    role: str = ""
    experience: str = ""
    topics_to_focus: str = Field(default="", alias="topicsToFocus")
    number_of_questions: int | None = Field(default=None, alias="numberOfQuestions")


class GenerateFeedbackRequest(BaseModel):
    """Request model for answer feedback."""
    question: str = ""
    answer: str = ""
    role: str = ""
    experience: str = ""


class GenerateExplanationRequest(BaseModel):
    """Request model for concept explanation."""
    question: str = ""


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post("/generate-questions")
async def generate_questions(
    request: GenerateQuestionsRequest,
    service: QuestionGenerationService = Depends(get_question_service),
) -> list[dict[str, Any]]:
    """
    Generate interview questions with reference answers.

    Returns the questions in interview order.
    """
    try:
        questions = await service.generate(
            role=request.role,
            experience_level=request.experience,
            topics=request.topics_to_focus,
            count=request.number_of_questions,
        )
    except InterviewError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return [
        {"id": q.id, "question": q.text, "answer": q.reference_answer}
        for q in questions
    ]


@router.post("/generate-feedback")
async def generate_feedback(
    request: GenerateFeedbackRequest,
    service: FeedbackService = Depends(get_feedback_service),
) -> dict[str, Any]:
    """Score one answer. Returns the feedback record in camelCase."""
    try:
        feedback = await service.evaluate(
            question=request.question,
            answer_text=request.answer,
            role=request.role,
            experience_level=request.experience,
        )
    except InterviewError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return feedback.model_dump(by_alias=True)


@router.post("/generate-explanation")
async def generate_explanation(
    request: GenerateExplanationRequest,
    service: QuestionGenerationService = Depends(get_question_service),
) -> dict[str, Any]:
    """Explain the concept behind a question."""
    try:
        explanation = await service.explain_concept(request.question)
    except InterviewError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return explanation.model_dump()

"""
Interview session and state models for VoicePrep
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from voiceprep.models.feedback import FeedbackRecord
from voiceprep.models.question import Question


class InterviewPhase(str, Enum):
    """Interview state machine states."""

    WELCOME = "welcome"  # Waiting for the user to start
    LISTENING = "listening"  # Question asked, capturing the answer
    EVALUATING = "evaluating"  # Answer frozen, feedback in progress
    COMPLETED = "completed"  # Terminal


class TranscriptSegment(BaseModel):
    """A piece of recognized speech."""

    text: str
    is_final: bool = False


class RecognitionResult(BaseModel):
    """One entry of a continuous recognizer's result set."""

    text: str
    is_final: bool = False


class RecognitionEvent(BaseModel):
    """
    A recognition callback payload.

    ``results`` is the recognizer's full result list; entries before
    ``result_index`` were already delivered in earlier events.
    """

    result_index: int = Field(default=0, ge=0)
    results: list[RecognitionResult] = Field(default_factory=list)


class AnswerRecord(BaseModel):
    """A frozen answer to one question, plus its feedback."""

    question_id: str
    question_index: int = Field(..., ge=0)
    question_text: str
    answer_text: str
    feedback: FeedbackRecord | None = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class SessionContext(BaseModel):
    """What the session-lookup collaborator returns."""

    session_id: str
    questions: list[Question] = Field(default_factory=list)
    role: str
    experience_level: str
    topics: str = ""


class InterviewSession(BaseModel):
    """Complete interview session state, owned by one orchestrator."""

    # Identification
    session_id: str = Field(default_factory=lambda: str(uuid4()))

    # Setup
    questions: list[Question] = Field(default_factory=list)
    role: str
    experience_level: str
    topics: str = ""
    candidate_name: str = "Candidate"

    # State
    phase: InterviewPhase = Field(default=InterviewPhase.WELCOME)
    current_index: int = Field(default=0, ge=0)

    # Timing
    created_at: datetime = Field(default_factory=datetime.utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    # Answers, in question order
    answers: list[AnswerRecord] = Field(default_factory=list)

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def get_current_question(self) -> Question | None:
        """Get the question currently open, if any."""
        if self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    def has_next_question(self) -> bool:
        return self.current_index + 1 < len(self.questions)

    def feedback_collection(self) -> list[dict]:
        """The transcript handed to completion persistence."""
        collection = []
        for answer in self.answers:
            question = self.questions[answer.question_index]
            entry = {
                "questionIndex": answer.question_index,
                "questionId": answer.question_id,
                "question": answer.question_text,
                "userAnswer": answer.answer_text,
                "expectedAnswer": question.reference_answer,
            }
            if answer.feedback is not None:
                entry.update(answer.feedback.model_dump(by_alias=True))
            collection.append(entry)
        return collection

    def get_duration_seconds(self) -> float:
        """Get interview duration in seconds."""
        if not self.started_at:
            return 0.0
        end = self.completed_at or datetime.utcnow()
        return (end - self.started_at).total_seconds()

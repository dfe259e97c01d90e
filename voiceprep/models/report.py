"""
Report models for VoicePrep

Summary statistics over the feedback gathered during one interview.
"""

from enum import Enum

from pydantic import BaseModel, Field

from voiceprep.models.interview import AnswerRecord


class PerformanceLevel(str, Enum):
    """Qualitative band for an average score."""

    EXCELLENT = "excellent"  # 8-10
    GOOD = "good"            # 6-8
    FAIR = "fair"            # 4-6
    NEEDS_WORK = "needs_work"  # 0-4

    @classmethod
    def from_score(cls, score: float) -> "PerformanceLevel":
        if score >= 8:
            return cls.EXCELLENT
        elif score >= 6:
            return cls.GOOD
        elif score >= 4:
            return cls.FAIR
        else:
            return cls.NEEDS_WORK

    @property
    def label(self) -> str:
        return {
            PerformanceLevel.EXCELLENT: "Excellent",
            PerformanceLevel.GOOD: "Good",
            PerformanceLevel.FAIR: "Fair",
            PerformanceLevel.NEEDS_WORK: "Needs Work",
        }[self]


class FeedbackSummary(BaseModel):
    """Overall statistics for a session."""

    session_id: str
    total_questions: int = 0
    answered: int = 0
    scored: int = 0
    average_score: float = Field(default=0.0, ge=0, le=10)
    strong_answers: int = 0
    needs_improvement: int = 0
    performance_level: PerformanceLevel = PerformanceLevel.NEEDS_WORK
    top_strengths: list[str] = Field(default_factory=list)
    top_improvements: list[str] = Field(default_factory=list)
    answers: list[AnswerRecord] = Field(default_factory=list)

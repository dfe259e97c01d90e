"""
Feedback models for VoicePrep

Defines the per-answer feedback record returned by the evaluator.
Field names serialize in camelCase to stay compatible with the
evaluation response shape (score, strengths, improvements, idealAnswerHint).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_SCORE = 5.0


class FeedbackRecord(BaseModel):
    """Evaluation of a single answer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    score: float = Field(
        default=DEFAULT_SCORE, ge=0, le=10,
        description="Overall score (0-10)"
    )
    strengths: str = Field(default="", description="What was done well")
    improvements: str = Field(default="", description="What can be improved")
    ideal_answer_hint: str = Field(
        default="",
        description="Brief hint of a strong answer"
    )
    model_used: str | None = Field(
        default=None,
        description="Candidate model that produced the evaluation"
    )

    @field_validator("score", mode="before")
    @classmethod
    def _coerce_score(cls, value: Any) -> float:
        """Accept numeric strings and clamp into range; anything else is the default."""
        if value is None or isinstance(value, bool):
            return DEFAULT_SCORE
        try:
            score = float(value)
        except (TypeError, ValueError):
            return DEFAULT_SCORE
        if score != score:  # NaN
            return DEFAULT_SCORE
        return max(0.0, min(10.0, score))

    @field_validator("strengths", "improvements", "ideal_answer_hint", mode="before")
    @classmethod
    def _join_lists(cls, value: Any) -> Any:
        # Models sometimes answer with bullet lists instead of prose
        if isinstance(value, list):
            return " ".join(str(item).strip() for item in value if str(item).strip())
        if value is None:
            return ""
        return value


FALLBACK_FEEDBACK = FeedbackRecord(
    score=5,
    strengths="Answer addresses the question at a basic level.",
    improvements="Needs more depth, structure, and technical clarity.",
    ideal_answer_hint="Explain the concept clearly with an example.",
)

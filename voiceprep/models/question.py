"""
Question models for VoicePrep
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Question(BaseModel):
    """A single interview question with its reference answer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Identification
    id: str = Field(..., description="Unique question ID")

    # Content
    text: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("text", "question"),
        description="The question text",
    )
    reference_answer: str = Field(
        default="",
        validation_alias=AliasChoices("reference_answer", "referenceAnswer", "answer"),
        description="Model answer generated alongside the question",
    )


class ConceptExplanation(BaseModel):
    """Explanation of the concept behind an interview question."""

    title: str = Field(..., description="Short title for the concept")
    explanation: str = Field(..., description="Explanation in plain language")

"""
Data models and schemas for VoicePrep

Contains Pydantic models for:
- Interview sessions and answers
- Questions
- Feedback records
- Report data
"""

from voiceprep.models.interview import (
    InterviewSession,
    InterviewPhase,
    AnswerRecord,
    TranscriptSegment,
    RecognitionEvent,
    RecognitionResult,
    SessionContext,
)
from voiceprep.models.question import Question, ConceptExplanation
from voiceprep.models.feedback import FeedbackRecord, FALLBACK_FEEDBACK
from voiceprep.models.report import FeedbackSummary, PerformanceLevel

__all__ = [
    # Interview
    "InterviewSession",
    "InterviewPhase",
    "AnswerRecord",
    "TranscriptSegment",
    "RecognitionEvent",
    "RecognitionResult",
    "SessionContext",
    # Question
    "Question",
    "ConceptExplanation",
    # Feedback
    "FeedbackRecord",
    "FALLBACK_FEEDBACK",
    # Report
    "FeedbackSummary",
    "PerformanceLevel",
]

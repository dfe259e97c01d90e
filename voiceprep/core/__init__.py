"""
Core business logic modules for VoicePrep

Contains:
- Interview Orchestrator: State machine for one interview session
- Model Caller / Response Parser: Fallback chain and tolerant parsing
- Feedback and Question services: Evaluation and question generation
- Speech Capture / Playback: Answer capture and interviewer speech
- Report Generator: Feedback summary statistics
"""

from voiceprep.core.interview_orchestrator import InterviewOrchestrator
from voiceprep.core.model_caller import ModelCaller, ModelResponse
from voiceprep.core.response_parser import ResponseParser
from voiceprep.core.feedback_service import FeedbackService
from voiceprep.core.question_generator import QuestionGenerationService
from voiceprep.core.speech_capture import SpeechCapture
from voiceprep.core.speech_playback import SpeechPlayback
from voiceprep.core.report_generator import ReportGenerator

__all__ = [
    "InterviewOrchestrator",
    "ModelCaller",
    "ModelResponse",
    "ResponseParser",
    "FeedbackService",
    "QuestionGenerationService",
    "SpeechCapture",
    "SpeechPlayback",
    "ReportGenerator",
]

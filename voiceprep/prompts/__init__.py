"""
AI prompt templates for VoicePrep

Contains structured prompts for:
- Question generation
- Concept explanation
- Answer evaluation
"""

from voiceprep.prompts.interviewer import InterviewerPrompts, InterviewerLines
from voiceprep.prompts.evaluator import EvaluatorPrompts

__all__ = [
    "InterviewerPrompts",
    "InterviewerLines",
    "EvaluatorPrompts",
]

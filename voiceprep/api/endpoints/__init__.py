"""
API endpoint modules for VoicePrep
"""

from voiceprep.api.endpoints import ai, interview, audio, report

__all__ = ["ai", "interview", "audio", "report"]

"""
VoicePrep - Voice-Driven Mock Interview Platform

Speaks interview questions aloud, captures spoken answers and scores
them through a fallback chain of generation models.
"""

__version__ = "0.1.0"
__author__ = "VoicePrep Team"

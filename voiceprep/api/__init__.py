"""
API layer for VoicePrep

Contains FastAPI routers for:
- Question generation, feedback and explanations
- Interview management
- Audio processing
- Feedback summaries
- WebSocket real-time interview
"""

from voiceprep.api.router import api_router

__all__ = ["api_router"]

"""
Persistence collaborators for VoicePrep

The orchestrator only needs three things from storage:
- session lookup at startup
- one save per answered question
- one save of the full feedback collection at completion

InMemorySessionStore keeps everything in process (development and tests).
HttpSessionStore talks to the sessions API of the web backend.
"""

import logging
from datetime import datetime
from typing import Any, Protocol

import httpx

from voiceprep.core.errors import PersistenceFailure, SessionNotFoundError
from voiceprep.models.feedback import FeedbackRecord
from voiceprep.models.interview import SessionContext
from voiceprep.models.question import Question

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Storage seen by the orchestrator."""

    async def get_session(self, session_id: str) -> SessionContext:
        ...

    async def save_answer(
        self,
        session_id: str,
        question_id: str,
        question_index: int,
        question_text: str,
        answer_text: str,
        feedback: FeedbackRecord | None,
    ) -> None:
        ...

    async def save_transcript(
        self,
        session_id: str,
        feedback_collection: list[dict[str, Any]],
        completed_at: datetime,
        total_answers: int,
    ) -> None:
        ...


class InMemorySessionStore:
    """Session storage (in-memory for now, HTTP backend for production)."""

    def __init__(self):
        self._sessions: dict[str, SessionContext] = {}
        self.answers: dict[str, list[dict[str, Any]]] = {}
        self.transcripts: dict[str, dict[str, Any]] = {}

    def add_session(self, context: SessionContext) -> SessionContext:
        self._sessions[context.session_id] = context
        logger.info(f"Registered session {context.session_id} with {len(context.questions)} questions")
        return context

    async def get_session(self, session_id: str) -> SessionContext:
        context = self._sessions.get(session_id)
        if context is None:
            raise SessionNotFoundError(session_id)
        return context

    async def save_answer(
        self,
        session_id: str,
        question_id: str,
        question_index: int,
        question_text: str,
        answer_text: str,
        feedback: FeedbackRecord | None,
    ) -> None:
        if session_id not in self._sessions:
            raise PersistenceFailure(f"Session not found: {session_id}")

        self.answers.setdefault(session_id, []).append({
            "questionId": question_id,
            "questionIndex": question_index,
            "question": question_text,
            "answer": answer_text,
            "feedback": feedback.model_dump(by_alias=True) if feedback else None,
            "timestamp": datetime.utcnow(),
        })

    async def save_transcript(
        self,
        session_id: str,
        feedback_collection: list[dict[str, Any]],
        completed_at: datetime,
        total_answers: int,
    ) -> None:
        if session_id not in self._sessions:
            raise PersistenceFailure(f"Session not found: {session_id}")

        self.transcripts[session_id] = {
            "transcript": feedback_collection,
            "completedAt": completed_at,
            "totalAnswers": total_answers,
            "status": "completed",
        }
        logger.info(f"Transcript saved for session: {session_id}")


class HttpSessionStore:
    """
    Sessions API client.

    Endpoints (relative to ``base_url``):
        GET  /api/sessions/{id}
        POST /api/sessions/save-answer
        POST /api/sessions/save-transcript
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=30.0,
            transport=transport,
        )

    async def close(self):
        await self.client.aclose()

    async def get_session(self, session_id: str) -> SessionContext:
        try:
            response = await self.client.get(f"/api/sessions/{session_id}")
        except httpx.HTTPError as e:
            logger.error(f"Session lookup failed: {e}")
            raise PersistenceFailure(str(e)) from e

        if response.status_code == 404:
            raise SessionNotFoundError(session_id)
        if response.is_error:
            raise PersistenceFailure(f"Session lookup returned {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Session lookup returned a non-JSON body: {e}")
            raise PersistenceFailure("Session lookup returned a non-JSON body") from e

        session = body.get("session", body) if isinstance(body, dict) else None
        if not isinstance(session, dict):
            raise PersistenceFailure("Session lookup returned an unexpected payload")
        if not isinstance(session.get("questions") or [], list):
            raise PersistenceFailure("Session lookup returned malformed questions")

        questions = [
            Question(
                id=str(item.get("_id") or item.get("id") or position),
                text=item.get("question", ""),
                reference_answer=item.get("answer", ""),
            )
            for position, item in enumerate(session.get("questions") or [])
            if isinstance(item, dict) and item.get("question")
        ]

        return SessionContext(
            session_id=session_id,
            questions=questions,
            role=str(session.get("role") or ""),
            experience_level=str(session.get("experience", "")),
            topics=str(session.get("topicsToFocus") or ""),
        )

    async def save_answer(
        self,
        session_id: str,
        question_id: str,
        question_index: int,
        question_text: str,
        answer_text: str,
        feedback: FeedbackRecord | None,
    ) -> None:
        await self._post("/api/sessions/save-answer", {
            "sessionId": session_id,
            "questionId": question_id,
            "question": question_text,
            "answer": answer_text,
            "questionIndex": question_index,
            "feedback": feedback.model_dump(by_alias=True) if feedback else None,
        })

    async def save_transcript(
        self,
        session_id: str,
        feedback_collection: list[dict[str, Any]],
        completed_at: datetime,
        total_answers: int,
    ) -> None:
        await self._post("/api/sessions/save-transcript", {
            "sessionId": session_id,
            "transcript": feedback_collection,
            "completedAt": completed_at.isoformat(),
            "totalAnswers": total_answers,
        })

    async def _post(self, path: str, payload: dict[str, Any]) -> None:
        try:
            response = await self.client.post(path, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Save to {path} failed: {e}")
            raise PersistenceFailure(f"{path}: {e}") from e

"""
Interview API endpoints

Handles interview session lifecycle:
- Registering sessions
- Starting interviews
- Advancing to the next question
- Ending interviews
- Real-time interview over WebSocket
"""

import asyncio
import logging
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from voiceprep.api.dependencies import get_registry
from voiceprep.api.registry import SessionRegistry
from voiceprep.core.errors import InputValidationError, InterviewError
from voiceprep.core.interview_orchestrator import InterviewOrchestrator
from voiceprep.core.persistence import InMemorySessionStore
from voiceprep.core.speech_capture import RemoteRecognizer
from voiceprep.core.speech_playback import SpeechPlayback, Utterance
from voiceprep.models.interview import (
    AnswerRecord,
    InterviewPhase,
    RecognitionEvent,
    SessionContext,
)
from voiceprep.models.question import Question

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class QuestionInput(BaseModel):
    """A question as sent by the client; the id is optional."""
    id: str | None = None
    question: str = Field(..., min_length=1, validation_alias=AliasChoices("question", "text"))
    answer: str = Field(default="", validation_alias=AliasChoices("answer", "reference_answer"))


class CreateSessionRequest(BaseModel):
    """Request model for registering a session."""
    model_config = ConfigDict(populate_by_name=True)

    questions: list[QuestionInput]
    role: str
    experience: str
    topics_to_focus: str = Field(default="", alias="topicsToFocus")


class CreateSessionResponse(BaseModel):
    """Response model for session registration."""
    session_id: str
    total_questions: int
    message: str


class SessionStatusResponse(BaseModel):
    """Response for session status."""
    session_id: str
    phase: str
    current_index: int
    total_questions: int
    current_question: str | None = None
    current_answer: str = ""
    answers_recorded: int
    duration_seconds: float


class AdvanceResponse(BaseModel):
    """Response after advancing."""
    ignored: bool = False
    answer: dict[str, Any] | None = None
    status: SessionStatusResponse


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.post("/sessions", response_model=CreateSessionResponse)
async def create_session(
    request: CreateSessionRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> CreateSessionResponse:
    """
    Register a session with its questions.

    Only available with in-memory storage; with an external backend the
    sessions are created there.
    """
    if not isinstance(registry.store, InMemorySessionStore):
        raise HTTPException(
            status_code=409,
            detail="Sessions are managed by the persistence backend",
        )
    if not request.role.strip() or not request.experience.strip():
        error = InputValidationError("Missing required fields: role, experience")
        raise HTTPException(status_code=error.status_code, detail=error.to_dict())

    context = registry.store.add_session(
        SessionContext(
            session_id=str(uuid4()),
            questions=[
                Question(id=item.id or f"q{position}", text=item.question, reference_answer=item.answer)
                for position, item in enumerate(request.questions, start=1)
            ],
            role=request.role,
            experience_level=request.experience,
            topics=request.topics_to_focus,
        )
    )

    return CreateSessionResponse(
        session_id=context.session_id,
        total_questions=len(context.questions),
        message="Interview session created. Call /start to begin.",
    )


@router.post("/{session_id}/start", response_model=SessionStatusResponse)
async def start_interview(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> SessionStatusResponse:
    """
    Start the interview.

    Greets the candidate, asks the first question and opens capture.
    """
    try:
        orchestrator = await registry.get_or_create(session_id)
        await orchestrator.start()
    except InterviewError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return SessionStatusResponse(**orchestrator.status())


@router.post("/{session_id}/advance", response_model=AdvanceResponse)
async def advance_interview(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> AdvanceResponse:
    """
    Submit the spoken answer for the current question.

    The answer is evaluated and the next question is asked, or the
    interview completes after the last one.
    """
    try:
        orchestrator = registry.get(session_id)
        record = await orchestrator.advance()
    except InterviewError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return AdvanceResponse(
        ignored=record is None,
        answer=_answer_payload(record) if record else None,
        status=SessionStatusResponse(**orchestrator.status()),
    )


@router.post("/{session_id}/end", response_model=SessionStatusResponse)
async def end_interview(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> SessionStatusResponse:
    """
    End the interview early.

    Answers already evaluated are kept and persisted.
    """
    try:
        orchestrator = registry.get(session_id)
        await orchestrator.end()
    except InterviewError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return SessionStatusResponse(**orchestrator.status())


@router.get("/{session_id}/status", response_model=SessionStatusResponse)
async def get_session_status(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> SessionStatusResponse:
    """Get the current status of an interview session."""
    try:
        orchestrator = registry.get(session_id)
    except InterviewError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return SessionStatusResponse(**orchestrator.status())


def _answer_payload(record: AnswerRecord) -> dict[str, Any]:
    return jsonable_encoder(record.model_dump(by_alias=True))


# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

class WebSocketPlaybackSink:
    """
    Plays utterances on the client.

    Each utterance is sent as a ``speak`` message; playback is over when
    the client answers with ``playback_ended`` for the same utterance id,
    or when twice the estimated duration has passed.
    """

    MIN_WAIT_SECONDS = 5.0

    def __init__(self, connection: "InterviewConnection"):
        self.connection = connection
        self._waiting: dict[str, asyncio.Event] = {}

    async def play(self, utterance: Utterance) -> None:
        ended = asyncio.Event()
        self._waiting[utterance.id] = ended
        try:
            await self.connection.send({
                "type": "speak",
                "utterance_id": utterance.id,
                "text": utterance.text,
                "audio": utterance.audio,
            })
            timeout = max(utterance.duration_seconds * 2, self.MIN_WAIT_SECONDS)
            try:
                await asyncio.wait_for(ended.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(f"No playback_ended for utterance {utterance.id} after {timeout:.1f}s")
        finally:
            self._waiting.pop(utterance.id, None)

    def playback_ended(self, utterance_id: str) -> None:
        ended = self._waiting.get(utterance_id)
        if ended is not None:
            ended.set()


class InterviewConnection:
    """One client connection driving one orchestrator."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.orchestrator: InterviewOrchestrator | None = None
        self.sink = WebSocketPlaybackSink(self)
        self.recognizer = RemoteRecognizer(self._set_listening)
        self._send_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()
        self.closed = False

    async def send(self, message: dict[str, Any]) -> None:
        if self.closed:
            return
        async with self._send_lock:
            await self.websocket.send_json(jsonable_encoder(message))

    async def send_error(self, error: InterviewError) -> None:
        await self.send({"type": "error", **error.to_dict()})

    def attach(self, orchestrator: InterviewOrchestrator) -> None:
        self.orchestrator = orchestrator
        orchestrator.on_state_change(self._on_state_change)
        orchestrator.on_answer(self._on_answer)
        orchestrator.on_error(self._on_error)
        orchestrator.on_complete(self._on_complete)

    def run(self, operation) -> None:
        """Run an orchestrator operation without blocking the receive loop."""
        task = asyncio.ensure_future(self._run(operation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, operation) -> None:
        try:
            await operation
        except InterviewError as e:
            await self.send_error(e)
        except Exception as e:
            logger.exception(f"Interview operation failed: {e}")
            await self.send({"type": "error", "kind": "internal", "message": str(e)})

    async def close(self) -> None:
        self.closed = True
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        if self.orchestrator:
            await self.orchestrator.shutdown()

    # Orchestrator events

    async def _set_listening(self, active: bool) -> None:
        await self.send({"type": "listen", "active": active})

    async def _on_state_change(self, session_id: str, old: InterviewPhase, new: InterviewPhase) -> None:
        session = self.orchestrator.session
        question = session.get_current_question()
        await self.send({
            "type": "state_change",
            "from": old.value,
            "to": new.value,
            "question_index": session.current_index,
            "question": question.text if question and new != InterviewPhase.COMPLETED else None,
        })

    async def _on_answer(self, session_id: str, record: AnswerRecord) -> None:
        await self.send({"type": "answer", "data": record.model_dump(by_alias=True)})

    async def _on_error(self, session_id: str, error: InterviewError) -> None:
        await self.send_error(error)

    async def _on_complete(self, session_id: str, collection: list[dict[str, Any]]) -> None:
        await self.send({
            "type": "complete",
            "data": {
                "session_id": session_id,
                "total_answers": len(collection),
                "transcript": collection,
            },
        })


@router.websocket("/ws/{session_id}")
async def websocket_interview(
    websocket: WebSocket,
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
):
    """
    WebSocket endpoint for real-time interview interaction.

    The client plays speech and runs speech recognition.

    Client sends:
    - start / advance / end: Drive the interview
    - recognition: Recognition result set {result_index, results}
    - playback_ended: An utterance finished playing {utterance_id}
    - ping

    Server sends:
    - state_change: Interview phase updated
    - speak: Utterance to play (with audio when TTS is enabled)
    - listen: Start or stop recognition
    - answer: Answer recorded with its feedback
    - error: Error occurred
    - complete: Interview finished, with the feedback collection
    - pong
    """
    await websocket.accept()
    connection = InterviewConnection(websocket)

    try:
        orchestrator = await registry.create(
            session_id,
            playback=SpeechPlayback(connection.sink, registry.audio_processor),
            recognizer=connection.recognizer,
        )
    except InterviewError as e:
        await connection.send_error(e)
        await websocket.close(code=4004 if e.status_code == 404 else 4009, reason=e.user_message)
        return
    except Exception as e:
        logger.exception(f"Could not open session {session_id}: {e}")
        await connection.send({"type": "error", "kind": "internal", "message": str(e)})
        await websocket.close(code=1011)
        return

    connection.attach(orchestrator)

    try:
        while True:
            data = await websocket.receive_json()
            message_type = data.get("type")

            if message_type == "start":
                connection.run(orchestrator.start())

            elif message_type == "advance":
                connection.run(orchestrator.advance())

            elif message_type == "end":
                connection.run(orchestrator.end())

            elif message_type == "recognition":
                try:
                    event = RecognitionEvent.model_validate(data)
                except ValidationError:
                    logger.warning(f"Malformed recognition message for session {session_id}")
                    continue
                connection.recognizer.deliver(event)

            elif message_type == "playback_ended":
                connection.sink.playback_ended(str(data.get("utterance_id", "")))

            elif message_type == "ping":
                await connection.send({"type": "pong"})

    except WebSocketDisconnect:
        logger.info(f"Client disconnected from session {session_id}")
    finally:
        await connection.close()

"""
Error taxonomy for VoicePrep.

Every error carries a machine-readable kind. User-facing wording is looked
up from the kind, never taken from the exception message.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable error categories."""

    VALIDATION = "validation"
    ALL_MODELS_EXHAUSTED = "all_models_exhausted"
    PARSE_FAILURE = "parse_failure"
    PERSISTENCE_FAILURE = "persistence_failure"
    INVALID_TRANSITION = "invalid_transition"
    SESSION_NOT_FOUND = "session_not_found"


USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "Some required information is missing.",
    ErrorKind.ALL_MODELS_EXHAUSTED: "Feedback unavailable. The AI service is not responding right now.",
    ErrorKind.PARSE_FAILURE: "The AI service returned an unexpected response. Please try again.",
    ErrorKind.PERSISTENCE_FAILURE: "Your progress could not be saved, but the interview will continue.",
    ErrorKind.INVALID_TRANSITION: "That action is not available right now.",
    ErrorKind.SESSION_NOT_FOUND: "Interview session not found.",
}

STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.ALL_MODELS_EXHAUSTED: 503,
    ErrorKind.PARSE_FAILURE: 502,
    ErrorKind.PERSISTENCE_FAILURE: 502,
    ErrorKind.INVALID_TRANSITION: 409,
    ErrorKind.SESSION_NOT_FOUND: 404,
}


class InterviewError(Exception):
    """Base class for all errors scoped to one session or request."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.kind.value)
        self.detail = detail

    @property
    def user_message(self) -> str:
        return USER_MESSAGES[self.kind]

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def to_dict(self) -> dict[str, str | None]:
        return {
            "kind": self.kind.value,
            "message": self.user_message,
            "detail": self.detail,
        }


class InputValidationError(InterviewError):
    """Required input is missing; raised before any network call."""

    kind = ErrorKind.VALIDATION


class EmptyAnswerError(InputValidationError):
    """The user tried to advance without having said anything."""


class AllModelsExhausted(InterviewError):
    """Every candidate in the model chain failed."""

    kind = ErrorKind.ALL_MODELS_EXHAUSTED

    def __init__(self, failures: dict[str, str]):
        self.failures = failures
        tried = ", ".join(f"{model}: {reason}" for model, reason in failures.items())
        super().__init__(f"All models failed ({tried})")


class ParseFailure(InterviewError):
    """Model output could not be turned into structured data."""

    kind = ErrorKind.PARSE_FAILURE


class PersistenceFailure(InterviewError):
    """A downstream save failed."""

    kind = ErrorKind.PERSISTENCE_FAILURE


class StateTransitionError(InterviewError):
    """Raised when an invalid state transition is attempted."""

    kind = ErrorKind.INVALID_TRANSITION


class SessionNotFoundError(InterviewError):
    kind = ErrorKind.SESSION_NOT_FOUND

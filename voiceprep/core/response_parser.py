"""
Response Parser - turns untrusted model text into structured data.

Model output is usually JSON, often wrapped in a fenced code block:

    ```json
    {"score": 7, ...}
    ```

The fence is stripped, the remainder is parsed, and on failure the
caller-supplied fallback is returned. Without a fallback a ParseFailure
is raised. The parser never re-calls the model.
"""

import copy
import json
import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from voiceprep.core.errors import ParseFailure

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_NO_FALLBACK: Any = object()

_LEADING_FENCE = re.compile(r"^```[\w+-]*[ \t]*\r?\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\r?\n?[ \t]*```$")

EXCERPT_LENGTH = 200


def strip_fences(raw_text: str) -> str:
    """Remove a leading and a trailing fence marker, then trim."""
    text = raw_text.strip()
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def _excerpt(raw_text: str) -> str:
    return raw_text[:EXCERPT_LENGTH].replace("\n", " ")


class ResponseParser:
    """Fence-stripping JSON parser with typed fallbacks."""

    def parse(self, raw_text: str, fallback: Any = _NO_FALLBACK) -> Any:
        """
        Parse model output as JSON.

        Args:
            raw_text: Raw model output
            fallback: Value returned (as a copy) if parsing fails

        Returns:
            The parsed data, or a copy of the fallback

        Raises:
            ParseFailure: If parsing fails and no fallback was given
        """
        try:
            return self._load(raw_text)
        except ValueError as e:
            return self._fail(raw_text, str(e), fallback)

    def parse_model(
        self,
        raw_text: str,
        model: type[M],
        fallback: M | Any = _NO_FALLBACK,
    ) -> M:
        """Parse and validate into a pydantic model; validation errors count as parse failures."""
        try:
            data = self._load(raw_text)
            return model.model_validate(data)
        except ValidationError as e:
            reason = f"does not match {model.__name__}: {e.error_count()} error(s)"
        except ValueError as e:
            reason = str(e)
        return self._fail(raw_text, reason, fallback)

    def _load(self, raw_text: str) -> Any:
        cleaned = strip_fences(raw_text or "")
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid JSON: {e.msg}") from e

    def _fail(self, raw_text: str, reason: str, fallback: Any) -> Any:
        excerpt = _excerpt(raw_text or "")
        if fallback is _NO_FALLBACK:
            logger.error(f"Failed to parse model output ({reason}): {excerpt!r}")
            raise ParseFailure(f"{reason}; output began with {excerpt!r}")

        logger.warning(f"Failed to parse model output ({reason}), using fallback")
        return copy.deepcopy(fallback)

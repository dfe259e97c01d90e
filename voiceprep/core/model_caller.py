"""
Model Caller - ordered fallback across candidate models.

Each candidate is tried once, in declared order, and the first response
wins. There is no retry of the same candidate and no backoff: candidates
are treated as independent quota pools, so moving on is the retry.
"""

import logging

from pydantic import BaseModel

from voiceprep.core.errors import AllModelsExhausted
from voiceprep.core.generation_client import GenerationBackend

logger = logging.getLogger(__name__)


class ModelResponse(BaseModel):
    """Raw text plus the candidate that produced it."""

    text: str
    model_used: str


class ModelCaller:
    """Calls a priority chain of models until one answers."""

    def __init__(self, backend: GenerationBackend, models: list[str]):
        if not models:
            raise ValueError("At least one candidate model is required")
        self.backend = backend
        self.models = list(models)

    async def call(self, prompt: str) -> ModelResponse:
        """
        Send the prompt down the candidate chain.

        Returns:
            ModelResponse from the first candidate that succeeded

        Raises:
            AllModelsExhausted: If every candidate failed
        """
        failures: dict[str, str] = {}

        for model_id in self.models:
            logger.info(f"Trying model: {model_id}")
            try:
                text = await self.backend.generate(model_id, prompt)
            except Exception as e:
                logger.warning(f"Model {model_id} failed: {e}")
                failures[model_id] = str(e) or type(e).__name__
                continue

            if not text or not text.strip():
                logger.warning(f"Model {model_id} returned an empty response")
                failures[model_id] = "empty response"
                continue

            logger.info(f"Success with {model_id}")
            return ModelResponse(text=text, model_used=model_id)

        logger.error(f"All {len(self.models)} candidate models failed")
        raise AllModelsExhausted(failures)

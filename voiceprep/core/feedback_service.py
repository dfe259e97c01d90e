"""
Feedback Service for VoicePrep

Scores a single answer through the model chain. A malformed model reply
degrades to a fixed default record; a chain where every model failed is
a hard failure and propagates.
"""

import logging

from voiceprep.core.errors import InputValidationError
from voiceprep.core.model_caller import ModelCaller
from voiceprep.core.response_parser import ResponseParser
from voiceprep.models.feedback import FALLBACK_FEEDBACK, FeedbackRecord
from voiceprep.prompts.evaluator import EvaluatorPrompts

logger = logging.getLogger(__name__)


class FeedbackService:
    """
    Evaluates answers.

    Responsibilities:
    - Validate inputs before any network call
    - Build the evaluation prompt
    - Call the model chain and parse the reply
    """

    def __init__(
        self,
        model_caller: ModelCaller,
        parser: ResponseParser | None = None,
        prompts: EvaluatorPrompts | None = None,
    ):
        self.model_caller = model_caller
        self.parser = parser or ResponseParser()
        self.prompts = prompts or EvaluatorPrompts()

    async def evaluate(
        self,
        question: str,
        answer_text: str,
        role: str,
        experience_level: str,
    ) -> FeedbackRecord:
        """
        Evaluate one answer.

        Args:
            question: The question that was asked
            answer_text: What the candidate said
            role: Role being interviewed for
            experience_level: Candidate's experience, free text

        Returns:
            FeedbackRecord, the fallback record if the reply was malformed

        Raises:
            InputValidationError: If any input is blank
            AllModelsExhausted: If no model answered
        """
        missing = [
            name for name, value in (
                ("question", question),
                ("answer", answer_text),
                ("role", role),
                ("experience", experience_level),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise InputValidationError(f"Missing required fields: {', '.join(missing)}")

        prompt = self.prompts.generate_feedback_prompt(
            question=question,
            answer=answer_text,
            role=role,
            experience_level=experience_level,
        )

        response = await self.model_caller.call(prompt)
        logger.debug(f"Raw feedback: {response.text[:200]}")

        feedback = self.parser.parse_model(
            response.text,
            FeedbackRecord,
            fallback=FALLBACK_FEEDBACK,
        )
        feedback.model_used = response.model_used

        logger.info(f"Feedback generated using {response.model_used}: score={feedback.score:.1f}")
        return feedback

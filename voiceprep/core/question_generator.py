"""
Question Generation Service for VoicePrep

Builds the ordered question list for a session, and explains the concept
behind a question on request. Neither operation has a safe default: a
malformed model reply is reported as a failure, never papered over with
made-up questions.
"""

import logging
from typing import Any

from pydantic import ValidationError

from voiceprep.core.errors import InputValidationError, ParseFailure
from voiceprep.core.model_caller import ModelCaller
from voiceprep.core.response_parser import ResponseParser
from voiceprep.models.question import ConceptExplanation, Question
from voiceprep.prompts.interviewer import InterviewerPrompts

logger = logging.getLogger(__name__)


class QuestionGenerationService:
    """Generates question/answer pairs through the model chain."""

    def __init__(
        self,
        model_caller: ModelCaller,
        parser: ResponseParser | None = None,
        prompts: InterviewerPrompts | None = None,
    ):
        self.model_caller = model_caller
        self.parser = parser or ResponseParser()
        self.prompts = prompts or InterviewerPrompts()

    # =========================================================================
    # QUESTION GENERATION
    # =========================================================================

    async def generate(
        self,
        role: str,
        experience_level: str,
        topics: str,
        count: int,
    ) -> list[Question]:
        """
        Generate the interview questions.

        Args:
            role: Role being interviewed for
            experience_level: Candidate's experience, free text
            topics: Topics to focus on
            count: Number of questions wanted

        Returns:
            Ordered list of Question, in interview order

        Raises:
            InputValidationError: If any input is missing
            AllModelsExhausted: If no model answered
            ParseFailure: If the reply is not a usable question list
        """
        missing = [
            name for name, value in (
                ("role", role),
                ("experience", experience_level),
                ("topicsToFocus", topics),
            )
            if not value or not str(value).strip()
        ]
        if not isinstance(count, int) or isinstance(count, bool) or count <= 0:
            missing.append("numberOfQuestions")
        if missing:
            raise InputValidationError(f"Missing required fields: {', '.join(missing)}")

        prompt = self.prompts.generate_questions_prompt(
            role=role,
            experience_level=experience_level,
            topics=topics,
            count=count,
        )

        response = await self.model_caller.call(prompt)
        data = self.parser.parse(response.text)
        questions = self._to_questions(data)

        if len(questions) > count:
            logger.warning(f"Model returned {len(questions)} questions, keeping the first {count}")
            questions = questions[:count]
        elif len(questions) < count:
            logger.warning(f"Model returned {len(questions)} of {count} requested questions")

        logger.info(f"Generated {len(questions)} questions using {response.model_used}")
        return questions

    def _to_questions(self, data: Any) -> list[Question]:
        """Validate the parsed reply into Question objects."""
        if isinstance(data, dict) and isinstance(data.get("questions"), list):
            data = data["questions"]

        if not isinstance(data, list) or not data:
            raise ParseFailure("Expected a non-empty JSON array of questions")

        questions = []
        for position, item in enumerate(data, start=1):
            if not isinstance(item, dict):
                raise ParseFailure(f"Question {position} is not an object")
            payload = dict(item)
            payload.setdefault("id", f"q{position}")
            payload["id"] = str(payload["id"])
            try:
                questions.append(Question.model_validate(payload))
            except ValidationError as e:
                raise ParseFailure(f"Question {position} is invalid: {e.error_count()} error(s)") from e
        return questions

    # =========================================================================
    # CONCEPT EXPLANATION
    # =========================================================================

    async def explain_concept(self, question: str) -> ConceptExplanation:
        """
        Explain the concept behind one question.

        Raises:
            InputValidationError: If the question is blank
            AllModelsExhausted: If no model answered
            ParseFailure: If the reply is not a usable explanation
        """
        if not question or not question.strip():
            raise InputValidationError("Missing required fields: question")

        prompt = self.prompts.generate_explanation_prompt(question)
        response = await self.model_caller.call(prompt)
        explanation = self.parser.parse_model(response.text, ConceptExplanation)

        logger.info(f"Explanation generated using {response.model_used}")
        return explanation

"""
AI Evaluator Prompt Templates

Contains the prompt for scoring one spoken answer. The reply shape
(score, strengths, improvements, idealAnswerHint) is part of the
evaluation contract and must not change.
"""


class EvaluatorPrompts:
    """
    Prompt templates for AI evaluation of answers.

    Key principles:
    - Strict, role-aware scoring
    - One short paragraph per feedback field
    - JSON only, no markdown
    """

    SYSTEM_CONTEXT = """You are a strict technical interview evaluator.

Your role:
- Judge the answer against what is expected at the candidate's level
- Call out what was done well
- Say concretely what would make the answer stronger
- Hint at what an ideal answer contains without writing it out in full
"""

    RESPONSE_FORMAT = """{
  "score": number (0-10),
  "strengths": "what was done well",
  "improvements": "what can be improved",
  "idealAnswerHint": "brief hint of a strong answer"
}"""

    def generate_feedback_prompt(
        self,
        question: str,
        answer: str,
        role: str,
        experience_level: str,
    ) -> str:
        """Generate prompt for evaluating an answer."""

        return f"""{self.SYSTEM_CONTEXT}
Role: {role}
Experience Level: {experience_level}

Interview Question:
{question}

Candidate Answer:
{answer}

Evaluate the answer and respond in STRICT JSON ONLY.

Format:
{self.RESPONSE_FORMAT}

IMPORTANT RULES:
- Do NOT include markdown
- Do NOT include explanation text
- ONLY valid JSON
"""

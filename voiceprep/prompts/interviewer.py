"""
AI Interviewer Prompt Templates

Contains:
- Question set generation prompt
- Concept explanation prompt
- The interviewer's spoken lines

Questions are generated once, up front. The interview itself never
branches on what the candidate says.
"""


class InterviewerPrompts:
    """
    Prompt templates for the AI interviewer.

    Key principles:
    - Role and experience appropriate questions
    - Each question paired with a model answer
    - JSON only, no markdown
    """

    SYSTEM_CONTEXT = """You are an experienced technical interviewer at a top tech company.

Guidelines:
- Ask questions a real interviewer would ask for this role
- Keep each question focused on one concept
- Scale difficulty to the candidate's experience
- Avoid trivia and obscure tool-specific questions
"""

    def generate_questions_prompt(
        self,
        role: str,
        experience_level: str,
        topics: str,
        count: int,
    ) -> str:
        """Generate prompt for creating the question set."""

        return f"""{self.SYSTEM_CONTEXT}
Role: {role}
Candidate Experience: {experience_level}
Focus Topics: {topics}

Write {count} interview questions for this candidate.
For each question, also write a beginner-friendly answer that a strong
candidate would give. If the answer needs a code example, include a short
code block inside the answer text.

Return a pure JSON array with exactly {count} items, like:
[
  {{
    "question": "Question here?",
    "answer": "Answer here."
  }}
]

IMPORTANT RULES:
- Do NOT add any text before or after the JSON
- ONLY valid JSON
"""

    def generate_explanation_prompt(self, question: str) -> str:
        """Generate prompt for explaining the concept behind a question."""

        return f"""You are an AI trained to explain interview concepts to a learner.

Explain the concept behind the following interview question in depth, as
if teaching a beginner developer.

Question: "{question}"

If the explanation needs a code example, include a short code block
inside the explanation text.

Return a pure JSON object in this format:
{{
  "title": "Short title here",
  "explanation": "Explanation here."
}}

IMPORTANT RULES:
- Do NOT add any text before or after the JSON
- ONLY valid JSON
"""


class InterviewerLines:
    """What the interviewer says out loud."""

    @staticmethod
    def greeting(candidate_name: str, role: str) -> str:
        return (
            f"Hello {candidate_name}, welcome to your {role} interview. "
            "I'll be your interviewer today. Let's begin."
        )

    @staticmethod
    def question(index: int, text: str) -> str:
        return f"Question {index + 1}. {text}"

    EVALUATING = "Thank you. Let me evaluate your answer."
    FEEDBACK_READY = "Here is your feedback."
    FEEDBACK_UNAVAILABLE = "I couldn't get feedback for that answer right now. Let's keep going."
    CLOSING = (
        "Excellent work! Your interview is now complete. "
        "Please review your detailed feedback below."
    )

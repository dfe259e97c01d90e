"""
Report Generator for VoicePrep

Summarizes the feedback gathered in one interview:
- Average score and performance band
- Strong answers vs answers needing improvement
- Most common strengths and improvement areas
"""

import logging

from voiceprep.models.interview import InterviewSession
from voiceprep.models.report import FeedbackSummary, PerformanceLevel

logger = logging.getLogger(__name__)

STRONG_ANSWER_THRESHOLD = 7
TOP_ITEMS = 5


class ReportGenerator:
    """Builds a FeedbackSummary from a session's answers."""

    def generate(self, session: InterviewSession) -> FeedbackSummary:
        """
        Generate the summary.

        Answers without feedback (evaluation unavailable) count as answered
        but are left out of every score statistic.
        """
        scored = [a for a in session.answers if a.feedback is not None]
        scores = [a.feedback.score for a in scored]

        average = round(sum(scores) / len(scores), 1) if scores else 0.0

        summary = FeedbackSummary(
            session_id=session.session_id,
            total_questions=session.question_count,
            answered=len(session.answers),
            scored=len(scored),
            average_score=average,
            strong_answers=sum(1 for s in scores if s >= STRONG_ANSWER_THRESHOLD),
            needs_improvement=sum(1 for s in scores if s < STRONG_ANSWER_THRESHOLD),
            performance_level=PerformanceLevel.from_score(average),
            top_strengths=self._unique_first(a.feedback.strengths for a in scored),
            top_improvements=self._unique_first(a.feedback.improvements for a in scored),
            answers=list(session.answers),
        )

        logger.info(
            f"Summary for {session.session_id}: average={summary.average_score}, "
            f"strong={summary.strong_answers}, needs_improvement={summary.needs_improvement}"
        )
        return summary

    def _unique_first(self, items) -> list[str]:
        """First TOP_ITEMS distinct non-empty items, in order of appearance."""
        seen: list[str] = []
        for item in items:
            text = item.strip()
            if text and text not in seen:
                seen.append(text)
            if len(seen) == TOP_ITEMS:
                break
        return seen

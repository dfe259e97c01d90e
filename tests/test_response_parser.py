"""Tests for fence stripping and tolerant parsing."""

import pytest

from voiceprep.core.errors import ParseFailure
from voiceprep.core.response_parser import ResponseParser, strip_fences
from voiceprep.models.feedback import FALLBACK_FEEDBACK, FeedbackRecord


@pytest.fixture
def parser() -> ResponseParser:
    return ResponseParser()


@pytest.mark.parametrize("raw", [
    '{"score": 7}',
    '```json\n{"score": 7}\n```',
    '```JSON\n{"score": 7}\n```',
    '```\n{"score": 7}\n```',
    '  ```json\n{"score": 7}```  ',
])
def test_fenced_and_bare_json_parse_the_same(parser, raw):
    assert parser.parse(raw) == {"score": 7}


def test_strip_fences_leaves_inner_backticks():
    assert strip_fences('```json\n{"code": "`x`"}\n```') == '{"code": "`x`"}'


def test_prose_without_fallback_raises(parser):
    with pytest.raises(ParseFailure) as exc_info:
        parser.parse("Sure! Here is your feedback: great job.")
    assert "Sure! Here is" in str(exc_info.value)


def test_prose_with_fallback_returns_copy(parser):
    fallback = {"items": []}
    result = parser.parse("not json", fallback=fallback)
    assert result == fallback
    assert result is not fallback


def test_prose_model_output_yields_fixed_fallback_record(parser):
    record = parser.parse_model("I think the answer was fine.", FeedbackRecord, fallback=FALLBACK_FEEDBACK)

    assert record.score == 5
    assert record.strengths == "Answer addresses the question at a basic level."
    assert record.improvements == "Needs more depth, structure, and technical clarity."
    assert record.ideal_answer_hint == "Explain the concept clearly with an example."
    assert record is not FALLBACK_FEEDBACK


def test_wrong_shape_counts_as_parse_failure(parser):
    with pytest.raises(ParseFailure):
        parser.parse_model('["not", "an", "object"]', FeedbackRecord)


def test_camel_case_feedback_is_read(parser):
    record = parser.parse_model(
        '```json\n{"score": "9", "strengths": ["Clear", "Concise"], '
        '"improvements": "None", "idealAnswerHint": "Use an example"}\n```',
        FeedbackRecord,
    )
    assert record.score == 9
    assert record.strengths == "Clear Concise"
    assert record.ideal_answer_hint == "Use an example"


@pytest.mark.parametrize("score, expected", [
    (14, 10),
    (-3, 0),
    ("high", 5),
    (None, 5),
    (True, 5),
    (6.5, 6.5),
])
def test_score_is_coerced_into_range(parser, score, expected):
    record = FeedbackRecord.model_validate({"score": score})
    assert record.score == expected

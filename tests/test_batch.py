from __future__ import annotations

import json

import pytest

from mcqgen.batch import BatchParseError, parse_batch_response, strip_code_fence


def doc(n: int) -> str:
    return json.dumps(
        {
            "questions": [
                {"question": f"Q{i}", "options": ["a", "b", "c", "d"], "correctAnswer": i % 4, "explanation": "e"}
                for i in range(n)
            ]
        }
    )


def test_strip_code_fence_variants() -> None:
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('```\n{"a": 1}\n```  ') == '{"a": 1}'
    assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'


def test_parse_batch_response_truncates_extra_questions() -> None:
    records = parse_batch_response(doc(7), question_count=5)
    assert [r.question for r in records] == ["Q0", "Q1", "Q2", "Q3", "Q4"]


def test_parse_batch_response_keeps_short_result() -> None:
    records = parse_batch_response("```json\n" + doc(2) + "\n```", question_count=5)
    assert len(records) == 2


def test_parse_batch_response_drops_malformed_items() -> None:
    text = json.dumps(
        {
            "questions": [
                {"question": "no answer", "options": ["a"]},
                {"question": "ok", "options": ["a"], "correctAnswer": 0},
            ]
        }
    )
    records = parse_batch_response(text, question_count=2)
    assert [r.question for r in records] == ["ok"]


@pytest.mark.parametrize(
    "text",
    [
        "not json at all",
        '{"items": []}',
        '{"questions": "nope"}',
        '{"questions": []}',
        '[{"question": "Q", "options": ["a"], "correctAnswer": 0}]',
        '{"questions": [{"question": "Q", "options": ["a"], "correctAnswer": NaN}]}',
    ],
)
def test_parse_batch_response_errors(text: str) -> None:
    with pytest.raises(BatchParseError):
        parse_batch_response(text, question_count=5)

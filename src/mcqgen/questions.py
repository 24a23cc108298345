from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RejectReason(str, Enum):
    NOT_OBJECT_LINE = "not_object_line"
    JSON_DECODE_ERROR = "json_decode_error"
    UNEXPECTED_JSON_TYPE = "unexpected_json_type"
    MISSING_QUESTION = "missing_question"
    MISSING_OPTIONS = "missing_options"
    MISSING_CORRECT_ANSWER = "missing_correct_answer"


@dataclass(frozen=True)
class QuestionRecord:
    question: str
    options: Any
    correct_answer: Any
    explanation: str = ""

    # The object as the model produced it; events serialize this verbatim.
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        if self.raw:
            return dict(self.raw)
        return {
            "question": self.question,
            "options": self.options,
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class Accepted:
    record: QuestionRecord


@dataclass(frozen=True)
class Rejected:
    reason: RejectReason
    detail: str = ""


Validation = Accepted | Rejected


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a JSON value")


def loads_strict(text: str) -> Any:
    """`json.loads` without the NaN/Infinity extensions."""

    return json.loads(text, parse_constant=_reject_constant)


def _present(v: Any) -> bool:
    # Presence check: null, false, "" and 0 count as absent; empty containers do not.
    if v is None or v is False:
        return False
    if isinstance(v, str):
        return v != ""
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return v != 0
    return True


def validate_question(obj: Any) -> Validation:
    """Presence-only shape check of a parsed JSON value.

    Option contents and the range of `correctAnswer` are not checked.
    """

    if not isinstance(obj, dict):
        return Rejected(RejectReason.UNEXPECTED_JSON_TYPE, type(obj).__name__)

    if not _present(obj.get("question")):
        return Rejected(RejectReason.MISSING_QUESTION)
    if not _present(obj.get("options")):
        return Rejected(RejectReason.MISSING_OPTIONS)
    if "correctAnswer" not in obj:
        return Rejected(RejectReason.MISSING_CORRECT_ANSWER)

    explanation = obj.get("explanation")
    return Accepted(
        QuestionRecord(
            question=str(obj["question"]),
            options=obj["options"],
            correct_answer=obj["correctAnswer"],
            explanation=explanation if isinstance(explanation, str) else "",
            raw=dict(obj),
        )
    )

from __future__ import annotations

import logging
import re
from typing import Any

from .questions import Accepted, QuestionRecord, loads_strict, validate_question

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


class BatchParseError(ValueError):
    pass


def strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
        cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned


def parse_batch_response(text: str, *, question_count: int) -> list[QuestionRecord]:
    """Parse a whole-response JSON document of the form {"questions": [...]}."""

    try:
        doc: Any = loads_strict(strip_code_fence(text))
    except (ValueError, RecursionError) as e:
        raise BatchParseError(f"response is not valid JSON: {e}") from e

    items = doc.get("questions") if isinstance(doc, dict) else None
    if not isinstance(items, list):
        raise BatchParseError("Invalid response format. No questions array found.")

    records: list[QuestionRecord] = []
    for i, item in enumerate(items):
        result = validate_question(item)
        if isinstance(result, Accepted):
            records.append(result.record)
        else:
            logger.warning("Dropping question %d from batch response: %s", i, result.reason.value)

    if len(records) < question_count:
        logger.warning("Model generated %d questions instead of %d; using what was generated.", len(records), question_count)
    elif len(records) > question_count:
        logger.warning("Model generated %d questions instead of %d; trimming.", len(records), question_count)
        records = records[:question_count]

    if not records:
        raise BatchParseError("No valid questions were generated.")

    return records

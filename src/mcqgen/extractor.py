from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .questions import Accepted, QuestionRecord, RejectReason, Rejected, loads_strict, validate_question

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractedQuestion:
    record: QuestionRecord
    index: int
    line_number: int


@dataclass(frozen=True)
class Rejection:
    line_number: int
    raw: str
    reason: RejectReason
    detail: str = ""


@dataclass
class ExtractionSession:
    """Incremental NDJSON question extractor for one generation stream.

    Fragments are appended with `feed()`. Each call scans every complete line
    at or after the watermark and returns the questions that became available.
    The trailing line is only scanned by `finish()`, once the stream has ended.

    The watermark moves past a line only when that line yields a question, so
    lines that failed to parse or validate are scanned again on the next pass.
    Text before the watermark is dropped from the buffer.
    """

    watermark: int = 0
    emitted: int = 0
    rejections: dict[int, Rejection] = field(default_factory=dict)
    finished: bool = False

    _pending: str = field(default="", init=False, repr=False)

    @property
    def pending_text(self) -> str:
        return self._pending

    def feed(self, fragment: str) -> list[ExtractedQuestion]:
        if self.finished:
            raise RuntimeError("extraction session already finished")
        if not fragment:
            return []
        self._pending += fragment
        lines = self._pending.split("\n")
        # Last element has no terminator yet.
        return self._scan(lines, len(lines) - 1)

    def finish(self) -> list[ExtractedQuestion]:
        if self.finished:
            return []
        self.finished = True
        lines = self._pending.split("\n")
        return self._scan(lines, len(lines))

    def _scan(self, lines: list[str], stop: int) -> list[ExtractedQuestion]:
        out: list[ExtractedQuestion] = []
        consumed = 0
        for offset in range(stop):
            line_number = self.watermark + offset
            record = self._evaluate(line_number, lines[offset])
            if record is None:
                continue
            out.append(ExtractedQuestion(record=record, index=self.emitted, line_number=line_number))
            self.emitted += 1
            self.rejections.pop(line_number, None)
            consumed = offset + 1

        if consumed:
            self._pending = "\n".join(lines[consumed:])
            self.watermark += consumed
        return out

    def _evaluate(self, line_number: int, raw: str) -> QuestionRecord | None:
        line = raw.strip()
        if not line:
            return None

        if not (line.startswith("{") and line.endswith("}")):
            self._reject(line_number, line, RejectReason.NOT_OBJECT_LINE)
            return None

        try:
            obj = loads_strict(line)
        except (ValueError, RecursionError) as e:
            # ValueError covers JSONDecodeError and NaN/Infinity; deep nesting hits the recursion limit.
            self._reject(line_number, line, RejectReason.JSON_DECODE_ERROR, str(e) or type(e).__name__)
            return None

        result = validate_question(obj)
        if isinstance(result, Rejected):
            self._reject(line_number, line, result.reason, result.detail)
            return None
        assert isinstance(result, Accepted)
        return result.record

    def _reject(self, line_number: int, line: str, reason: RejectReason, detail: str = "") -> None:
        if line_number not in self.rejections:
            level = logging.WARNING if reason is RejectReason.JSON_DECODE_ERROR else logging.DEBUG
            logger.log(
                level,
                "Skipping line %d (%s): %.80s",
                line_number,
                reason.value,
                line,
                extra={"reason": reason.value, "detail": detail},
            )
        self.rejections[line_number] = Rejection(
            line_number=line_number,
            raw=line,
            reason=reason,
            detail=detail,
        )


def extract_questions(fragments: Iterable[str]) -> Iterator[ExtractedQuestion]:
    """Run a whole fragment sequence through one ExtractionSession."""

    session = ExtractionSession()
    for fragment in fragments:
        yield from session.feed(fragment)
    yield from session.finish()

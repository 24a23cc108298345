from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .questions import QuestionRecord


@dataclass(frozen=True)
class QuestionEvent:
    question: QuestionRecord
    index: int

    terminal = False

    def to_payload(self) -> dict[str, Any]:
        return {"question": self.question.to_dict(), "index": self.index}


@dataclass(frozen=True)
class CompleteEvent:
    total_questions: int

    terminal = True

    def to_payload(self) -> dict[str, Any]:
        return {"complete": True, "totalQuestions": self.total_questions}


@dataclass(frozen=True)
class ErrorEvent:
    error: str

    terminal = True

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.error}


StreamEvent = QuestionEvent | CompleteEvent | ErrorEvent


def format_sse(data: str, *, event: str | None = None) -> bytes:
    # Basic SSE framing; only "\n" separates data lines (not U+2028, U+0085).
    out = []
    if event:
        out.append(f"event: {event}\n")
    for line in data.split("\n"):
        out.append(f"data: {line}\n")
    out.append("\n")
    return "".join(out).encode("utf-8")


def encode_event(ev: StreamEvent) -> bytes:
    return format_sse(json.dumps(ev.to_payload(), ensure_ascii=False, allow_nan=False, separators=(",", ":")))


def parse_sse_payloads(body: str) -> list[dict[str, Any]]:
    """Decode the JSON payloads of a `data:`-framed SSE body (used by clients and tests)."""

    payloads: list[dict[str, Any]] = []
    for block in body.split("\n\n"):
        data = [ln[len("data: "):] for ln in block.split("\n") if ln.startswith("data: ")]
        if data:
            payloads.append(json.loads("\n".join(data)))
    return payloads


class EventEmitter:
    """Frames events for one consumer, one write per event.

    Exactly one terminal event (complete or error) may be sent; anything
    after it is a programming error.
    """

    def __init__(self, sink: Callable[[bytes], None]):
        self._sink = sink
        self._sent = 0
        self._terminal: StreamEvent | None = None

    @property
    def sent(self) -> int:
        return self._sent

    @property
    def terminal(self) -> StreamEvent | None:
        return self._terminal

    @property
    def closed(self) -> bool:
        return self._terminal is not None

    def emit(self, ev: StreamEvent) -> None:
        if self._terminal is not None:
            raise RuntimeError(f"event stream already terminated by {type(self._terminal).__name__}")
        self._sink(encode_event(ev))
        self._sent += 1
        if ev.terminal:
            self._terminal = ev

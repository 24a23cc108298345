from __future__ import annotations

import asyncio
import json

from mcqgen.events import CompleteEvent, ErrorEvent, QuestionEvent, parse_sse_payloads
from mcqgen.providers import GenerationSourceError
from mcqgen.streaming import (
    PROCESSING_FAILED,
    SOURCE_FAILED,
    TIMED_OUT,
    iter_question_events,
    iter_sse_frames,
)


def q(text: str) -> str:
    return json.dumps({"question": text, "options": ["a", "b"], "correctAnswer": 0, "explanation": ""})


class FakeSource:
    name = "fake"

    def __init__(self, fragments: list[str], *, error: Exception | None = None, delay: float = 0.0):
        self.fragments = fragments
        self.error = error
        self.delay = delay
        self.prompts: list[str] = []
        self.closed = False

    async def _gen(self):
        try:
            for f in self.fragments:
                if self.delay:
                    await asyncio.sleep(self.delay)
                yield f
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True

    def stream(self, prompt: str):
        self.prompts.append(prompt)
        return self._gen()

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return "".join(self.fragments)


async def _collect(events) -> list:
    return [ev async for ev in events]


def collect(src: FakeSource, **kwargs) -> list:
    return asyncio.run(_collect(iter_question_events(src.stream("p"), **kwargs)))


def test_scenario_split_question_across_fragments() -> None:
    src = FakeSource(
        [
            '{"question":"Q1","options":["a","b"],"correctAnswer":0,"explanation":"e"}\n{"quest',
            'ion":"Q2","options":["c","d"],"correctAnswer":1,"explanation":"e2"}\n',
        ]
    )
    events = collect(src)

    assert [type(e) for e in events] == [QuestionEvent, QuestionEvent, CompleteEvent]
    assert [(e.question.question, e.index) for e in events[:2]] == [("Q1", 0), ("Q2", 1)]
    assert events[2].total_questions == 2
    assert src.closed


def test_scenario_trailing_question_without_newline() -> None:
    src = FakeSource(['not json\n{"question":"Q1","options":[],"correctAnswer":0,"explanation":""}'])
    events = collect(src)

    assert len(events) == 2
    assert events[0].question.question == "Q1"
    assert events[0].index == 0
    assert events[1] == CompleteEvent(total_questions=1)


def test_empty_stream_completes_with_zero() -> None:
    assert collect(FakeSource([])) == [CompleteEvent(total_questions=0)]


def test_source_error_replaces_completion() -> None:
    src = FakeSource([q("A") + "\n", q("B")], error=GenerationSourceError("connection reset"))
    events = collect(src)

    # Already-emitted questions stand; the unterminated line is not finalized.
    assert [e.question.question for e in events if isinstance(e, QuestionEvent)] == ["A"]
    assert events[-1] == ErrorEvent(SOURCE_FAILED)
    assert not any(isinstance(e, CompleteEvent) for e in events)
    assert src.closed


def test_unexpected_fault_is_reported_as_generic_error() -> None:
    events = collect(FakeSource([q("A") + "\n"], error=ValueError("bug")))
    assert events[-1] == ErrorEvent(PROCESSING_FAILED)
    assert sum(1 for e in events if e.terminal) == 1


def test_idle_timeout_emits_error_and_closes_source() -> None:
    src = FakeSource([q("A") + "\n", q("B") + "\n"], delay=1.0)
    events = collect(src, idle_timeout_s=0.05)

    assert events == [ErrorEvent(TIMED_OUT)]
    assert src.closed


def test_total_timeout_bounds_the_session() -> None:
    src = FakeSource([q(str(i)) + "\n" for i in range(1000)], delay=0.02)
    events = collect(src, idle_timeout_s=1.0, total_timeout_s=0.15)

    assert events[-1] == ErrorEvent(TIMED_OUT)
    assert 0 < len(events) - 1 < 1000
    assert src.closed


def test_consumer_disconnect_closes_source() -> None:
    src = FakeSource([q("A") + "\n", q("B") + "\n", q("C") + "\n"])

    async def scenario():
        events = iter_question_events(src.stream("p"))
        first = await anext(events)
        await events.aclose()
        return first

    first = asyncio.run(scenario())
    assert first.question.question == "A"
    assert src.closed


class BrokenCloseFragments:
    def __init__(self, fragments: list[str]):
        self._it = iter(fragments)

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        try:
            return next(self._it)
        except StopIteration:
            raise StopAsyncIteration from None

    async def aclose(self) -> None:
        raise ConnectionResetError("close failed")


def test_failing_close_still_yields_terminal_event() -> None:
    events = asyncio.run(_collect(iter_question_events(BrokenCloseFragments([q("A") + "\n"]))))
    assert events[-1] == CompleteEvent(total_questions=1)
    assert sum(1 for e in events if e.terminal) == 1


def test_unparsable_lines_are_never_fatal() -> None:
    depth = 100_000
    nested = '{"a": ' + "[" * depth + "]" * depth + "}"
    fragments = [nested + "\n", '{"question": "Q", "options": ["a"], "correctAnswer": NaN}\n', q("A") + "\n"]
    events = collect(FakeSource(fragments))

    assert [e.question.question for e in events if isinstance(e, QuestionEvent)] == ["A"]
    assert events[-1] == CompleteEvent(total_questions=1)


def test_total_questions_matches_question_events() -> None:
    fragments = ["intro\n", q("A"), "\n", '{"question": "bad"}\n', q("B"), "\n", q("C")]
    events = collect(FakeSource(fragments))

    questions = [e for e in events if isinstance(e, QuestionEvent)]
    assert [e.index for e in questions] == [0, 1, 2]
    assert sum(1 for e in events if e.terminal) == 1
    assert events[-1] == CompleteEvent(total_questions=len(questions))


def test_sse_frames_body() -> None:
    src = FakeSource([q("A") + "\n" + q("B")])

    async def scenario() -> bytes:
        frames = [f async for f in iter_sse_frames(iter_question_events(src.stream("p")))]
        return b"".join(frames)

    body = asyncio.run(scenario()).decode()
    assert body.startswith(": connected\n\n")
    payloads = parse_sse_payloads(body)
    assert [p.get("index") for p in payloads[:2]] == [0, 1]
    assert payloads[-1] == {"complete": True, "totalQuestions": 2}


def test_sse_frames_close_session_on_disconnect() -> None:
    src = FakeSource([q("A") + "\n", q("B") + "\n"])

    async def scenario() -> None:
        frames = iter_sse_frames(iter_question_events(src.stream("p")))
        await anext(frames)  # connection comment
        await anext(frames)  # first question
        await frames.aclose()

    asyncio.run(scenario())
    assert src.closed

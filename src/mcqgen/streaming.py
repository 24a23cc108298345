from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from .events import CompleteEvent, ErrorEvent, EventEmitter, QuestionEvent, StreamEvent
from .extractor import ExtractionSession
from .providers import GenerationSourceError

logger = logging.getLogger(__name__)

SOURCE_FAILED = "Generation source failed"
TIMED_OUT = "Generation timed out"
PROCESSING_FAILED = "Stream processing failed"


class GenerationTimeoutError(TimeoutError):
    pass


class _Clock:
    def __init__(self, *, idle_timeout_s: float | None, total_timeout_s: float | None):
        self._loop = asyncio.get_running_loop()
        self._idle = idle_timeout_s
        self._deadline = self._loop.time() + total_timeout_s if total_timeout_s else None

    def next_wait(self) -> float | None:
        if self._deadline is None:
            return self._idle
        remaining = self._deadline - self._loop.time()
        if remaining <= 0:
            raise GenerationTimeoutError("session deadline exceeded")
        return min(self._idle, remaining) if self._idle else remaining


async def _next_fragment(fragments: AsyncIterator[str], clock: _Clock) -> str:
    wait = clock.next_wait()
    try:
        return await asyncio.wait_for(anext(fragments), wait)
    except asyncio.TimeoutError as e:
        raise GenerationTimeoutError(f"no fragment within {wait:.1f}s") from e


async def _close_source(fragments: AsyncIterator[str]) -> None:
    aclose = getattr(fragments, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception:
        logger.exception("Closing the generation source failed")


async def iter_question_events(
    fragments: AsyncIterator[str],
    *,
    idle_timeout_s: float | None = None,
    total_timeout_s: float | None = None,
    session: ExtractionSession | None = None,
) -> AsyncIterator[StreamEvent]:
    """Drive one extraction session over a fragment source.

    Yields a QuestionEvent per extracted question, then exactly one terminal
    event: CompleteEvent on a clean end of stream, ErrorEvent otherwise.
    The source is closed on every exit path, including consumer disconnects.
    """

    session = session if session is not None else ExtractionSession()
    clock = _Clock(idle_timeout_s=idle_timeout_s, total_timeout_s=total_timeout_s)
    fragment_count = 0
    terminal: StreamEvent

    try:
        while True:
            try:
                fragment = await _next_fragment(fragments, clock)
            except StopAsyncIteration:
                break
            fragment_count += 1
            for q in session.feed(fragment):
                yield QuestionEvent(question=q.record, index=q.index)

        for q in session.finish():
            yield QuestionEvent(question=q.record, index=q.index)
        terminal = CompleteEvent(total_questions=session.emitted)

    except GenerationSourceError as e:
        logger.warning("Generation source failed after %d fragments: %s", fragment_count, e)
        terminal = ErrorEvent(SOURCE_FAILED)
    except GenerationTimeoutError as e:
        logger.warning("Generation timed out after %d fragments: %s", fragment_count, e)
        terminal = ErrorEvent(TIMED_OUT)
    except Exception:
        logger.exception("Stream processing failed after %d fragments", fragment_count)
        terminal = ErrorEvent(PROCESSING_FAILED)
    finally:
        await _close_source(fragments)

    logger.info(
        "Question stream finished",
        extra={
            "questions": session.emitted,
            "fragments": fragment_count,
            "rejected_lines": len(session.rejections),
            "outcome": "complete" if isinstance(terminal, CompleteEvent) else "error",
        },
    )
    yield terminal


async def iter_sse_frames(events: AsyncIterator[StreamEvent]) -> AsyncIterator[bytes]:
    """Frame events for a `text/event-stream` response, one frame per event."""

    # Connection comment; SSE clients ignore it.
    yield b": connected\n\n"

    frames: list[bytes] = []
    emitter = EventEmitter(frames.append)
    try:
        async for ev in events:
            emitter.emit(ev)
            while frames:
                yield frames.pop(0)
            if emitter.closed:
                break
    finally:
        # Consumer disconnects land here; closing the session releases the source.
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from .config import Settings
from .events import StreamEvent
from .orchestrator.graph import build_batch_graph
from .prompts import build_stream_prompt
from .providers import GenerationSource, build_provider
from .questions import QuestionRecord
from .request import GenerateRequest
from .streaming import iter_question_events

logger = logging.getLogger(__name__)


def stream_questions(
    req: GenerateRequest,
    settings: Settings,
    *,
    source: GenerationSource | None = None,
) -> AsyncIterator[StreamEvent]:
    """Start one streaming generation session.

    Library-friendly entrypoint for the HTTP app and the CLI. The returned
    iterator yields question events followed by one terminal event.
    """

    src = source or build_provider(req, settings)
    prompt = build_stream_prompt(req)
    logger.info(
        "Streaming %d %s questions from %s",
        req.question_count,
        req.difficulty,
        src.name,
    )
    return iter_question_events(
        src.stream(prompt.text),
        idle_timeout_s=settings.idle_timeout_s,
        total_timeout_s=settings.total_timeout_s,
    )


async def generate_batch(
    req: GenerateRequest,
    settings: Settings,
    *,
    source: GenerationSource | None = None,
) -> list[QuestionRecord]:
    """Generate all questions in one round trip.

    Raises GenerationSourceError or BatchParseError.
    """

    src = source or build_provider(req, settings)
    logger.info(
        "Generating %d %s questions from %s (batch)",
        req.question_count,
        req.difficulty,
        src.name,
    )
    graph = build_batch_graph(source=src)
    final_state = await graph.ainvoke({"request": req})
    return final_state["questions"]

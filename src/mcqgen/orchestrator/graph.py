from __future__ import annotations

from typing import Any, TypedDict

from langgraph.graph import END, StateGraph

from ..batch import parse_batch_response
from ..prompts import build_batch_prompt
from ..providers import GenerationSource
from ..questions import QuestionRecord
from ..request import GenerateRequest


class BatchState(TypedDict, total=False):
    request: GenerateRequest

    prompt: str
    raw_text: str

    questions: list[QuestionRecord]


def build_batch_graph(*, source: GenerationSource) -> Any:
    """Build the START -> prompt -> generate -> parse -> END LangGraph."""

    def prompt_node(state: BatchState) -> BatchState:
        return {**state, "prompt": build_batch_prompt(state["request"]).text}

    async def generate_node(state: BatchState) -> BatchState:
        text = await source.complete(state["prompt"])
        return {**state, "raw_text": text}

    def parse_node(state: BatchState) -> BatchState:
        req = state["request"]
        questions = parse_batch_response(state["raw_text"], question_count=req.question_count)
        return {**state, "questions": questions}

    g: StateGraph = StateGraph(BatchState)
    g.add_node("prompt", prompt_node)
    g.add_node("generate", generate_node)
    g.add_node("parse", parse_node)
    g.set_entry_point("prompt")
    g.add_edge("prompt", "generate")
    g.add_edge("generate", "parse")
    g.add_edge("parse", END)
    return g.compile()

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from mcqgen.request import InvalidRequestError
from mcqgen.runner import stream_questions
from mcqgen.streaming import iter_sse_frames

from .body import error_response, get_settings, read_generate_request

router = APIRouter()


@router.post("/api/generate-mcq-stream")
async def generate_mcq_stream(request: Request):
    # Validation failures are answered before any provider call; no stream is opened.
    try:
        req = await read_generate_request(request)
    except InvalidRequestError as e:
        return error_response(str(e), status_code=400)

    events = stream_questions(req, get_settings(request))
    return StreamingResponse(
        iter_sse_frames(events),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )

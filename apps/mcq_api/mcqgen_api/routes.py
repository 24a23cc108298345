from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from mcqgen.batch import BatchParseError
from mcqgen.providers import GenerationSourceError
from mcqgen.request import InvalidRequestError
from mcqgen.runner import generate_batch

from .body import error_response, get_settings, read_generate_request

logger = logging.getLogger("mcqgen.api")

router = APIRouter()


@router.get("/api/health")
def health() -> dict[str, Any]:
    return {"status": "ok"}


@router.post("/api/generate-mcq")
async def generate_mcq(request: Request) -> JSONResponse:
    try:
        req = await read_generate_request(request)
    except InvalidRequestError as e:
        return error_response(str(e), status_code=400)

    try:
        records = await generate_batch(req, get_settings(request))
    except (GenerationSourceError, BatchParseError) as e:
        logger.warning("Batch generation failed: %s", e)
        return error_response("Failed to generate MCQs", status_code=500)
    except Exception:
        logger.exception("Batch generation failed unexpectedly")
        return error_response("Failed to generate MCQs", status_code=500)

    return JSONResponse({"questions": [r.to_dict() for r in records]})

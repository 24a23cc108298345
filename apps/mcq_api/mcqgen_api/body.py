from __future__ import annotations

import json
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from mcqgen.config import Settings
from mcqgen.request import GenerateRequest, InvalidRequestError, parse_generate_request


def error_response(message: str, *, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def read_generate_request(request: Request) -> GenerateRequest:
    """Parse and validate the JSON body; raises InvalidRequestError."""

    try:
        body: Any = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidRequestError("Request body must be valid JSON") from e
    return parse_generate_request(body)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings

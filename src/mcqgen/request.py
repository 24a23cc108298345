from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

QUESTION_COUNTS = (2, 5, 10, 15, 20)
AI_MODELS = ("openai", "gemini", "claude")
DIFFICULTIES = ("easy", "medium", "hard")

DEFAULT_QUESTION_COUNT = 10
DEFAULT_AI_MODEL = "openai"
DEFAULT_DIFFICULTY = "medium"


class InvalidRequestError(ValueError):
    """Client-side input error; the message is shown to the user as-is."""


@dataclass(frozen=True)
class Credentials:
    api_key: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_region: str | None = None


@dataclass(frozen=True)
class GenerateRequest:
    prompt: str
    question_count: int = DEFAULT_QUESTION_COUNT
    ai_model: str = DEFAULT_AI_MODEL
    difficulty: str = DEFAULT_DIFFICULTY
    credentials: Credentials = field(default_factory=Credentials, repr=False)


def _as_str(v: Any) -> str | None:
    return v if isinstance(v, str) and v else None


def _check_credentials(ai_model: Any, creds: Credentials) -> None:
    if ai_model == "openai" and not creds.api_key:
        raise InvalidRequestError("OpenAI API key is required")
    if ai_model == "gemini" and not creds.api_key:
        raise InvalidRequestError("Google Gemini API key is required")
    if ai_model == "claude" and not (creds.aws_access_key_id and creds.aws_secret_access_key and creds.aws_region):
        raise InvalidRequestError(
            "AWS credentials (Access Key ID, Secret Access Key, and Region) are required for Claude"
        )


def parse_generate_request(body: Any) -> GenerateRequest:
    """Validate an inbound generation request body (camelCase JSON keys).

    Raises InvalidRequestError before any provider is contacted.
    """

    if not isinstance(body, dict):
        raise InvalidRequestError("Request body must be a JSON object")

    prompt = body.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        raise InvalidRequestError("Prompt is required")

    question_count = body.get("questionCount", DEFAULT_QUESTION_COUNT)
    ai_model = body.get("aiModel", DEFAULT_AI_MODEL)
    difficulty = body.get("difficulty", DEFAULT_DIFFICULTY)

    creds = Credentials(
        api_key=_as_str(body.get("apiKey")),
        aws_access_key_id=_as_str(body.get("awsAccessKeyId")),
        aws_secret_access_key=_as_str(body.get("awsSecretAccessKey")),
        aws_region=_as_str(body.get("awsRegion")),
    )
    _check_credentials(ai_model, creds)

    if isinstance(question_count, bool) or question_count not in QUESTION_COUNTS:
        raise InvalidRequestError("Question count must be 2, 5, 10, 15, or 20")

    if ai_model not in AI_MODELS:
        raise InvalidRequestError('AI model must be "openai", "gemini", or "claude"')

    if difficulty not in DIFFICULTIES:
        raise InvalidRequestError('Difficulty must be "easy", "medium", or "hard"')

    return GenerateRequest(
        prompt=prompt,
        question_count=int(question_count),
        ai_model=ai_model,
        difficulty=difficulty,
        credentials=creds,
    )

from __future__ import annotations

import pytest

from mcqgen.request import InvalidRequestError, parse_generate_request


def body(**overrides):
    data = {"prompt": "Photosynthesis", "apiKey": "sk-test"}
    data.update(overrides)
    return data


def test_defaults() -> None:
    req = parse_generate_request(body())
    assert req.prompt == "Photosynthesis"
    assert req.question_count == 10
    assert req.ai_model == "openai"
    assert req.difficulty == "medium"
    assert req.credentials.api_key == "sk-test"


def test_claude_requires_all_aws_credentials() -> None:
    with pytest.raises(InvalidRequestError, match="AWS credentials"):
        parse_generate_request(body(aiModel="claude", awsAccessKeyId="AKIA", awsSecretAccessKey="secret"))

    req = parse_generate_request(
        body(aiModel="claude", awsAccessKeyId="AKIA", awsSecretAccessKey="secret", awsRegion="ap-south-1")
    )
    assert req.credentials.aws_region == "ap-south-1"


@pytest.mark.parametrize(
    ("data", "message"),
    [
        ([], "Request body must be a JSON object"),
        ({"apiKey": "k"}, "Prompt is required"),
        (body(prompt="   "), "Prompt is required"),
        (body(prompt=42), "Prompt is required"),
        (body(apiKey=None), "OpenAI API key is required"),
        (body(aiModel="gemini", apiKey=""), "Google Gemini API key is required"),
        (body(questionCount=3), "Question count must be 2, 5, 10, 15, or 20"),
        (body(questionCount="10"), "Question count must be 2, 5, 10, 15, or 20"),
        (body(questionCount=True), "Question count must be 2, 5, 10, 15, or 20"),
        (body(aiModel="llama"), 'AI model must be "openai", "gemini", or "claude"'),
        (body(difficulty="extreme"), 'Difficulty must be "easy", "medium", or "hard"'),
    ],
)
def test_validation_messages(data, message) -> None:
    with pytest.raises(InvalidRequestError) as exc:
        parse_generate_request(data)
    assert str(exc.value) == message


def test_checks_run_in_order() -> None:
    # Missing prompt wins over every other problem.
    with pytest.raises(InvalidRequestError, match="Prompt is required"):
        parse_generate_request({"questionCount": 7, "aiModel": "nope"})

from __future__ import annotations

import asyncio
import json
import string
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import typer

from .batch import BatchParseError
from .config import Settings, load_dotenv, load_settings, merged_env
from .events import CompleteEvent, ErrorEvent, QuestionEvent, StreamEvent
from .logs import configure_logging
from .paths import dotenv_path, find_repo_root
from .providers import GenerationSourceError
from .request import GenerateRequest, InvalidRequestError, parse_generate_request
from .runner import generate_batch, stream_questions

app = typer.Typer(add_completion=False, help="mcqgen: multiple-choice questions from a topic prompt")

_API_KEY_ENV = {"openai": "OPENAI_API_KEY", "gemini": "GEMINI_API_KEY"}


def _setup(root: Path | None, verbose: bool) -> tuple[Path, Settings]:
    repo_root = root.resolve() if root else find_repo_root()
    settings = load_settings(repo_root)
    configure_logging("DEBUG" if verbose else settings.log_level)
    return repo_root, settings


def _build_request(
    *,
    repo_root: Path,
    prompt: str,
    count: int,
    model: str,
    difficulty: str,
    api_key: str | None,
    aws_access_key_id: str | None = None,
    aws_secret_access_key: str | None = None,
    aws_region: str | None = None,
) -> GenerateRequest:
    # Credentials fall back to the usual provider env vars (.env fills in missing keys).
    env = merged_env(dotenv=load_dotenv(dotenv_path(repo_root)))
    if api_key is None and model in _API_KEY_ENV:
        api_key = env.get(_API_KEY_ENV[model])

    body: dict[str, Any] = {
        "prompt": prompt,
        "questionCount": count,
        "aiModel": model,
        "difficulty": difficulty,
        "apiKey": api_key,
        "awsAccessKeyId": aws_access_key_id or env.get("AWS_ACCESS_KEY_ID"),
        "awsSecretAccessKey": aws_secret_access_key or env.get("AWS_SECRET_ACCESS_KEY"),
        "awsRegion": aws_region or env.get("AWS_REGION"),
    }
    try:
        return parse_generate_request(body)
    except InvalidRequestError as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from e


def _print_question(ev: QuestionEvent) -> None:
    q = ev.question
    typer.secho(f"{ev.index + 1}. {q.question}", bold=True)
    if isinstance(q.options, list):
        for letter, option in zip(string.ascii_uppercase, q.options):
            marker = "*" if q.correct_answer == ord(letter) - ord("A") else " "
            typer.echo(f"  {marker} {letter}) {option}")
    if q.explanation:
        typer.echo(f"    {q.explanation}")
    typer.echo("")


async def _consume(events: AsyncIterator[StreamEvent], *, jsonl: bool) -> StreamEvent | None:
    terminal: StreamEvent | None = None
    async for ev in events:
        if jsonl:
            typer.echo(json.dumps(ev.to_payload(), ensure_ascii=False))
        elif isinstance(ev, QuestionEvent):
            _print_question(ev)
        if ev.terminal:
            terminal = ev
    return terminal


@app.command()
def stream(
    prompt: str = typer.Argument(..., help="Topic or prompt to generate questions about"),
    count: int = typer.Option(10, "--count", "-n", help="Number of questions: 2|5|10|15|20"),
    model: str = typer.Option("openai", "--model", "-m", help="Provider: openai|gemini|claude"),
    difficulty: str = typer.Option("medium", "--difficulty", "-d", help="easy|medium|hard"),
    api_key: str | None = typer.Option(None, "--api-key", help="OpenAI/Gemini API key (defaults to env)"),
    aws_access_key_id: str | None = typer.Option(None, "--aws-access-key-id", help="Bedrock access key (defaults to env)"),
    aws_secret_access_key: str | None = typer.Option(
        None, "--aws-secret-access-key", help="Bedrock secret key (defaults to env)"
    ),
    aws_region: str | None = typer.Option(None, "--aws-region", help="Bedrock region (defaults to env)"),
    jsonl: bool = typer.Option(False, "--jsonl", help="Print raw event payloads as JSON lines"),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Repository root holding mcqgen.yaml/.env (defaults to auto-detect via pyproject.toml)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Print questions as the model produces them."""

    repo_root, settings = _setup(root, verbose)
    req = _build_request(
        repo_root=repo_root,
        prompt=prompt,
        count=count,
        model=model,
        difficulty=difficulty,
        api_key=api_key,
        aws_access_key_id=aws_access_key_id,
        aws_secret_access_key=aws_secret_access_key,
        aws_region=aws_region,
    )

    terminal = asyncio.run(_consume(stream_questions(req, settings), jsonl=jsonl))

    if isinstance(terminal, ErrorEvent):
        if not jsonl:
            typer.secho(f"Error: {terminal.error}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if isinstance(terminal, CompleteEvent) and not jsonl:
        typer.secho(f"Generated {terminal.total_questions} questions", fg=typer.colors.GREEN)


@app.command()
def batch(
    prompt: str = typer.Argument(..., help="Topic or prompt to generate questions about"),
    count: int = typer.Option(10, "--count", "-n", help="Number of questions: 2|5|10|15|20"),
    model: str = typer.Option("openai", "--model", "-m", help="Provider: openai|gemini|claude"),
    difficulty: str = typer.Option("medium", "--difficulty", "-d", help="easy|medium|hard"),
    api_key: str | None = typer.Option(None, "--api-key", help="OpenAI/Gemini API key (defaults to env)"),
    aws_access_key_id: str | None = typer.Option(None, "--aws-access-key-id", help="Bedrock access key (defaults to env)"),
    aws_secret_access_key: str | None = typer.Option(
        None, "--aws-secret-access-key", help="Bedrock secret key (defaults to env)"
    ),
    aws_region: str | None = typer.Option(None, "--aws-region", help="Bedrock region (defaults to env)"),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Repository root holding mcqgen.yaml/.env (defaults to auto-detect via pyproject.toml)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Generate all questions in one request and print them as JSON."""

    repo_root, settings = _setup(root, verbose)
    req = _build_request(
        repo_root=repo_root,
        prompt=prompt,
        count=count,
        model=model,
        difficulty=difficulty,
        api_key=api_key,
        aws_access_key_id=aws_access_key_id,
        aws_secret_access_key=aws_secret_access_key,
        aws_region=aws_region,
    )

    try:
        records = asyncio.run(generate_batch(req, settings))
    except (GenerationSourceError, BatchParseError) as e:
        typer.secho(f"Failed to generate MCQs: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from e

    typer.echo(json.dumps({"questions": [r.to_dict() for r in records]}, ensure_ascii=False, indent=2))


def main() -> None:
    # Entry point for console script.
    app()


if __name__ == "__main__":
    main()

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Protocol

import anthropic
import openai

from .config import Settings
from .request import GenerateRequest

logger = logging.getLogger(__name__)


class GenerationSourceError(RuntimeError):
    """The model provider connection failed (transport or API level)."""


class GenerationSource(Protocol):
    name: str

    def stream(self, prompt: str) -> AsyncIterator[str]: ...

    async def complete(self, prompt: str) -> str: ...


@dataclass
class OpenAIChatSource:
    """Chat-completions source; also used for Gemini's OpenAI-compatible endpoint."""

    client: Any
    model: str
    max_tokens: int
    name: str = "openai"

    def _messages(self, prompt: str) -> list[dict[str, str]]:
        return [{"role": "user", "content": prompt}]

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(prompt),
                max_tokens=self.max_tokens,
                stream=True,
            )
        except openai.APIError as e:
            raise GenerationSourceError(f"{self.name}: {e}") from e

        try:
            async for chunk in resp:
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content
                if text:
                    yield text
        except openai.APIError as e:
            raise GenerationSourceError(f"{self.name}: {e}") from e
        finally:
            await resp.close()

    async def complete(self, prompt: str) -> str:
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(prompt),
                max_tokens=self.max_tokens,
            )
        except openai.APIError as e:
            raise GenerationSourceError(f"{self.name}: {e}") from e
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""


@dataclass
class BedrockClaudeSource:
    client: Any
    model: str
    max_tokens: int
    name: str = "claude"

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        try:
            async with self.client.messages.stream(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            ) as s:
                async for text in s.text_stream:
                    if text:
                        yield text
        except anthropic.APIError as e:
            raise GenerationSourceError(f"{self.name}: {e}") from e

    async def complete(self, prompt: str) -> str:
        try:
            msg = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise GenerationSourceError(f"{self.name}: {e}") from e
        return "".join(block.text for block in msg.content if getattr(block, "type", None) == "text")


def build_provider(req: GenerateRequest, settings: Settings) -> GenerationSource:
    creds = req.credentials
    if req.ai_model == "claude":
        client = anthropic.AsyncAnthropicBedrock(
            aws_access_key=creds.aws_access_key_id,
            aws_secret_key=creds.aws_secret_access_key,
            aws_region=creds.aws_region,
        )
        source: GenerationSource = BedrockClaudeSource(
            client=client, model=settings.claude_model, max_tokens=settings.max_tokens
        )
    elif req.ai_model == "gemini":
        client = openai.AsyncOpenAI(api_key=creds.api_key, base_url=settings.gemini_base_url)
        source = OpenAIChatSource(
            client=client,
            model=settings.gemini_model,
            max_tokens=settings.max_tokens,
            name="gemini",
        )
    else:
        client = openai.AsyncOpenAI(api_key=creds.api_key)
        source = OpenAIChatSource(client=client, model=settings.openai_model, max_tokens=settings.max_tokens)

    logger.debug("Using %s generation source (model=%s)", source.name, getattr(source, "model", None))
    return source

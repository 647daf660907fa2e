"""Anthropic Messages API engine."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from memopad.engines.base import Completion

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

# USD per million tokens (input, output), matched by model family.
_PRICING: dict[str, tuple[float, float]] = {
    "haiku": (1.0, 5.0),
    "sonnet": (3.0, 15.0),
    "opus": (15.0, 75.0),
}


def estimate_cost(model: str, input_tokens: int, output_tokens: int) -> float | None:
    for family, (per_in, per_out) in _PRICING.items():
        if family in model:
            return (input_tokens * per_in + output_tokens * per_out) / 1e6
    return None


@dataclass
class AnthropicAPIEngine:
    """Summaries through the `anthropic` SDK. Needs ANTHROPIC_API_KEY."""

    model: str | None = None
    max_tokens: int = 1024
    timeout: int = 120

    def __post_init__(self) -> None:
        self.model = self.model or DEFAULT_MODEL
        try:
            import anthropic
        except ImportError as e:
            raise ImportError(
                "the anthropic_api engine needs the anthropic package: pip install 'memopad[api]'"
            ) from e
        self._client = anthropic.Anthropic(timeout=self.timeout, max_retries=2)

    @property
    def name(self) -> str:
        return "anthropic_api"

    async def complete(self, prompt: str, *, system_prompt: str | None = None) -> Completion:
        request: dict = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            request["system"] = system_prompt

        try:
            message = await asyncio.to_thread(self._client.messages.create, **request)
        except Exception as e:
            logger.error("Anthropic request failed (model=%s): %s", self.model, e)
            return Completion.failed(f"anthropic: {e}")

        text = "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )
        if message.stop_reason == "max_tokens":
            logger.warning("Summary truncated at max_tokens=%d", self.max_tokens)

        usage = message.usage
        return Completion(
            text=text,
            model=message.model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            cost_usd=estimate_cost(message.model, usage.input_tokens, usage.output_tokens),
        )

    async def health_check(self) -> bool:
        reply = await self.complete("Reply with OK.")
        return reply.ok

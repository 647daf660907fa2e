"""Summary engine protocol and the completion result it returns."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass
class Completion:
    """One engine reply. Failures are reported in `error`, never raised."""

    text: str = ""
    model: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
    cost_usd: float | None = None
    error: str | None = None

    @classmethod
    def failed(cls, reason: str) -> Completion:
        return cls(error=reason)

    @property
    def ok(self) -> bool:
        return self.error is None


@runtime_checkable
class Engine(Protocol):
    """A backend that turns a prompt into a short completion."""

    @property
    def name(self) -> str: ...

    async def complete(self, prompt: str, *, system_prompt: str | None = None) -> Completion:
        """Run one prompt. Transport and provider failures come back as Completion.failed()."""
        ...

    async def health_check(self) -> bool: ...

"""Claude CLI engine: `claude -p` in print mode, billed to a Claude Code login."""

from __future__ import annotations

import asyncio
import json
import logging
import subprocess
from dataclasses import dataclass

from memopad.engines.base import Completion

logger = logging.getLogger(__name__)


@dataclass
class ClaudeCLIEngine:
    """Runs one non-interactive turn per prompt. The prompt goes over stdin."""

    model: str | None = None
    timeout: int = 120
    executable: str = "claude"

    @property
    def name(self) -> str:
        return "claude_cli"

    def _command(self, system_prompt: str | None) -> list[str]:
        cmd = [self.executable, "-p", "--output-format", "json", "--max-turns", "1"]
        if self.model:
            cmd += ["--model", self.model]
        if system_prompt:
            cmd += ["--append-system-prompt", system_prompt]
        return cmd

    async def complete(self, prompt: str, *, system_prompt: str | None = None) -> Completion:
        cmd = self._command(system_prompt)
        try:
            proc = await asyncio.to_thread(
                subprocess.run,
                cmd,
                input=prompt,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error("%s gave no answer within %ds", self.executable, self.timeout)
            return Completion.failed(f"claude CLI timed out after {self.timeout}s")
        except FileNotFoundError:
            return Completion.failed(f"`{self.executable}` not found on PATH")

        if proc.returncode != 0:
            detail = proc.stderr.strip() or proc.stdout.strip() or f"exit status {proc.returncode}"
            logger.error("claude CLI failed (rc=%d): %s", proc.returncode, detail)
            return Completion.failed(f"claude CLI: {detail}")

        return self._parse(proc.stdout)

    def _parse(self, stdout: str) -> Completion:
        try:
            payload = json.loads(stdout)
        except json.JSONDecodeError:
            # Older CLI builds print plain text.
            return Completion(text=stdout.strip(), model=self.model)

        if payload.get("is_error"):
            return Completion.failed(f"claude CLI: {payload.get('result') or payload.get('subtype')}")

        usage = payload.get("usage") or {}
        return Completion(
            text=payload.get("result") or "",
            model=self.model,
            input_tokens=usage.get("input_tokens"),
            output_tokens=usage.get("output_tokens"),
            cost_usd=payload.get("total_cost_usd"),
        )

    async def health_check(self) -> bool:
        try:
            proc = await asyncio.to_thread(
                subprocess.run, [self.executable, "--version"], capture_output=True, timeout=10
            )
        except (FileNotFoundError, subprocess.TimeoutExpired):
            return False
        return proc.returncode == 0

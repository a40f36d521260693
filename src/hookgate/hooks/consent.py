"""Consent gate for high-risk hooks under the with-warning permission level.

Decisions are cached per hook id until the hook's command changes or the
permission level is tightened. Anything short of an explicit "yes" denies.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from loguru import logger
from prompt_toolkit import PromptSession
from rich.console import Console
from rich.markup import escape

from .models import HookConfiguration, SecurityValidation

DECLINED_MESSAGE = "User declined to execute hook"


class ConsentProvider(Protocol):
    async def request_consent(
        self, hook: HookConfiguration, validation: SecurityValidation
    ) -> bool: ...


class StaticConsentProvider:
    """Answers every request the same way (automation, tests)."""

    def __init__(self, allow: bool = False):
        self.allow = allow
        self.requests: list[str] = []

    async def request_consent(
        self, hook: HookConfiguration, validation: SecurityValidation
    ) -> bool:
        self.requests.append(hook.id)
        return self.allow


class TerminalConsentProvider:
    """Asks on the terminal with prompt_toolkit."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    async def request_consent(
        self, hook: HookConfiguration, validation: SecurityValidation
    ) -> bool:
        self.console.print(
            f"\n[bold yellow]High-risk hook ({validation.risk_level.value}):[/bold yellow] "
            f"{hook.event.value} {escape(hook.id)}"
        )
        self.console.print(f"  [bold]command:[/bold] {escape(hook.command)}")
        for warning in validation.warnings:
            self.console.print(f"  [dim]{escape(warning)}[/dim]")
        try:
            answer = await PromptSession().prompt_async("Allow? [y/N] ")
        except (EOFError, KeyboardInterrupt):
            return False
        return answer.strip().lower() in ("y", "yes")


class ConsentGate:
    def __init__(self, provider: ConsentProvider | None = None, interactive: bool = True):
        self.provider = provider or TerminalConsentProvider()
        self.interactive = interactive
        self._decisions: dict[str, bool] = {}
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None
        # bumped by clear() / invalidate(); an answer given across a bump is stale
        self._generation = 0
        self._hook_generations: dict[str, int] = {}

    def _get_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def check(self, hook: HookConfiguration, validation: SecurityValidation) -> bool:
        cached = self._decisions.get(hook.id)
        if cached is not None:
            return cached

        if not self.interactive:
            logger.warning(
                "Consent required in non-interactive mode, denying | id={} risk={}",
                hook.id,
                validation.risk_level.value,
            )
            return False

        # one prompt at a time; a concurrent run may have answered while we waited
        async with self._get_lock():
            cached = self._decisions.get(hook.id)
            if cached is not None:
                return cached

            logger.warning(
                "High-risk hook requires consent | id={} risk={} command={} warnings={}",
                hook.id,
                validation.risk_level.value,
                hook.command,
                ", ".join(validation.warnings),
            )
            generation = self._generation_of(hook.id)
            try:
                decision = bool(await self.provider.request_consent(hook, validation))
            except Exception as e:
                logger.error("Consent provider failed, denying | id={} error={}", hook.id, e)
                return False

            if self._generation_of(hook.id) != generation:
                logger.warning("Consent invalidated while prompting, denying | id={}", hook.id)
                return False

            self._decisions[hook.id] = decision
            logger.info("Consent {} | id={}", "granted" if decision else "denied", hook.id)
            return decision

    def record(self, hook_id: str, decision: bool) -> None:
        self._decisions[hook_id] = decision

    def decision(self, hook_id: str) -> bool | None:
        return self._decisions.get(hook_id)

    def _generation_of(self, hook_id: str) -> tuple[int, int]:
        return self._generation, self._hook_generations.get(hook_id, 0)

    def invalidate(self, hook_id: str) -> None:
        self._decisions.pop(hook_id, None)
        self._hook_generations[hook_id] = self._hook_generations.get(hook_id, 0) + 1

    def clear(self) -> None:
        self._decisions.clear()
        self._generation += 1

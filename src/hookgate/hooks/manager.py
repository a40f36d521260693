"""HookManager: registry, event dispatch, concurrent execution and permission policy."""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from loguru import logger

from .consent import DECLINED_MESSAGE, ConsentGate
from .engine import execute_hook, failure_result
from .errors import (
    HookNotFoundError,
    HookPermissionError,
    RiskCeilingError,
    SecurityRejectionError,
    StorageError,
    ValidationError,
)
from .history import DEFAULT_HISTORY_LIMIT, ExecutionHistory
from .models import (
    DEFAULT_TIMEOUT,
    HookConfiguration,
    HookEvent,
    HookExecutionContext,
    HookExecutionResult,
    PermissionLevel,
    RiskLevel,
    SecurityValidation,
    utcnow,
)
from .parser import hook_from_dict, parse_hook_configuration, parse_hook_update
from .security import PatternSecurityValidator, SecurityValidator
from .storage import HookStore, JsonFileStore, MemoryStore

if TYPE_CHECKING:
    from hookgate.core.config import Config

CONSENT_RISKS = (RiskLevel.HIGH, RiskLevel.CRITICAL)

STALE_CONSENT_MESSAGE = "Hook or permission level changed while awaiting consent"


class HookManager:
    """Owns the hook set and everything that reads or mutates it.

    Registry calls are synchronous and all-or-nothing: the backing store is
    written first and in-memory state only changes once the write succeeded.
    ``execute_hooks`` fans out one process per matching hook and never raises
    for hook-level failures.
    """

    def __init__(
        self,
        store: HookStore | None = None,
        validator: SecurityValidator | None = None,
        consent: ConsentGate | None = None,
        permission_level: PermissionLevel | str = PermissionLevel.WITH_WARNING,
        default_timeout: float = DEFAULT_TIMEOUT,
        auto_save: bool = True,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.store: HookStore = store if store is not None else MemoryStore()
        self.validator: SecurityValidator = validator or PatternSecurityValidator()
        self.consent = consent or ConsentGate()
        self.default_timeout = default_timeout
        self.auto_save = auto_save
        self._permission_level = PermissionLevel(permission_level)
        self._history = ExecutionHistory(history_limit)
        self._hooks: dict[str, HookConfiguration] = self._load()

    @classmethod
    def from_config(cls, config: Config, **kwargs: Any) -> HookManager:
        kwargs.setdefault("consent", ConsentGate(interactive=config.interactive))
        return cls(
            store=JsonFileStore(config.hooks_file),
            permission_level=config.permission_level,
            default_timeout=config.default_timeout,
            auto_save=config.auto_save,
            **kwargs,
        )

    def __len__(self) -> int:
        return len(self._hooks)

    # ── Persistence ─────────────────────────────────────────────────

    def _load(self) -> dict[str, HookConfiguration]:
        try:
            entries = self.store.load()
        except StorageError as e:
            logger.error("Failed to load hooks | error={}", e)
            return {}

        hooks: dict[str, HookConfiguration] = {}
        for entry in entries:
            try:
                hook = hook_from_dict(entry)
            except ValidationError as e:
                entry_id = entry.get("id") if isinstance(entry, dict) else None
                logger.warning("Skipping malformed hook | id={} error={}", entry_id, e)
                continue
            validation = self.validator.validate(hook)
            if not validation.valid:
                logger.warning(
                    "Skipping invalid hook | id={} errors={}", hook.id, ", ".join(validation.errors)
                )
                continue
            if hook.id in hooks:
                logger.warning("Skipping duplicate hook | id={}", hook.id)
                continue
            hooks[hook.id] = hook
        logger.info("Loaded hooks | count={}", len(hooks))
        return hooks

    def reload(self) -> None:
        """Re-read the store, dropping consent for hooks that vanished or changed command."""
        previous = self._hooks
        self._hooks = self._load()
        for hook_id, old in previous.items():
            new = self._hooks.get(hook_id)
            if new is None or new.command != old.command:
                self.consent.invalidate(hook_id)
            if new is None:
                self._history.forget(hook_id)

    def save(self) -> None:
        self.store.save(list(self._hooks.values()))
        logger.debug("Saved hooks | count={}", len(self._hooks))

    def _commit(self, hooks: dict[str, HookConfiguration]) -> None:
        if self.auto_save:
            self.store.save(list(hooks.values()))
        self._hooks = hooks

    # ── Registry ────────────────────────────────────────────────────

    def _validate(self, hook: HookConfiguration) -> SecurityValidation:
        validation = self.validator.validate(hook)
        if not validation.valid:
            raise SecurityRejectionError(
                f"Hook validation failed: {', '.join(validation.errors)}", validation
            )
        return validation

    def _check_ceiling(self, validation: SecurityValidation) -> None:
        level = self._permission_level
        if level is PermissionLevel.SAFE_ONLY and not level.allows(validation.risk_level):
            raise RiskCeilingError(
                f"Hook risk level ({validation.risk_level.value}) exceeds allowed level "
                f"for {level.value} mode",
                validation,
            )

    def register_hook(self, config: dict[str, Any]) -> HookConfiguration:
        fields = parse_hook_configuration(config)
        now = utcnow()
        hook = HookConfiguration(id=str(uuid.uuid4()), created=now, updated=now, **fields)

        validation = self._validate(hook)
        if self._permission_level is PermissionLevel.DISABLED:
            raise HookPermissionError("Hooks are disabled")
        self._check_ceiling(validation)

        self._commit({**self._hooks, hook.id: hook})
        logger.info(
            "Registered hook | id={} event={} risk={}",
            hook.id,
            hook.event.value,
            validation.risk_level.value,
        )
        for warning in validation.warnings:
            logger.debug("Hook warning | id={} warning={}", hook.id, warning)
        return replace(hook)

    def update_hook(self, hook_id: str, partial: dict[str, Any]) -> HookConfiguration:
        existing = self._hooks.get(hook_id)
        if existing is None:
            raise HookNotFoundError(hook_id)

        changes = parse_hook_update(partial)
        updated = replace(existing, **changes, updated=utcnow())
        validation = self._validate(updated)
        # disabling only narrows what can run
        if changes != {"enabled": False}:
            self._check_ceiling(validation)

        self._commit({**self._hooks, hook_id: updated})
        if existing.command != updated.command:
            self.consent.invalidate(hook_id)
        logger.info("Updated hook | id={} fields={}", hook_id, ",".join(sorted(changes)))
        return replace(updated)

    def remove_hook(self, hook_id: str) -> None:
        if hook_id not in self._hooks:
            raise HookNotFoundError(hook_id)
        self._commit({k: v for k, v in self._hooks.items() if k != hook_id})
        self.consent.invalidate(hook_id)
        self._history.forget(hook_id)
        logger.info("Removed hook | id={}", hook_id)

    def clear_all_hooks(self) -> None:
        self._commit({})
        self.consent.clear()
        self._history.clear()
        logger.info("Cleared all hooks")

    def get_hook(self, hook_id: str) -> HookConfiguration:
        hook = self._hooks.get(hook_id)
        if hook is None:
            raise HookNotFoundError(hook_id)
        return replace(hook)

    def list_hooks(self) -> list[HookConfiguration]:
        return [replace(h) for h in self._hooks.values()]

    def validate_all_hooks(self) -> dict[str, SecurityValidation]:
        return {hook_id: self.validator.validate(h) for hook_id, h in self._hooks.items()}

    # ── Dispatch ────────────────────────────────────────────────────

    def _matching(
        self, event: HookEvent | str, tool_name: str | None
    ) -> list[HookConfiguration]:
        event = HookEvent(event)
        return [
            h for h in self._hooks.values() if h.event is event and h.enabled and h.matches(tool_name)
        ]

    def get_hooks_for_event(
        self, event: HookEvent | str, tool_name: str | None = None
    ) -> list[HookConfiguration]:
        return [replace(h) for h in self._matching(event, tool_name)]

    # ── Execution ───────────────────────────────────────────────────

    async def execute_hooks(self, context: HookExecutionContext) -> list[HookExecutionResult]:
        if self._permission_level is PermissionLevel.DISABLED:
            logger.debug("Hooks disabled, skipping | event={}", context.event.value)
            return []

        hooks = self._matching(context.event, context.tool_name)
        if not hooks:
            return []

        logger.debug(
            "Executing hooks | event={} tool={} count={}",
            context.event.value,
            context.tool_name,
            len(hooks),
        )
        results = await asyncio.gather(*(self._run_hook(h, context) for h in hooks))
        return list(results)

    def run_hooks(self, context: HookExecutionContext) -> list[HookExecutionResult]:
        """Blocking wrapper around execute_hooks for synchronous callers."""
        return asyncio.run(self.execute_hooks(context))

    async def _run_hook(
        self, hook: HookConfiguration, context: HookExecutionContext
    ) -> HookExecutionResult:
        start = time.monotonic()
        try:
            result = await self._gate_and_execute(hook, context)
        except Exception as e:
            logger.error("Hook execution error | id={} error={}", hook.id, e)
            result = failure_result(
                hook.id, str(e) or type(e).__name__, (time.monotonic() - start) * 1000, error=e
            )
        # a hook removed while it was running must not get its history back
        if hook.id in self._hooks:
            self._history.record(result)
        return result

    async def _gate_and_execute(
        self, hook: HookConfiguration, context: HookExecutionContext
    ) -> HookExecutionResult:
        validation = self.validator.validate(hook)
        level = self._permission_level
        if not validation.valid:
            return failure_result(
                hook.id, f"Hook failed security validation: {', '.join(validation.errors)}"
            )
        if not level.allows(validation.risk_level):
            return failure_result(
                hook.id,
                f"Hook risk level ({validation.risk_level.value}) exceeds allowed level "
                f"for {level.value} mode",
            )
        if level is PermissionLevel.WITH_WARNING and validation.risk_level in CONSENT_RISKS:
            if not await self.consent.check(hook, validation):
                return failure_result(hook.id, DECLINED_MESSAGE)
            # the registry or level may have changed while the prompt was open
            current = self._hooks.get(hook.id)
            if (
                self._permission_level is not PermissionLevel.WITH_WARNING
                or current is None
                or current.command != hook.command
            ):
                logger.warning("Hook changed while awaiting consent, skipping | id={}", hook.id)
                return failure_result(hook.id, STALE_CONSENT_MESSAGE)
        return await execute_hook(hook, context, self.default_timeout)

    def get_execution_history(self, hook_id: str) -> list[HookExecutionResult]:
        return self._history.get(hook_id)

    # ── Permission level ────────────────────────────────────────────

    @property
    def permission_level(self) -> PermissionLevel:
        return self._permission_level

    def get_permission_level(self) -> PermissionLevel:
        return self._permission_level

    def set_permission_level(self, level: PermissionLevel | str) -> None:
        level = PermissionLevel(level)
        previous = self._permission_level
        self._permission_level = level
        if level in (PermissionLevel.DISABLED, PermissionLevel.SAFE_ONLY):
            self.consent.clear()
        logger.info("Permission level changed | from={} to={}", previous.value, level.value)

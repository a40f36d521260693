"""Bounded per-hook execution log."""

from __future__ import annotations

from collections import deque

from .models import HookExecutionResult

DEFAULT_HISTORY_LIMIT = 100


class ExecutionHistory:
    """Keeps the most recent results per hook; oldest entries are evicted first."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit <= 0:
            raise ValueError(f"history limit must be > 0, got {limit}")
        self.limit = limit
        self._entries: dict[str, deque[HookExecutionResult]] = {}

    def record(self, result: HookExecutionResult) -> None:
        entries = self._entries.get(result.hook_id)
        if entries is None:
            entries = self._entries[result.hook_id] = deque(maxlen=self.limit)
        entries.append(result)

    def get(self, hook_id: str) -> list[HookExecutionResult]:
        return list(self._entries.get(hook_id, ()))

    def forget(self, hook_id: str) -> None:
        self._entries.pop(hook_id, None)

    def clear(self) -> None:
        self._entries.clear()

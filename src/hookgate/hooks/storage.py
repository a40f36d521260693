"""Durable storage for hook configurations: whole-list load/save."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from .errors import StorageError
from .models import HookConfiguration


class HookStore(Protocol):
    def load(self) -> list[dict[str, Any]]: ...

    def save(self, hooks: list[HookConfiguration]) -> None: ...


class MemoryStore:
    """Keeps serialized hooks in memory. Useful for tests and throwaway sessions."""

    def __init__(self, entries: list[dict[str, Any]] | None = None):
        self.entries: list[dict[str, Any]] = list(entries or [])
        self.saves = 0

    def load(self) -> list[dict[str, Any]]:
        return [dict(e) for e in self.entries]

    def save(self, hooks: list[HookConfiguration]) -> None:
        self.entries = [h.to_dict() for h in hooks]
        self.saves += 1


class JsonFileStore:
    """A JSON array on disk, overwritten in full on every save (last writer wins)."""

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def load(self) -> list[dict[str, Any]]:
        """Return raw entries. A missing file is an empty store."""
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e
        if not isinstance(data, list):
            raise StorageError(f"{self.path} must contain a JSON array of hooks")
        return data

    def save(self, hooks: list[HookConfiguration]) -> None:
        payload = json.dumps([h.to_dict() for h in hooks], indent=2)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload + "\n")
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to write {self.path}: {e}") from e

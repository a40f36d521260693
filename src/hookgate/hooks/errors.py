"""Exceptions raised by the hook registry.

Execution failures are never raised; they come back as HookExecutionResult data.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SecurityValidation


class HookError(Exception):
    """Base class for all hook registry errors."""


class ValidationError(HookError):
    """Malformed hook configuration shape."""

    def __init__(self, problems: list[str] | str):
        self.problems = [problems] if isinstance(problems, str) else list(problems)
        super().__init__(f"Invalid hook configuration: {'; '.join(self.problems)}")


class SecurityRejectionError(HookError):
    """The security validator refused the hook, or its risk exceeds the current ceiling."""

    def __init__(self, message: str, validation: SecurityValidation | None = None):
        self.validation = validation
        super().__init__(message)


class HookPermissionError(HookError):
    """The current permission level forbids the operation."""


class RiskCeilingError(SecurityRejectionError, HookPermissionError):
    """Risk level above what the current permission level allows."""


class HookNotFoundError(HookError, KeyError):
    def __init__(self, hook_id: str):
        self.hook_id = hook_id
        HookError.__init__(self, f"Hook not found: {hook_id}")

    def __str__(self) -> str:
        return f"Hook not found: {self.hook_id}"


class StorageError(HookError):
    """The backing store could not be read or written."""


class ConfigError(HookError):
    """A settings file or environment variable holds an unusable value."""

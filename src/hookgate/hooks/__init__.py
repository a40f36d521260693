"""Hooks: user-configured commands run at agent lifecycle events, behind a permission gate."""

from .consent import ConsentGate, StaticConsentProvider, TerminalConsentProvider
from .engine import (
    build_environment,
    build_hook_input,
    execute_hook,
    process_result,
    run_command_hook,
)
from .errors import (
    ConfigError,
    HookError,
    HookNotFoundError,
    HookPermissionError,
    RiskCeilingError,
    SecurityRejectionError,
    StorageError,
    ValidationError,
)
from .history import ExecutionHistory
from .manager import HookManager
from .models import (
    BLOCK_EXIT_CODE,
    HOOK_EVENT_METADATA,
    HOOK_EVENTS,
    HookConfiguration,
    HookEvent,
    HookExecutionContext,
    HookExecutionResult,
    PermissionLevel,
    RiskLevel,
    SecurityValidation,
)
from .parser import import_settings_hooks, parse_hook_configuration, parse_hook_update
from .security import PatternSecurityValidator, SecurityValidator
from .storage import HookStore, JsonFileStore, MemoryStore

__all__ = [
    "BLOCK_EXIT_CODE",
    "HOOK_EVENTS",
    "HOOK_EVENT_METADATA",
    "ConfigError",
    "ConsentGate",
    "ExecutionHistory",
    "HookConfiguration",
    "HookError",
    "HookEvent",
    "HookExecutionContext",
    "HookExecutionResult",
    "HookManager",
    "HookNotFoundError",
    "HookPermissionError",
    "HookStore",
    "JsonFileStore",
    "MemoryStore",
    "PatternSecurityValidator",
    "PermissionLevel",
    "RiskCeilingError",
    "RiskLevel",
    "SecurityRejectionError",
    "SecurityValidation",
    "SecurityValidator",
    "StaticConsentProvider",
    "StorageError",
    "TerminalConsentProvider",
    "ValidationError",
    "build_environment",
    "build_hook_input",
    "execute_hook",
    "import_settings_hooks",
    "parse_hook_configuration",
    "parse_hook_update",
    "process_result",
    "run_command_hook",
]

"""Hook data models: events, risk/permission levels, configurations, results."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class HookEvent(str, Enum):
    PreToolUse = "PreToolUse"
    PostToolUse = "PostToolUse"
    Notification = "Notification"
    UserPromptSubmit = "UserPromptSubmit"
    SessionStart = "SessionStart"
    Stop = "Stop"
    SubagentStop = "SubagentStop"
    PreCompact = "PreCompact"


HOOK_EVENTS = tuple(e.value for e in HookEvent)

HOOK_SOURCES = ("settings", "user", "default")

# Reserved exit code a hook uses to veto the operation that raised the event.
BLOCK_EXIT_CODE = 2

DEFAULT_TIMEOUT = 60.0
MAX_TIMEOUT = 600.0


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RISK_ORDER.index(self)

    @classmethod
    def max(cls, a: RiskLevel, b: RiskLevel) -> RiskLevel:
        return a if a.rank >= b.rank else b


_RISK_ORDER = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL]


class PermissionLevel(str, Enum):
    """Process-wide policy gating registration and execution."""

    DISABLED = "disabled"
    SAFE_ONLY = "safe-only"
    WITH_WARNING = "with-warning"

    def allows(self, risk: RiskLevel) -> bool:
        if self is PermissionLevel.DISABLED:
            return False
        if self is PermissionLevel.SAFE_ONLY:
            return risk is RiskLevel.LOW
        return True


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class HookConfiguration:
    """A registered binding of an event (plus optional tool matcher) to a shell command."""

    id: str
    event: HookEvent
    command: str
    matcher: str | None = None
    source: str = "user"
    enabled: bool = True
    timeout: float | None = None  # seconds; None = engine default
    created: datetime = field(default_factory=utcnow)
    updated: datetime = field(default_factory=utcnow)

    def matches(self, tool_name: str | None) -> bool:
        """Regex search against *tool_name*, falling back to a pipe-separated literal list."""
        if not self.matcher or tool_name is None:
            return True
        try:
            pattern = re.compile(self.matcher)
        except re.error:
            names = [m.strip() for m in self.matcher.split("|")]
            return tool_name in names
        return pattern.search(tool_name) is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "event": self.event.value,
            "command": self.command,
            "matcher": self.matcher,
            "source": self.source,
            "enabled": self.enabled,
            "timeout": self.timeout,
            "created": self.created.isoformat(),
            "updated": self.updated.isoformat(),
        }


@dataclass(frozen=True)
class HookExecutionContext:
    """Everything the caller knows about the event being raised."""

    event: HookEvent
    session_id: str
    user_id: str
    timestamp: datetime = field(default_factory=utcnow)
    tool_name: str | None = None
    parameters: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "event", HookEvent(self.event))


@dataclass
class HookExecutionResult:
    hook_id: str
    success: bool
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: float = 0.0
    blocked: bool = False
    feedback: str | None = None
    error: BaseException | None = None
    timed_out: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "hook_id": self.hook_id,
            "success": self.success,
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "duration_ms": round(self.duration_ms, 1),
            "blocked": self.blocked,
            "feedback": self.feedback,
            "error": str(self.error) if self.error else None,
            "timed_out": self.timed_out,
        }


@dataclass
class SecurityValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    risk_level: RiskLevel = RiskLevel.LOW


@dataclass(frozen=True)
class HookTemplate:
    id: str
    name: str
    description: str
    event: HookEvent
    command: str
    category: str  # "security" | "logging" | "validation" | "notification" | "custom"
    risk_level: RiskLevel
    matcher: str | None = None


@dataclass(frozen=True)
class HookEventInfo:
    summary: str
    description: str
    match_field: str | None = None
    match_values: tuple[str, ...] = ()


HOOK_EVENT_METADATA: dict[HookEvent, HookEventInfo] = {
    HookEvent.PreToolUse: HookEventInfo(
        "Before tool execution",
        "Input is JSON with tool_input. Exit 0: output hidden. "
        "Exit 2: stderr shown to model, tool call blocked. Other: stderr shown to user.",
        match_field="tool_name",
    ),
    HookEvent.PostToolUse: HookEventInfo(
        "After tool execution",
        "Input is JSON with tool_input and tool_response. Exit 0: stdout shown in transcript. "
        "Exit 2: stderr shown to model. Other: stderr shown to user.",
        match_field="tool_name",
    ),
    HookEvent.Notification: HookEventInfo(
        "When notifications are sent",
        "Receives notification data as JSON input.",
    ),
    HookEvent.UserPromptSubmit: HookEventInfo(
        "When the user submits a prompt",
        "Input is JSON with the prompt. Exit 0: stdout added to context. "
        "Exit 2: prompt blocked, stderr shown to user.",
    ),
    HookEvent.SessionStart: HookEventInfo(
        "When a new session is started",
        "Input is JSON with the start source. Exit 0: stdout added to context.",
        match_field="source",
        match_values=("startup", "resume", "clear", "compact"),
    ),
    HookEvent.Stop: HookEventInfo(
        "Right before the agent concludes its response",
        "Exit 2: stderr shown to model and the conversation continues.",
    ),
    HookEvent.SubagentStop: HookEventInfo(
        "Right before a subagent concludes its response",
        "Exit 2: stderr shown to the subagent and it keeps running.",
    ),
    HookEvent.PreCompact: HookEventInfo(
        "Before conversation compaction",
        "Input is JSON with compaction details. Exit 0: stdout appended as compact "
        "instructions. Exit 2: compaction blocked.",
        match_field="trigger",
        match_values=("manual", "auto"),
    ),
}

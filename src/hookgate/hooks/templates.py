"""Built-in hook templates for common use cases."""

from __future__ import annotations

from typing import Any

from .models import HookEvent, HookTemplate, RiskLevel

TEMPLATES: tuple[HookTemplate, ...] = (
    HookTemplate(
        id="log-file-changes",
        name="Log File Changes",
        description="Log all file modifications to a file",
        event=HookEvent.PostToolUse,
        command=(
            'jq -r \'"\\(.tool_input.file_path // "N/A") - \\(.timestamp)"\' '
            ">> ~/.hookgate/file-changes.log"
        ),
        matcher="Write|Edit|MultiEdit",
        category="logging",
        risk_level=RiskLevel.MEDIUM,
    ),
    HookTemplate(
        id="validate-json",
        name="Validate JSON Files",
        description="Ensure JSON files are valid before writing",
        event=HookEvent.PreToolUse,
        command=(
            "jq -r '.tool_input.file_path | select(endswith(\".json\"))' "
            "| xargs -r jq . > /dev/null"
        ),
        matcher="Write",
        category="validation",
        risk_level=RiskLevel.MEDIUM,
    ),
    HookTemplate(
        id="backup-before-edit",
        name="Backup Before Edit",
        description="Create backup of files before editing",
        event=HookEvent.PreToolUse,
        command='cp "$HOOKGATE_HOOK_FILE" "$HOOKGATE_HOOK_FILE.bak" 2>/dev/null || true',
        matcher="Edit|MultiEdit",
        category="security",
        risk_level=RiskLevel.MEDIUM,
    ),
    HookTemplate(
        id="notify-on-error",
        name="Notify on Tool Error",
        description="Send notification when tool execution fails",
        event=HookEvent.PostToolUse,
        command=(
            "jq -r 'select(.tool_response.error) | \"Tool failed: \\(.tool_response.error)\"' "
            '| notify-send "hookgate" 2>/dev/null || true'
        ),
        category="notification",
        risk_level=RiskLevel.MEDIUM,
    ),
    HookTemplate(
        id="security-check",
        name="Security Check on Sensitive Files",
        description="Prevent editing of sensitive files",
        event=HookEvent.PreToolUse,
        command=(
            "jq -r '.tool_input.file_path | select(test(\".env|.ssh|secrets|password|token\"; \"i\"))' "
            "| xargs -r -I {} sh -c 'echo \"Blocked access to sensitive file: {}\" >&2; exit 2'"
        ),
        matcher="Write|Edit|MultiEdit|Read",
        category="security",
        risk_level=RiskLevel.MEDIUM,
    ),
)


def get_template(template_id: str) -> HookTemplate:
    for template in TEMPLATES:
        if template.id == template_id:
            return template
    raise KeyError(f"Unknown hook template: {template_id}")


def template_payload(template_id: str, **overrides: Any) -> dict[str, Any]:
    """Registration payload for a template, with optional field overrides."""
    t = get_template(template_id)
    payload: dict[str, Any] = {
        "event": t.event.value,
        "command": t.command,
        "matcher": t.matcher,
        "source": "default",
    }
    payload.update(overrides)
    return payload

"""Hook config parsing: registration payloads, partial updates, persisted records, settings import."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from .errors import ValidationError
from .models import HOOK_EVENTS, HOOK_SOURCES, MAX_TIMEOUT, HookConfiguration, HookEvent

EDITABLE_FIELDS = ("event", "command", "matcher", "source", "enabled", "timeout")


def _check_field(key: str, value: Any, problems: list[str]) -> None:
    if key == "event":
        if value not in HOOK_EVENTS:
            problems.append(f"event must be one of {', '.join(HOOK_EVENTS)}, got {value!r}")
    elif key == "command":
        if not isinstance(value, str) or not value.strip():
            problems.append("command must be a non-empty string")
    elif key == "matcher":
        if value is not None and not isinstance(value, str):
            problems.append("matcher must be a string")
    elif key == "source":
        if value not in HOOK_SOURCES:
            problems.append(f"source must be one of {', '.join(HOOK_SOURCES)}, got {value!r}")
    elif key == "enabled":
        if not isinstance(value, bool):
            problems.append("enabled must be a boolean")
    elif key == "timeout":
        if value is None:
            return
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            problems.append("timeout must be a number of seconds")
        elif not 0 < value <= MAX_TIMEOUT:
            problems.append(f"timeout must be in (0, {MAX_TIMEOUT:g}] seconds, got {value}")


def parse_hook_update(partial: dict) -> dict[str, Any]:
    """Validate a partial update. Returns the normalised changes."""
    if not isinstance(partial, dict):
        raise ValidationError("update must be a mapping")
    problems: list[str] = []
    for key in partial:
        if key in ("id", "created"):
            problems.append(f"{key} cannot be changed")
        elif key == "updated":
            continue
        elif key not in EDITABLE_FIELDS:
            problems.append(f"unknown field {key!r}")
        else:
            _check_field(key, partial[key], problems)
    if problems:
        raise ValidationError(problems)

    changes = {k: v for k, v in partial.items() if k in EDITABLE_FIELDS}
    if "event" in changes:
        changes["event"] = HookEvent(changes["event"])
    if changes.get("matcher") == "":
        changes["matcher"] = None
    if changes.get("timeout") is not None:
        changes["timeout"] = float(changes["timeout"])
    return changes


def parse_hook_configuration(raw: dict) -> dict[str, Any]:
    """Validate a registration payload. id/created/updated are ignored."""
    if not isinstance(raw, dict):
        raise ValidationError("hook configuration must be a mapping")
    payload = {k: v for k, v in raw.items() if k not in ("id", "created", "updated")}
    missing = [k for k in ("event", "command") if k not in payload]
    if missing:
        raise ValidationError([f"missing required field {k!r}" for k in missing])
    changes = parse_hook_update(payload)
    changes.setdefault("matcher", None)
    changes.setdefault("source", "user")
    changes.setdefault("enabled", True)
    changes.setdefault("timeout", None)
    return changes


def _parse_timestamp(value: Any, key: str) -> datetime:
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be an ISO-8601 timestamp")
    if value.endswith("Z"):
        # fromisoformat only accepts the Z suffix from 3.11 on
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{key} is not a valid timestamp: {value!r}") from None


def hook_from_dict(data: dict) -> HookConfiguration:
    """Restore a persisted HookConfiguration."""
    if not isinstance(data, dict):
        raise ValidationError("stored hook must be a mapping")
    hook_id = data.get("id")
    if not isinstance(hook_id, str) or not hook_id:
        raise ValidationError("stored hook has no id")
    fields = parse_hook_configuration(data)
    return HookConfiguration(
        id=hook_id,
        created=_parse_timestamp(data.get("created"), "created"),
        updated=_parse_timestamp(data.get("updated"), "updated"),
        **fields,
    )


def import_settings_hooks(data: dict) -> list[dict[str, Any]]:
    """Convert a Claude Code-style hooks dict into registration payloads."""
    if "hooks" in data and isinstance(data["hooks"], dict):
        inner = data["hooks"]
        if any(k in HOOK_EVENTS for k in inner):
            data = inner

    payloads: list[dict[str, Any]] = []
    for event in HOOK_EVENTS:
        rules = data.get(event)
        if not isinstance(rules, list):
            continue
        for rule in rules:
            if not isinstance(rule, dict):
                continue
            matcher = rule.get("matcher", "*")
            for hook in rule.get("hooks", []):
                if not isinstance(hook, dict) or hook.get("type", "command") != "command":
                    continue
                payload: dict[str, Any] = {
                    "event": event,
                    "command": hook.get("command", ""),
                    "matcher": None if matcher in ("*", "") else matcher,
                    "source": "settings",
                }
                if "timeout" in hook:
                    payload["timeout"] = hook["timeout"]
                payloads.append(payload)
    return payloads

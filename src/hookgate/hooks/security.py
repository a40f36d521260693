"""Security validation for hook commands.

The registry only depends on the ``SecurityValidator`` protocol. The default
``PatternSecurityValidator`` classifies shell text with static rules; swap it
for an allowlist or anything else that returns a ``SecurityValidation``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Protocol

from .models import HookConfiguration, HookEvent, RiskLevel, SecurityValidation

MAX_COMMAND_LENGTH = 5000


class SecurityValidator(Protocol):
    def validate(self, hook: HookConfiguration) -> SecurityValidation: ...


L, M, H, C = RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL

DANGEROUS_PATTERNS: list[tuple[re.Pattern, RiskLevel, str]] = [
    (re.compile(p, flags), risk, msg)
    for p, flags, risk, msg in [
        # filesystem destruction
        (r"\brm\s+-rf\s+/", 0, C, "Destructive rm -rf on root filesystem"),
        (r"\brm\s+-rf\s+~", 0, H, "Destructive rm -rf on home directory"),
        (r"\brm\s+-rf\s+\*", 0, H, "Destructive rm -rf with wildcard"),
        (r"\b(dd|mkfs|fdisk|parted)\s+", 0, C, "Disk manipulation command"),
        # privilege escalation
        (r"\bsudo\b", 0, H, "Using sudo - hooks run with your user permissions"),
        (r"\bsu\s+", 0, H, "Switching user context"),
        (r"\bchmod\s+777", 0, H, "Setting overly permissive file permissions"),
        (r"\bchown\s+", 0, M, "Changing file ownership"),
        # network and exfiltration
        (r"curl.*\|\s*(sh|bash)", 0, C, "Downloading and executing remote code"),
        (r"wget.*\|\s*(sh|bash)", 0, C, "Downloading and executing remote code"),
        (r"nc\s+-l", 0, H, "Opening network listener"),
        (r"\bssh\s+", 0, M, "SSH connection to remote host"),
        (r"\brsync\s+", 0, M, "Syncing files to remote location"),
        # system modification
        (r"\b(systemctl|service)\s+(stop|disable)", 0, H, "Stopping system services"),
        (r"\bkill\s+-9", 0, M, "Force killing processes"),
        (r"\bpkill\s+", 0, M, "Killing processes by name"),
        (r"/etc/(passwd|shadow|sudoers)", 0, C, "Accessing system authentication files"),
        # injection
        (r"\$\(.*\)", 0, M, "Command substitution - potential injection risk"),
        (r"`.*`", 0, M, "Backtick command substitution - potential injection risk"),
        (r"eval\s+", 0, H, "Using eval - high injection risk"),
        (r"\.\./", 0, M, "Path traversal pattern detected"),
        (r"\b(xmrig|cgminer|bfgminer|minerd)\b", 0, C, "Cryptocurrency mining software"),
        (r"/(\.ssh|\.aws|\.docker|\.kube)/", 0, H, "Accessing sensitive configuration directory"),
        (
            r"\b(private.*key|secret|password|token|credential)",
            re.IGNORECASE,
            M,
            "Accessing potentially sensitive files",
        ),
    ]
]

SAFE_PATTERNS = [
    re.compile(p)
    for p in (
        r"^echo\s+",
        r"^jq\s+",
        r"^cat\s+",
        r"^grep\s+",
        r"^awk\s+",
        r"^sed\s+",
        r"^wc\s+",
        r"^date\s*",
        r"^pwd$",
        r"^ls\s+",
        r"^find\s+.*-name",
        r"^test\s+",
        r"^\[\[.*\]\]$",
    )
]

SENSITIVE_ENV_VARS = (
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "GITHUB_TOKEN",
    "NPM_TOKEN",
    "DATABASE_PASSWORD",
    "API_KEY",
    "PRIVATE_KEY",
    "SECRET_KEY",
)

SHELL_BUILTINS = frozenset(
    "echo cd pwd export unset alias unalias history exit source . true false test "
    "[ [[ read printf let declare typeset local return break continue shift exec "
    "fg bg jobs kill wait suspend logout times type hash help builtin command".split()
)

_EXECUTABLE = re.compile(r"^([^/~\s]+)(/[^\s]*)?(\s|$)")
_UNQUOTED_VAR = re.compile(r"\$[A-Za-z_][A-Za-z0-9_]*\b(?![\"'}])")
_SENSITIVE_REDIRECT = re.compile(r">\s*(/etc|/sys|/boot|~/\.(ssh|aws))")


class PatternSecurityValidator:
    """Static-rule risk classifier for hook commands."""

    def validate(self, hook: HookConfiguration) -> SecurityValidation:
        command = hook.command
        errors: list[str] = []
        warnings: list[str] = []
        risk = RiskLevel.LOW

        if len(command) > MAX_COMMAND_LENGTH:
            errors.append(f"Command is too long (max {MAX_COMMAND_LENGTH} characters)")
        if not command.strip():
            errors.append("Command cannot be empty")

        for pattern, level, message in DANGEROUS_PATTERNS:
            if pattern.search(command):
                if level is RiskLevel.CRITICAL:
                    errors.append(f"Critical security risk: {message}")
                else:
                    warnings.append(f"{level.value.upper()} risk: {message}")
                risk = RiskLevel.max(risk, level)

        m = _EXECUTABLE.match(command)
        if m and m.group(1) and m.group(1) not in SHELL_BUILTINS:
            warnings.append("Using relative path for executable - consider using absolute path")
            risk = RiskLevel.max(risk, RiskLevel.MEDIUM)

        for var in SENSITIVE_ENV_VARS:
            if f"${var}" in command or f"${{{var}}}" in command:
                warnings.append(f"Accessing sensitive environment variable: {var}")
                risk = RiskLevel.max(risk, RiskLevel.HIGH)

        if _UNQUOTED_VAR.search(command):
            warnings.append('Unquoted variable expansion - use "$VAR" instead of $VAR')
            risk = RiskLevel.max(risk, RiskLevel.MEDIUM)

        if _SENSITIVE_REDIRECT.search(command):
            errors.append("Output redirection to sensitive system location")
            risk = RiskLevel.CRITICAL

        if not warnings and not errors and any(p.search(command) for p in SAFE_PATTERNS):
            risk = RiskLevel.LOW

        self._validate_event_specific(hook, warnings, errors)

        return SecurityValidation(
            valid=not errors, errors=errors, warnings=warnings, risk_level=risk
        )

    def validate_many(
        self, hooks: Iterable[HookConfiguration]
    ) -> dict[str, SecurityValidation]:
        return {hook.id: self.validate(hook) for hook in hooks}

    @staticmethod
    def _validate_event_specific(
        hook: HookConfiguration, warnings: list[str], errors: list[str]
    ) -> None:
        if hook.event is HookEvent.PreToolUse and hook.matcher:
            try:
                re.compile(hook.matcher)
            except re.error:
                errors.append("Invalid regex pattern in tool matcher")
        elif hook.event is HookEvent.UserPromptSubmit and "exit 2" in hook.command:
            warnings.append("This hook can block user prompts - ensure this is intended")
        elif hook.event is HookEvent.PreCompact and "exit 2" in hook.command:
            warnings.append(
                "This hook can block conversation compaction - may affect memory usage"
            )

    @staticmethod
    def recommendations(command: str) -> list[str]:
        """Suggestions for hardening a hook command."""
        tips: list[str] = []
        if re.search(r"\$[A-Za-z_]", command) and not re.search(r"\"\$[A-Za-z_][^\"]*\"", command):
            tips.append('Quote all variable expansions: use "$VAR" instead of $VAR')
        if re.match(r"^[^/~\s]+/", command):
            tips.append("Use absolute paths for scripts (~/scripts/check.sh not check.sh)")
        if re.search(r"\b(curl|wget)\b", command) and not re.search(
            r"\b(curl|wget).*(-f|--fail)", command
        ):
            tips.append("Add --fail flag to curl/wget to handle HTTP errors properly")
        if "|" in command and "set -e" not in command and "|| " not in command:
            tips.append("Consider adding error handling with || or set -e")
        if "/tmp/" in command and "mktemp" not in command:
            tips.append("Use mktemp for creating temporary files safely")
        return tips

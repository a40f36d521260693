"""Hook execution engine: input document, environment, process runner, result processing."""

from __future__ import annotations

import asyncio
import json
import os
import signal
import time
from dataclasses import dataclass
from typing import Any

from loguru import logger

from .models import (
    BLOCK_EXIT_CODE,
    DEFAULT_TIMEOUT,
    HookConfiguration,
    HookEvent,
    HookExecutionContext,
    HookExecutionResult,
)

# Exit code recorded when no process exit status exists (spawn error, timeout, decline).
FAILURE_EXIT_CODE = -1

DEFAULT_BLOCK_MESSAGE = "Operation blocked by hook"

# Events whose successful stdout is handed back to the caller as feedback.
SURFACED_EVENTS = frozenset(
    {
        HookEvent.PostToolUse,
        HookEvent.UserPromptSubmit,
        HookEvent.SessionStart,
        HookEvent.PreCompact,
    }
)

ENV_PREFIX = "HOOKGATE_"


@dataclass(frozen=True)
class CommandOutput:
    exit_code: int
    stdout: str
    stderr: str


def build_hook_input(context: HookExecutionContext) -> dict[str, Any]:
    """The JSON document written to the hook's stdin."""
    doc: dict[str, Any] = {
        "event": context.event.value,
        "timestamp": context.timestamp.isoformat(),
        "sessionId": context.session_id,
    }
    metadata = context.metadata or {}
    event = context.event
    if event is HookEvent.PreToolUse:
        doc["tool_input"] = context.parameters
    elif event is HookEvent.PostToolUse:
        doc["tool_input"] = context.parameters
        doc["tool_response"] = metadata.get("result")
    elif event is HookEvent.UserPromptSubmit:
        doc["prompt"] = metadata.get("prompt")
    elif event is HookEvent.SessionStart:
        doc["source"] = metadata.get("source")
    elif event is HookEvent.PreCompact:
        doc["compactionDetails"] = context.metadata
    return doc


def build_environment(
    hook: HookConfiguration,
    context: HookExecutionContext,
    base: dict[str, str] | None = None,
) -> dict[str, str]:
    """Ambient environment with the hook variables laid over it."""
    overlay = {
        f"{ENV_PREFIX}HOOK_ID": hook.id,
        f"{ENV_PREFIX}HOOK_EVENT": context.event.value,
        f"{ENV_PREFIX}SESSION_ID": context.session_id,
        f"{ENV_PREFIX}USER_ID": context.user_id,
    }
    if context.tool_name:
        overlay[f"{ENV_PREFIX}TOOL_NAME"] = context.tool_name
    params = context.parameters or {}
    file_path = params.get("file_path") or params.get("path")
    if file_path:
        overlay[f"{ENV_PREFIX}HOOK_FILE"] = str(file_path)
    env = dict(os.environ if base is None else base)
    env.update(overlay)
    return env


def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        if hasattr(os, "killpg"):
            # the shell may have forked children that still hold the pipes
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass


async def run_command_hook(
    command: str, stdin_data: str, env: dict[str, str], timeout: float
) -> CommandOutput:
    """Run *command* through the shell. Raises asyncio.TimeoutError after killing on expiry."""
    proc = await asyncio.create_subprocess_shell(
        command,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=env,
        start_new_session=True,
    )
    try:
        stdout, stderr = await asyncio.wait_for(
            proc.communicate(stdin_data.encode("utf-8")), timeout=timeout
        )
    except asyncio.TimeoutError:
        _kill(proc)
        await proc.wait()
        raise
    except asyncio.CancelledError:
        _kill(proc)
        raise
    return CommandOutput(
        exit_code=proc.returncode if proc.returncode is not None else FAILURE_EXIT_CODE,
        stdout=stdout.decode("utf-8", errors="replace").strip(),
        stderr=stderr.decode("utf-8", errors="replace").strip(),
    )


def process_result(
    hook_id: str, event: HookEvent, output: CommandOutput, duration_ms: float = 0.0
) -> HookExecutionResult:
    """Interpret an exit code under the hook-event policy."""
    result = HookExecutionResult(
        hook_id=hook_id,
        success=output.exit_code == 0,
        exit_code=output.exit_code,
        stdout=output.stdout,
        stderr=output.stderr,
        duration_ms=duration_ms,
    )
    if output.exit_code == 0:
        if event in SURFACED_EVENTS:
            result.feedback = output.stdout
    elif output.exit_code == BLOCK_EXIT_CODE:
        result.blocked = True
        result.feedback = output.stderr or DEFAULT_BLOCK_MESSAGE
    else:
        result.feedback = f"Hook error: {output.stderr}"
    return result


def failure_result(
    hook_id: str,
    message: str,
    duration_ms: float = 0.0,
    error: BaseException | None = None,
    timed_out: bool = False,
) -> HookExecutionResult:
    return HookExecutionResult(
        hook_id=hook_id,
        success=False,
        exit_code=FAILURE_EXIT_CODE,
        stderr=message,
        duration_ms=duration_ms,
        blocked=False,
        feedback=message,
        error=error,
        timed_out=timed_out,
    )


async def execute_hook(
    hook: HookConfiguration,
    context: HookExecutionContext,
    default_timeout: float = DEFAULT_TIMEOUT,
) -> HookExecutionResult:
    """Run one hook to completion. Never raises for hook-level failures."""
    timeout = hook.timeout or default_timeout
    start = time.monotonic()

    def elapsed() -> float:
        return (time.monotonic() - start) * 1000

    try:
        stdin_data = json.dumps(build_hook_input(context), default=str)
        env = build_environment(hook, context)
        output = await run_command_hook(hook.command, stdin_data, env, timeout)
    except asyncio.TimeoutError as e:
        logger.warning("Hook timed out | id={} timeout={}s", hook.id, timeout)
        return failure_result(
            hook.id, f"Hook timed out after {timeout:g}s", elapsed(), error=e, timed_out=True
        )
    except Exception as e:
        logger.error("Hook failed to run | id={} error={}", hook.id, e)
        return failure_result(hook.id, str(e) or type(e).__name__, elapsed(), error=e)

    return process_result(hook.id, context.event, output, elapsed())

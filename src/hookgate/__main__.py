"""CLI entry point: manage, inspect and run hooks from the terminal."""

from __future__ import annotations

import json
import sys
import uuid
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from .core.config import load_config
from .core.log import configure_logging
from .core.utils import parse_assignments, short_path, truncate
from .hooks import (
    HOOK_EVENT_METADATA,
    HOOK_EVENTS,
    ConfigError,
    HookError,
    HookExecutionContext,
    HookManager,
    PatternSecurityValidator,
    PermissionLevel,
    import_settings_hooks,
)
from .hooks.templates import TEMPLATES, template_payload

console = Console()

LEVELS = [level.value for level in PermissionLevel]


def _manager(ctx: click.Context) -> HookManager:
    if "manager" not in ctx.obj:
        ctx.obj["manager"] = HookManager.from_config(ctx.obj["config"])
    return ctx.obj["manager"]


def _fail(e: Exception) -> None:
    console.print(f"error: {escape(str(e))}", style="bold")
    sys.exit(1)


def _print_hook(hook, risk: str | None = None) -> None:
    status = "[green]on[/green]" if hook.enabled else "[dim]off[/dim]"
    matcher = f" [{hook.matcher}]" if hook.matcher else ""
    timeout = f" {hook.timeout:g}s" if hook.timeout else ""
    risk_str = f"  [dim]risk={risk}[/dim]" if risk else ""
    console.print(
        f"  [bold]{hook.id[:8]}[/bold]  {hook.event.value}{escape(matcher)}  {status}{timeout}"
        f"  {escape(hook.command)}{risk_str}"
    )


# ── CLI ─────────────────────────────────────────────────────────────


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
@click.option("--hooks-file", type=click.Path(dir_okay=False), default=None, help="Hook store")
@click.option("--level", type=click.Choice(LEVELS), default=None, help="Permission level")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, hooks_file: str | None, level: str | None):
    """hookgate: run user hooks at agent lifecycle events."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(
            hooks_file=hooks_file, permission_level=level, verbose=verbose
        )
    except ConfigError as e:
        _fail(e)


def _resolve_id(manager: HookManager, prefix: str) -> str:
    """Accept a full id or an unambiguous prefix (as shown by `list`)."""
    ids = [h.id for h in manager.list_hooks() if h.id.startswith(prefix)]
    if len(ids) == 1:
        return ids[0]
    return prefix


@cli.command("list")
@click.pass_context
def list_cmd(ctx: click.Context):
    """List registered hooks."""
    manager = _manager(ctx)
    hooks = manager.list_hooks()
    if not hooks:
        console.print("no hooks registered", style="dim")
        console.print(f"store: {short_path(ctx.obj['config'].hooks_file)}", style="dim")
        return
    validations = manager.validate_all_hooks()
    for hook in hooks:
        _print_hook(hook, validations[hook.id].risk_level.value)


@cli.command()
@click.argument("event", type=click.Choice(HOOK_EVENTS))
@click.argument("command")
@click.option("--matcher", "-m", default=None, help="Tool name regex or a|b|c list")
@click.option("--timeout", "-t", type=float, default=None, help="Timeout in seconds")
@click.option("--disabled", is_flag=True, help="Register without enabling")
@click.pass_context
def add(ctx, event: str, command: str, matcher: str | None, timeout: float | None, disabled: bool):
    """Register a hook."""
    payload = {"event": event, "command": command, "matcher": matcher, "enabled": not disabled}
    if timeout is not None:
        payload["timeout"] = timeout
    try:
        hook = _manager(ctx).register_hook(payload)
    except HookError as e:
        _fail(e)
    console.print(f"added [bold]{hook.id}[/bold]")


@cli.command("add-template")
@click.argument("template_id", type=click.Choice([t.id for t in TEMPLATES]))
@click.pass_context
def add_template(ctx, template_id: str):
    """Register a built-in template."""
    try:
        hook = _manager(ctx).register_hook(template_payload(template_id))
    except HookError as e:
        _fail(e)
    console.print(f"added [bold]{hook.id}[/bold] from {template_id}")


@cli.command()
@click.argument("hook_id")
@click.option("--command", "-c", default=None)
@click.option("--matcher", "-m", default=None, help="Empty string removes the matcher")
@click.option("--timeout", "-t", type=float, default=None)
@click.pass_context
def update(ctx, hook_id: str, command: str | None, matcher: str | None, timeout: float | None):
    """Edit a hook. Changing the command drops any consent given for it."""
    changes: dict = {}
    if command is not None:
        changes["command"] = command
    if matcher is not None:
        changes["matcher"] = matcher
    if timeout is not None:
        changes["timeout"] = timeout
    manager = _manager(ctx)
    try:
        hook = manager.update_hook(_resolve_id(manager, hook_id), changes)
    except HookError as e:
        _fail(e)
    _print_hook(hook)


def _set_enabled(ctx: click.Context, hook_id: str, enabled: bool) -> None:
    manager = _manager(ctx)
    try:
        hook = manager.update_hook(_resolve_id(manager, hook_id), {"enabled": enabled})
    except HookError as e:
        _fail(e)
    _print_hook(hook)


@cli.command()
@click.argument("hook_id")
@click.pass_context
def enable(ctx, hook_id: str):
    """Enable a hook."""
    _set_enabled(ctx, hook_id, True)


@cli.command()
@click.argument("hook_id")
@click.pass_context
def disable(ctx, hook_id: str):
    """Disable a hook without removing it."""
    _set_enabled(ctx, hook_id, False)


@cli.command()
@click.argument("hook_id")
@click.pass_context
def remove(ctx, hook_id: str):
    """Remove a hook."""
    manager = _manager(ctx)
    hook_id = _resolve_id(manager, hook_id)
    try:
        manager.remove_hook(hook_id)
    except HookError as e:
        _fail(e)
    console.print(f"removed [bold]{hook_id}[/bold]")


@cli.command()
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def clear(ctx, yes: bool):
    """Remove every hook."""
    if not yes and not click.confirm("Remove all hooks?"):
        return
    try:
        _manager(ctx).clear_all_hooks()
    except HookError as e:
        _fail(e)
    console.print("cleared", style="dim")


@cli.command()
@click.argument("event", type=click.Choice(HOOK_EVENTS))
@click.option("--tool", default=None, help="Tool name for PreToolUse/PostToolUse")
@click.option("--param", "-p", multiple=True, help="Tool parameter key=value (repeatable)")
@click.option("--meta", multiple=True, help="Event metadata key=value (prompt=, source=, ...)")
@click.option("--session", default=None, help="Session id (default: random)")
@click.option("--user", default="user", help="User id")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def run(ctx, event, tool, param, meta, session, user, as_json):
    """Raise EVENT and run every matching hook. Exits 2 if any hook blocked."""
    try:
        parameters = parse_assignments(param)
        metadata = parse_assignments(meta)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    context = HookExecutionContext(
        event=event,
        session_id=session or uuid.uuid4().hex[:8],
        user_id=user,
        tool_name=tool,
        parameters=parameters or None,
        metadata=metadata or None,
    )
    results = _manager(ctx).run_hooks(context)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2))
    elif not results:
        console.print("no matching hooks", style="dim")
    else:
        for r in results:
            if r.blocked:
                label = "[red]blocked[/red]"
            elif r.success:
                label = "[green]ok[/green]"
            else:
                label = "[yellow]failed[/yellow]"
            console.print(
                f"  [bold]{r.hook_id[:8]}[/bold]  {label}  exit={r.exit_code}  "
                f"{r.duration_ms:.0f}ms"
            )
            if r.feedback:
                console.print(f"    {escape(truncate(r.feedback))}", style="dim")

    if any(r.blocked for r in results):
        sys.exit(2)


@cli.command()
@click.argument("hook_id")
@click.pass_context
def history(ctx, hook_id: str):
    """Show recent executions of a hook (this process only)."""
    manager = _manager(ctx)
    entries = manager.get_execution_history(_resolve_id(manager, hook_id))
    if not entries:
        console.print("no executions recorded", style="dim")
    for r in entries:
        console.print(f"  exit={r.exit_code}  blocked={r.blocked}  {r.duration_ms:.0f}ms")


@cli.command()
@click.argument("new_level", required=False, type=click.Choice(LEVELS))
@click.pass_context
def level(ctx, new_level: str | None):
    """Show the permission level, or persist a new one to the global settings."""
    config = ctx.obj["config"]
    if new_level is None:
        console.print(config.permission_level.value)
        return
    settings_path = config.global_dir / "settings.json"
    data = json.loads(settings_path.read_text()) if settings_path.exists() else {}
    data["permissionLevel"] = new_level
    settings_path.parent.mkdir(parents=True, exist_ok=True)
    settings_path.write_text(json.dumps(data, indent=2) + "\n")
    console.print(f"permission level set to [bold]{new_level}[/bold] in {short_path(settings_path)}")


@cli.command()
@click.pass_context
def validate(ctx):
    """Re-run security validation on every hook."""
    manager = _manager(ctx)
    hooks = {h.id: h for h in manager.list_hooks()}
    for hook_id, v in manager.validate_all_hooks().items():
        _print_hook(hooks[hook_id], v.risk_level.value)
        for err in v.errors:
            console.print(f"    [red]{escape(err)}[/red]")
        for warning in v.warnings:
            console.print(f"    [yellow]{escape(warning)}[/yellow]")
        for tip in PatternSecurityValidator.recommendations(hooks[hook_id].command):
            console.print(f"    [dim]{escape(tip)}[/dim]")


@cli.command()
def events():
    """Describe the lifecycle events hooks can bind to."""
    for event, info in HOOK_EVENT_METADATA.items():
        console.print(f"  [bold]{event.value:<18}[/bold] {info.summary}")
        console.print(f"    [dim]{escape(info.description)}[/dim]")


@cli.command()
def templates():
    """List built-in hook templates."""
    for t in TEMPLATES:
        console.print(
            f"  [bold]{t.id:<20}[/bold] {t.event.value:<12} {t.category:<12} "
            f"[dim]{t.risk_level.value}[/dim]  {t.description}"
        )


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_cmd(ctx, path: str):
    """Register the command hooks found in a Claude Code-style settings.json."""
    data = json.loads(Path(path).read_text())
    manager = _manager(ctx)
    added = 0
    for payload in import_settings_hooks(data):
        try:
            manager.register_hook(payload)
            added += 1
        except HookError as e:
            console.print(
                f"  skipped {payload['event']} {escape(payload['command'])}: {escape(str(e))}",
                style="dim",
            )
    console.print(f"imported {added} hook(s)")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()

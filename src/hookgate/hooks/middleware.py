"""HooksMiddleware: raises PreToolUse / PostToolUse around langchain agent tool calls."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from langchain.agents.middleware import AgentMiddleware
from langchain.messages import ToolMessage
from langchain.tools.tool_node import ToolCallRequest
from langgraph.types import Command
from rich.console import Console
from rich.markup import escape

from .models import HookEvent, HookExecutionContext

if TYPE_CHECKING:
    from .manager import HookManager

console = Console()


class HooksMiddleware(AgentMiddleware):
    """Run PreToolUse / PostToolUse hooks around tool calls."""

    def __init__(self, manager: HookManager, session_id: str, user_id: str = "user"):
        self.manager = manager
        self.session_id = session_id
        self.user_id = user_id

    def wrap_tool_call(
        self,
        request: ToolCallRequest,
        handler: Callable[[ToolCallRequest], ToolMessage | Command],
    ) -> ToolMessage | Command:
        tool_name = request.tool_call["name"]
        args = request.tool_call.get("args", {})

        pre_results = self.manager.run_hooks(
            HookExecutionContext(
                event=HookEvent.PreToolUse,
                session_id=self.session_id,
                user_id=self.user_id,
                tool_name=tool_name,
                parameters=args,
            )
        )
        for r in pre_results:
            if r.blocked:
                return ToolMessage(
                    content=f"Tool call blocked by hook: {r.feedback}",
                    tool_call_id=request.tool_call["id"],
                )
            if not r.success and r.feedback:
                console.print(f"  [dim]hook: {escape(r.feedback)}[/dim]")

        result = handler(request)

        content = getattr(result, "content", None)
        post_results = self.manager.run_hooks(
            HookExecutionContext(
                event=HookEvent.PostToolUse,
                session_id=self.session_id,
                user_id=self.user_id,
                tool_name=tool_name,
                parameters=args,
                metadata={"result": content if isinstance(content, (str, list, dict)) else None},
            )
        )
        for r in post_results:
            if r.feedback:
                console.print(f"  [dim]hook: {escape(r.feedback)}[/dim]")

        return result

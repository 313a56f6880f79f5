# localcoder/commands/context_command.py
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.panel import Panel

from localcoder.data_models import Role

if TYPE_CHECKING:
    from localcoder.app_state import AppState

ROLE_COLORS = {
    Role.USER: "green",
    Role.ASSISTANT: "cyan",
    Role.TOOL_RESULT: "magenta",
    Role.SYSTEM: "yellow",
}


def try_handle_context_command(user_input: str, app_state: 'AppState') -> bool:
    if not user_input.lower().strip().startswith("/context"):
        return False

    turns = [t for t in app_state.conversation.turns if t.role != Role.SYSTEM]
    if not turns:
        app_state.console.print("[yellow]Conversation history is empty.[/yellow]")
        return True

    app_state.console.print(Panel(
        f"{len(turns)} turn(s), {app_state.conversation.iteration_count} tool round(s) in the last request",
        title="[bold blue]💬 Conversation Context[/bold blue]",
        border_style="blue", padding=(1, 1)
    ))

    for i, turn in enumerate(turns):
        role_color = ROLE_COLORS.get(turn.role, "white")
        content = turn.content
        app_state.console.print(f"╭─ [bold {role_color}]{turn.role.value.capitalize()}[/bold {role_color}] ({i+1}/{len(turns)})")
        if content: app_state.console.print(f"│  {escape(content[:200])}{'...' if len(content) > 200 else ''}")
        app_state.console.print("╰─")
    app_state.console.print()
    return True

# localcoder/commands/debug_command.py
from typing import TYPE_CHECKING

from localcoder.logger import setup_logging

if TYPE_CHECKING:
    from localcoder.app_state import AppState


def try_handle_debug_command(user_input: str, app_state: 'AppState') -> bool:
    command_prefix = "/debug"
    stripped_input = user_input.strip().lower()

    if not stripped_input.startswith(command_prefix):
        return False

    parts = stripped_input.split()
    if len(parts) == 1 and parts[0] == command_prefix:
        app_state.console.print("[yellow]Usage: /debug <on|off>[/yellow]")
        app_state.console.print(f"[dim]Current LLM interaction debug mode: {'ON' if app_state.DEBUG_LLM_INTERACTIONS else 'OFF'}[/dim]")
        return True

    if len(parts) == 2:
        action = parts[1]
        if action == "on":
            app_state.DEBUG_LLM_INTERACTIONS = True
            setup_logging(debug=True)
            app_state.console.print("[green]✓ LLM Interaction Debugging: ON[/green]")
        elif action == "off":
            app_state.DEBUG_LLM_INTERACTIONS = False
            setup_logging(debug=False)
            app_state.console.print("[yellow]✓ LLM Interaction Debugging: OFF[/yellow]")
        else: app_state.console.print(f"[yellow]Unknown /debug action: {action}. Usage: /debug <on|off>[/yellow]")
    else: app_state.console.print("[yellow]Usage: /debug <on|off>[/yellow]")
    return True

# localcoder/commands/set_command.py
from typing import TYPE_CHECKING

from rich.table import Table

from localcoder.config_utils import SUPPORTED_SET_PARAMS, get_config_value, update_runtime_override

if TYPE_CHECKING:
    from localcoder.app_state import AppState


def _show_current_values(app_state: 'AppState') -> None:
    table = Table(title="Current settings", show_lines=False)
    table.add_column("Parameter", style="cyan")
    table.add_column("Value")
    table.add_column("Source", style="dim")
    for name in SUPPORTED_SET_PARAMS:
        value = get_config_value(name, app_state.RUNTIME_OVERRIDES, app_state.console)
        if isinstance(value, list):
            value = ", ".join(value)
        source = "runtime" if name in app_state.RUNTIME_OVERRIDES else ""
        table.add_row(name, str(value), source)
    app_state.console.print(table)


def try_handle_set_command(user_input: str, app_state: 'AppState') -> bool:
    command_prefix = "/set"
    stripped_input = user_input.strip()

    if not stripped_input.lower().startswith(command_prefix.lower()):
        return False

    args_text = stripped_input[len(command_prefix):].strip()

    if not args_text:
        _show_current_values(app_state)
        app_state.console.print("[dim]Usage: /set <parameter_name> <value>   (e.g. /set model ollama_chat/qwen2.5-coder:14b)[/dim]")
        return True

    parts = args_text.split(maxsplit=1)
    if len(parts) < 2:
        app_state.console.print("[yellow]Usage: /set <parameter_name> <value>[/yellow]")
        app_state.console.print(f"[dim]You provided: /set {args_text}[/dim]")
        return True

    param_name, param_value = parts[0].lower(), parts[1]

    if param_name not in SUPPORTED_SET_PARAMS:
        app_state.console.print(f"[red]Error: Unknown parameter '{param_name}'. Type '/help set' for options.[/red]")
        return True

    update_runtime_override(param_name, param_value, app_state.RUNTIME_OVERRIDES, app_state.console)
    return True

# localcoder/commands/help_command.py
from typing import TYPE_CHECKING

from rich.panel import Panel
from rich.table import Table

from localcoder.config_utils import SUPPORTED_SET_PARAMS
from localcoder.prompts import HELP_TEXT, RichMarkdown

if TYPE_CHECKING:
    from localcoder.app_state import AppState


def try_handle_help_command(user_input: str, app_state: 'AppState') -> bool:
    command_prefix = "/help"
    stripped_input = user_input.strip()

    if not stripped_input.lower().startswith(command_prefix):
        return False

    topic = stripped_input[len(command_prefix):].strip().lower()
    if topic == "set":
        table = Table(title="Settable parameters (/set <param> <value>)", show_lines=False)
        table.add_column("Parameter", style="cyan")
        table.add_column("Env var", style="dim")
        table.add_column("Description")
        for name, details in SUPPORTED_SET_PARAMS.items():
            table.add_row(name, details.get("env_var", ""), details["description"])
        app_state.console.print(table)
        return True
    if topic:
        app_state.console.print(f"[yellow]No help topic '{topic}'. Showing general help.[/yellow]")

    app_state.console.print(Panel(
        RichMarkdown(HELP_TEXT), title="[bold blue]📚 Local Coder Help[/bold blue]", title_align="left", border_style="blue"
    ))
    return True

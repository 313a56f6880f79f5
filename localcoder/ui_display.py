# localcoder/ui_display.py
import os

from rich.panel import Panel

from localcoder.app_state import AppState
from localcoder.config_utils import AgentSettings


def _on_off(flag: bool) -> str:
    return "[green]ON[/green]" if flag else "[red]OFF[/red]"


def display_welcome_panel(app_state: AppState, settings: AgentSettings):
    """Displays the welcome panel."""
    current_working_directory = os.getcwd()
    aux_line = ""
    if app_state.aux_tools:
        aux_line = f"\n  🔌 [bold bright_blue]Auxiliary tools: [/bold bright_blue][dim]{len(app_state.aux_tools)} from MCP servers[/dim]\n"

    instructions = f"""  📁 [bold bright_blue]Current Directory: [/bold bright_blue][bold green]{current_working_directory}[/bold green]

  🧠 [bold bright_blue]Model: [/bold bright_blue][bold magenta]{settings.model}[/bold magenta] [dim]({settings.api_base or 'provider default'}, temperature {settings.temperature})[/dim]

  🛡️  [bold bright_blue]Safe mode: [/bold bright_blue]{_on_off(settings.safe_mode)}   [bold bright_blue]Auto-approve: [/bold bright_blue]{_on_off(settings.auto_approve)}   [dim]max {settings.max_tool_iterations} tool rounds per request[/dim]

  🧭 [bold bright_blue]Agent: [/bold bright_blue][bold cyan]{app_state.agent.display_name}[/bold cyan] [dim]({app_state.agent.description}, /agent to switch)[/dim]
{aux_line}
  ❓ [bold bright_blue]/help[/bold bright_blue] - Commands and safety notes.

  👥 [bold white]Just ask naturally, like you are explaining to a Software Engineer.[/bold white]"""

    app_state.console.print(Panel(
        instructions,
        border_style="blue",
        padding=(1, 2),
        title="[bold blue]🎯 Local Coder[/bold blue]",
        title_align="left"
    ))
    app_state.console.print()

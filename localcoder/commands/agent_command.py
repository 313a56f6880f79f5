# localcoder/commands/agent_command.py
from typing import TYPE_CHECKING

from rich.table import Table

from localcoder.agents import AGENTS, AgentProfile, get_agent

if TYPE_CHECKING:
    from localcoder.app_state import AppState


def _show_agents(app_state: 'AppState') -> None:
    table = Table(title="Agents", show_lines=False)
    table.add_column("", width=2)
    table.add_column("Agent", style="cyan")
    table.add_column("Shortcut", style="dim")
    table.add_column("Temperature", justify="right")
    table.add_column("Tools")
    table.add_column("Description")
    for profile in AGENTS.values():
        active = "●" if profile.name == app_state.agent.name else ""
        temperature = f"{profile.temperature}" if profile.temperature is not None else "-"
        tools = ", ".join(sorted(profile.allowed_tools)) if profile.allowed_tools is not None else "all"
        table.add_row(active, profile.display_name, ", ".join(profile.shortcuts), temperature, tools, profile.description)
    app_state.console.print(table)


def _switch(app_state: 'AppState', profile: AgentProfile) -> None:
    app_state.switch_agent(profile)
    app_state.console.print(f"[green]✓ Switched to {profile.display_name}[/green]")
    app_state.console.print(f"[yellow]  {profile.description}[/yellow]")
    if profile.allowed_tools is not None:
        app_state.console.print(f"[cyan]  Tools: {', '.join(sorted(profile.allowed_tools))}[/cyan]")


def try_handle_agent_command(user_input: str, app_state: 'AppState') -> bool:
    stripped_input = user_input.strip().lower()
    parts = stripped_input.split()
    if not parts:
        return False

    if parts[0] != "/agent":
        # /explore, /code, /run, /plan, /general
        profile = get_agent(parts[0]) if parts[0].startswith("/") else None
        if profile is None or len(parts) != 1:
            return False
        _switch(app_state, profile)
        return True

    if len(parts) == 1:
        app_state.console.print(f"[dim]Current agent: {app_state.agent.display_name}[/dim]")
        _show_agents(app_state)
        return True

    if len(parts) == 2:
        profile = get_agent(parts[1])
        if profile is None:
            app_state.console.print(f"[red]Error: Unknown agent '{parts[1]}'. Available: {', '.join(AGENTS)}[/red]")
        else:
            _switch(app_state, profile)
    else: app_state.console.print("[yellow]Usage: /agent \\[name][/yellow]")
    return True

# localcoder/commands/models_command.py
from typing import TYPE_CHECKING

import httpx
from rich.markup import escape

from localcoder.config_utils import get_config_value
from localcoder.llm_interaction import list_ollama_models

if TYPE_CHECKING:
    from localcoder.app_state import AppState


def try_handle_models_command(user_input: str, app_state: 'AppState') -> bool:
    if user_input.strip().lower() != "/models":
        return False

    api_base = get_config_value("api_base", app_state.RUNTIME_OVERRIDES, app_state.console)
    current = get_config_value("model", app_state.RUNTIME_OVERRIDES, app_state.console)
    try:
        models = list_ollama_models(api_base)
    except (httpx.HTTPError, ValueError) as e:
        app_state.console.print(f"[red]Could not list models from {escape(str(api_base))}: {escape(str(e))}[/red]")
        return True

    if not models:
        app_state.console.print("[yellow]The server reports no models. Pull one with 'ollama pull <model>'.[/yellow]")
        return True

    app_state.console.print(f"[bold blue]Models at {escape(str(api_base))}:[/bold blue]")
    for name in models:
        marker = "[green]●[/green]" if current.endswith(f"/{name}") or current == name else " "
        app_state.console.print(f"  {marker} ollama_chat/{escape(name)}")
    app_state.console.print("[dim]Switch with: /set model ollama_chat/<name>[/dim]")
    return True

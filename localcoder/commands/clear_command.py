# localcoder/commands/clear_command.py
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from localcoder.app_state import AppState


def try_handle_clear_command(user_input: str, app_state: 'AppState') -> bool:
    if user_input.strip().lower() != "/clear":
        return False

    app_state.conversation.clear(keep_system=True)
    app_state.console.print("[green]✓ Conversation cleared.[/green]")
    return True

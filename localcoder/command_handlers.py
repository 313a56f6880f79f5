# localcoder/command_handlers.py
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from localcoder.app_state import AppState

# Import individual command handlers
from localcoder.commands.help_command import try_handle_help_command
from localcoder.commands.set_command import try_handle_set_command
from localcoder.commands.safety_command import (
    try_handle_safe_command,
    try_handle_auto_command,
    try_handle_allow_command,
)
from localcoder.commands.shell_command import try_handle_shell_command
from localcoder.commands.context_command import try_handle_context_command
from localcoder.commands.clear_command import try_handle_clear_command
from localcoder.commands.debug_command import try_handle_debug_command
from localcoder.commands.models_command import try_handle_models_command
from localcoder.commands.tools_command import try_handle_tools_command
from localcoder.commands.agent_command import try_handle_agent_command

COMMAND_HANDLERS = [
    try_handle_help_command,
    try_handle_set_command,
    try_handle_safe_command,
    try_handle_auto_command,
    try_handle_allow_command,
    try_handle_shell_command,
    try_handle_context_command,
    try_handle_clear_command,
    try_handle_debug_command,
    try_handle_models_command,
    try_handle_tools_command,
    try_handle_agent_command,
]


def handle_command(user_input: str, app_state: 'AppState') -> bool:
    """Run the first handler that accepts the input. Returns True when one did."""
    for handler_func in COMMAND_HANDLERS:
        if handler_func(user_input, app_state):
            return True
    return False

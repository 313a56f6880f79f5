# localcoder/commands/tools_command.py
from typing import TYPE_CHECKING

from rich.table import Table

from localcoder.tool_defs import BUILTIN_TOOLS

if TYPE_CHECKING:
    from localcoder.app_state import AppState


def try_handle_tools_command(user_input: str, app_state: 'AppState') -> bool:
    if user_input.strip().lower() != "/tools":
        return False

    table = Table(title="Tools", show_lines=False)
    table.add_column("Name", style="cyan")
    table.add_column("Kind", style="dim")
    table.add_column("Parameters")
    table.add_column("Description")
    for name, spec in BUILTIN_TOOLS.items():
        params = ", ".join(spec["required"] + [f"{p}?" for p in spec["optional"]])
        table.add_row(name, spec["kind"], params, spec["description"])
    for qualified_name, description in app_state.aux_tools:
        table.add_row(qualified_name, "auxiliary", "-", description)
    app_state.console.print(table)
    return True

# localcoder/commands/shell_command.py
"""/shell and /!: the user runs a command directly. Not gated by safe mode and not sent to the model."""
from typing import TYPE_CHECKING
import subprocess
from pathlib import Path

from rich.markup import escape

from localcoder.config_utils import get_config_value

if TYPE_CHECKING:
    from localcoder.app_state import AppState


def try_handle_shell_command(user_input: str, app_state: 'AppState') -> bool:
    command_prefix_shell = "/shell"
    command_prefix_bang = "/!"
    stripped_input = user_input.strip()

    if stripped_input.lower().startswith(command_prefix_shell):
        shell_command_text = stripped_input[len(command_prefix_shell):].strip()
    elif stripped_input.startswith(command_prefix_bang):
        shell_command_text = stripped_input[len(command_prefix_bang):].strip()
    else:
        return False

    if not shell_command_text:
        app_state.console.print("[yellow]Usage: /shell <command_to_execute>  OR  /! <command_to_execute>[/yellow]")
        return True

    timeout = get_config_value("command_timeout", app_state.RUNTIME_OVERRIDES, app_state.console)
    app_state.console.print(f"[bold cyan]Executing shell command: '{escape(shell_command_text)}'[/bold cyan]")
    try:
        process = subprocess.run(
            shell_command_text, shell=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
            text=True, errors="replace", cwd=Path.cwd(), timeout=timeout
        )
    except subprocess.TimeoutExpired:
        app_state.console.print(f"[bold red]Shell command timed out after {timeout} seconds.[/bold red]")
        return True
    except OSError as e:
        app_state.console.print(f"[bold red]Error executing shell command: {escape(str(e))}[/bold red]")
        return True

    if process.returncode == 0:
        app_state.console.print("[bold green]Shell Command Output:[/bold green]")
        if process.stdout: app_state.console.print(process.stdout.strip(), markup=False)
    else:
        app_state.console.print(f"[bold red]Shell Command Error (Code: {process.returncode}):[/bold red]")
        if process.stderr: app_state.console.print(process.stderr.strip(), style="red", markup=False)
        elif process.stdout: app_state.console.print(process.stdout.strip(), style="yellow", markup=False)
    return True

# localcoder/commands/safety_command.py
"""/safe, /auto and /allow: session toggles for the safety policy."""
from typing import TYPE_CHECKING

from localcoder.config_utils import get_config_value, update_runtime_override

if TYPE_CHECKING:
    from localcoder.app_state import AppState


def _toggle(command_prefix: str, param_name: str, label: str, user_input: str, app_state: 'AppState') -> bool:
    parts = user_input.strip().lower().split()
    if not parts or parts[0] != command_prefix:
        return False

    current = get_config_value(param_name, app_state.RUNTIME_OVERRIDES, app_state.console)
    if len(parts) == 1:
        app_state.console.print(f"[dim]{label}: {'ON' if current else 'OFF'}[/dim]")
        app_state.console.print(f"[yellow]Usage: {command_prefix} <on|off>[/yellow]")
        return True
    if len(parts) != 2 or parts[1] not in ("on", "off"):
        app_state.console.print(f"[yellow]Usage: {command_prefix} <on|off>[/yellow]")
        return True

    update_runtime_override(param_name, parts[1], app_state.RUNTIME_OVERRIDES, None)
    if param_name == "safe_mode" and parts[1] == "off":
        app_state.console.print(f"[bold yellow]⚠ {label}: OFF. Any shell command may run (after confirmation).[/bold yellow]")
    elif param_name == "auto_approve" and parts[1] == "on":
        app_state.console.print(f"[bold yellow]⚠ {label}: ON. Tools will run without asking.[/bold yellow]")
    else:
        app_state.console.print(f"[green]✓ {label}: {parts[1].upper()}[/green]")
    return True


def try_handle_safe_command(user_input: str, app_state: 'AppState') -> bool:
    return _toggle("/safe", "safe_mode", "Safe mode", user_input, app_state)


def try_handle_auto_command(user_input: str, app_state: 'AppState') -> bool:
    return _toggle("/auto", "auto_approve", "Auto-approve", user_input, app_state)


def try_handle_allow_command(user_input: str, app_state: 'AppState') -> bool:
    parts = user_input.strip().split()
    if not parts or parts[0].lower() != "/allow":
        return False

    allowed = list(get_config_value("allowed_commands", app_state.RUNTIME_OVERRIDES, app_state.console))
    if len(parts) == 1:
        app_state.console.print(f"[dim]Allowed commands: {', '.join(sorted(allowed))}[/dim]")
        app_state.console.print("[yellow]Usage: /allow <command> \\[command ...][/yellow]")
        return True

    added = [c for c in parts[1:] if c not in allowed]
    if not added:
        app_state.console.print("[dim]Already allowed.[/dim]")
        return True
    update_runtime_override("allowed_commands", ",".join(allowed + added), app_state.RUNTIME_OVERRIDES, None)
    app_state.console.print(f"[green]✓ Added to allowlist: {', '.join(added)}[/green]")
    return True

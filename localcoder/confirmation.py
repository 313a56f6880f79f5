# localcoder/confirmation.py
from rich.markup import escape

from localcoder.exceptions import ConfirmationAborted


class PromptConfirmer:
    """Ask the user through the shared prompt_toolkit session. Ctrl-C / Ctrl-D abort the whole request."""

    def __init__(self, prompt_session, console):
        self.prompt_session = prompt_session
        self.console = console

    def __call__(self, tool_name: str, description: str) -> bool:
        self.console.print(f"[bold yellow]⚠ {escape(description)}[/bold yellow]")
        try:
            confirmation = self.prompt_session.prompt(f"Proceed with {tool_name}? [Y/n]: ", default="y").strip().lower()
        except (KeyboardInterrupt, EOFError):
            self.console.print("\n[yellow]ℹ️ Request aborted by user.[/yellow]")
            raise ConfirmationAborted()
        if confirmation in ["y", "yes", ""]:
            return True
        self.console.print("[yellow]ℹ️ Operation cancelled by user.[/yellow]")
        return False


def auto_approve(tool_name: str, description: str) -> bool:
    return True

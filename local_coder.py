#!/usr/bin/env python3

"""
Local Coder: a local-first AI coding assistant.

Sends your request to a locally hosted model, runs the tools the model asks
for (shell commands, file reads, writes and edits, file and content search,
MCP server tools) and feeds the results back until the model answers.

Usage:
  local-coder                      interactive session
  local-coder "explain main.py"    single request, then exit
"""
import argparse
import sys
from typing import List, Optional

from localcoder.agent_loop import AgentLoop
from localcoder.agents import AGENTS
from localcoder.app_state import AppState
from localcoder.aux_tools import McpToolClient
from localcoder.command_handlers import handle_command
from localcoder.config_utils import AgentSettings, load_configuration, update_runtime_override
from localcoder.confirmation import PromptConfirmer, auto_approve
from localcoder.data_models import LoopResult, TerminalState
from localcoder.exceptions import ConfigError
from localcoder.llm_interaction import LiteLLMModelClient
from localcoder.logger import get_logger, setup_logging
from localcoder.startup_checks import check_model_server
from localcoder.tool_dispatcher import ToolDispatcher
from localcoder.ui_display import display_welcome_panel

__version__ = "0.3.0"

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_ITERATION_LIMIT = 2

logger = get_logger(__name__)


def build_agent_loop(app_state: AppState, settings: AgentSettings) -> AgentLoop:
    confirm = auto_approve if settings.auto_approve else PromptConfirmer(app_state.prompt_session, app_state.console)
    model_client = LiteLLMModelClient(
        settings.api_base, settings.max_tokens, app_state.console, debug=app_state.DEBUG_LLM_INTERACTIONS
    )
    dispatcher = ToolDispatcher(settings, app_state.console, confirm, aux_client=app_state.aux_client)
    return AgentLoop(model_client, dispatcher, settings, app_state.console, state=app_state.conversation)


def run_request(app_state: AppState, user_input: str) -> LoopResult:
    try:
        settings = app_state.settings()
    except ConfigError as e:
        app_state.console.print(f"[bold red]❌ {e}[/bold red]")
        return LoopResult(state=TerminalState.FATAL_ERROR, error=str(e))
    return build_agent_loop(app_state, settings).run(user_input)


def exit_code_for(result: LoopResult) -> int:
    if result.state == TerminalState.FATAL_ERROR:
        return EXIT_FATAL
    if result.state == TerminalState.MAX_ITERATIONS_EXCEEDED:
        return EXIT_ITERATION_LIMIT
    return EXIT_OK


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="local-coder",
        description="Local Coder: a local-first AI coding assistant.",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument('prompt', nargs='*', help='Run this single request and exit (omit for an interactive session).')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-m', '--model', help='Model in LiteLLM form, e.g. ollama_chat/qwen2.5-coder:7b')
    parser.add_argument('-t', '--temperature', help='Sampling temperature (0.0 - 2.0).')
    parser.add_argument('-a', '--auto-approve', action='store_true', help='Run tools without asking for confirmation.')
    parser.add_argument('--unsafe', action='store_true', help='Disable safe mode (shell command allowlist).')
    parser.add_argument('--agent', choices=list(AGENTS), help='Start with this agent profile (default: general).')
    parser.add_argument('--mcp', action='store_true', help='Connect to the MCP servers configured in config.toml.')
    parser.add_argument('--max-iterations', metavar='N', help='Tool rounds allowed per request.')
    parser.add_argument('--debug', action='store_true', help='Show model requests, reasoning and debug logs.')
    return parser.parse_args(argv)


def apply_cli_overrides(args: argparse.Namespace, app_state: AppState) -> bool:
    """Turn CLI flags into runtime overrides. Returns False if any value was rejected."""
    requested = {
        "model": args.model,
        "temperature": args.temperature,
        "max_tool_iterations": args.max_iterations,
        "auto_approve": "on" if args.auto_approve else None,
        "safe_mode": "off" if args.unsafe else None,
    }
    ok = True
    for param_name, value in requested.items():
        if value is not None and not update_runtime_override(param_name, value, app_state.RUNTIME_OVERRIDES):
            app_state.console.print(f"[red]Error: Invalid value '{value}' for {param_name}.[/red]")
            ok = False
    return ok


def connect_auxiliary_tools(app_state: AppState, settings: AgentSettings) -> None:
    if not settings.mcp_servers:
        app_state.console.print("[yellow]--mcp given but no \\[mcp_servers.*] entries are configured.[/yellow]")
        return
    client = McpToolClient(settings.mcp_servers)
    with app_state.console.status("[bold blue]Connecting to MCP servers...[/bold blue]"):
        app_state.aux_tools = client.list_tools()
    app_state.aux_client = client
    app_state.console.print(f"[green]✓ {len(app_state.aux_tools)} auxiliary tool(s) from {len(client.server_names)} MCP server(s)[/green]")


def interactive_loop(app_state: AppState) -> int:
    while True:
        try:
            user_input = app_state.prompt_session.prompt("🔵 You> ").strip()
        except (EOFError, KeyboardInterrupt):
            app_state.console.print("\n[bold yellow]👋 Exiting gracefully...[/bold yellow]")
            return EXIT_OK

        if not user_input:
            continue

        if user_input.lower() in ["exit", "quit", "/exit", "/quit"]:
            app_state.console.print("[bold bright_blue]👋 Goodbye! Happy coding![/bold bright_blue]")
            return EXIT_OK

        if handle_command(user_input, app_state):
            continue

        if user_input.startswith("/"):
            app_state.console.print(f"[yellow]Unknown command: '{user_input.split()[0]}'. Type '/help' for a list of commands.[/yellow]")
            continue

        result = run_request(app_state, user_input)
        logger.debug("Request finished: %s after %d model call(s)", result.state.value, result.model_calls)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    app_state = AppState()
    app_state.DEBUG_LLM_INTERACTIONS = args.debug

    # Load .env, config.toml
    load_configuration(app_state.console)
    if not apply_cli_overrides(args, app_state):
        return EXIT_FATAL

    try:
        settings = app_state.settings()
    except ConfigError as e:
        app_state.console.print(f"[bold red]❌ {e}[/bold red]")
        return EXIT_FATAL

    if args.agent:
        app_state.agent = AGENTS[args.agent]
    if args.mcp:
        connect_auxiliary_tools(app_state, settings)
    app_state.set_system_prompt()

    if args.prompt:
        result = run_request(app_state, " ".join(args.prompt))
        return exit_code_for(result)

    display_welcome_panel(app_state, settings)
    check_model_server(settings.api_base, app_state.console)
    return interactive_loop(app_state)


if __name__ == "__main__":
    sys.exit(main())

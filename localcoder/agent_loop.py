# localcoder/agent_loop.py
"""The request/response/tool-execution loop for one user message."""
from typing import TYPE_CHECKING, List, Optional, Sequence

from rich.markup import escape

from localcoder import tool_parser
from localcoder.data_models import (
    ConversationState,
    ErrorKind,
    LoopResult,
    Role,
    TerminalState,
    ToolInvocation,
    ToolResult,
)
from localcoder.exceptions import ConfirmationAborted, ModelTransportError
from localcoder.llm_interaction import ModelClient
from localcoder.logger import get_logger
from localcoder.prompts import RichMarkdown
from localcoder.tool_dispatcher import ToolDispatcher

if TYPE_CHECKING:
    from localcoder.config_utils import AgentSettings

logger = get_logger(__name__)

RESULTS_HEADER = "Tool execution results:"
RESULTS_FOOTER = "Based on these results, provide your analysis or next steps. Only use more tools if absolutely necessary."
SNIPPET_CHARS = 200


def format_tool_results(invocations: Sequence[ToolInvocation], results: Sequence[ToolResult]) -> str:
    """Serialize one batch into the text of a single tool-result turn, 1:1 and in order."""
    blocks = []
    for index, (invocation, result) in enumerate(zip(invocations, results), 1):
        lines = [f"[{index}] Tool: {invocation.name}"]
        if result.exit_status is not None:
            lines.append(f"Exit Code: {result.exit_status}")
        lines.append(f"Success: {'true' if result.succeeded else 'false'}")
        if not result.succeeded:
            kind = result.error_kind.value if result.error_kind else "error"
            lines.append(f"Error ({kind}): {result.error_message}")
        if result.output:
            lines.append("Output:")
            lines.append(result.output.rstrip("\n"))
        blocks.append("\n".join(lines))
    return f"{RESULTS_HEADER}\n\n" + "\n\n".join(blocks) + f"\n\n{RESULTS_FOOTER}"


def trim_history(state: ConversationState, max_messages: int) -> None:
    """Keep system turns and at most ``max_messages`` recent others, starting at a user turn."""
    others = [t for t in state.turns if t.role != Role.SYSTEM]
    if len(others) <= max_messages:
        return
    kept = others[-max_messages:]
    while kept and kept[0].role != Role.USER:
        kept.pop(0)
    state.turns = [t for t in state.turns if t.role == Role.SYSTEM] + kept
    logger.debug("Trimmed conversation to %d non-system turns", len(kept))


class AgentLoop:
    def __init__(
        self,
        model_client: ModelClient,
        dispatcher: ToolDispatcher,
        settings: 'AgentSettings',
        console,
        state: Optional[ConversationState] = None,
    ):
        self.model_client = model_client
        self.dispatcher = dispatcher
        self.settings = settings
        self.console = console
        self.state = state if state is not None else ConversationState()

    def run(self, user_message: str) -> LoopResult:
        """Drive one user message to a terminal state."""
        trim_history(self.state, self.settings.max_history_messages)
        self.state.add_user_message(user_message)
        model_calls = 0

        while True:
            try:
                model_calls += 1
                response = self.model_client.complete(self.state.snapshot(), self.settings.model, self.settings.temperature)
            except ModelTransportError as e:
                self.console.print(f"\n[bold red]❌ {escape(str(e))}[/bold red]")
                return self._result(TerminalState.FATAL_ERROR, model_calls, error=str(e))

            parsed = tool_parser.parse(response)

            if not parsed.invocations:
                self.state.add(Role.ASSISTANT, response)
                if tool_parser.has_tool_calls(response):
                    self.console.print("[yellow]⚠ The response contained a tool-call block that could not be parsed.[/yellow]")
                    snippet = response[:SNIPPET_CHARS] + ("..." if len(response) > SNIPPET_CHARS else "")
                    self.console.print(f"[dim]{escape(snippet)}[/dim]")
                    logger.debug("Unparsed tool-call block: %r", response[:500])
                self._show_commentary(parsed.commentary)
                return self._result(TerminalState.ANSWERED, model_calls, answer=parsed.commentary)

            self.state.iteration_count += 1
            if self.state.iteration_count > self.settings.max_tool_iterations:
                message = (f"Stopped after {self.settings.max_tool_iterations} tool iterations: "
                           "the model kept requesting tools.")
                self.console.print(f"\n[bold yellow]⚠ {message}[/bold yellow]")
                return self._result(TerminalState.MAX_ITERATIONS_EXCEEDED, model_calls, answer=parsed.commentary, error=message)

            self.state.add(Role.ASSISTANT, response)
            self._show_commentary(parsed.commentary)
            self.console.print(f"\n[bold bright_cyan]⚡ Executing {len(parsed.invocations)} tool call(s)...[/bold bright_cyan]")

            try:
                results = self.dispatcher.execute_batch(parsed.invocations)
            except ConfirmationAborted as e:
                results = self._with_aborted_tail(parsed.invocations, e.partial_results)
                self.state.add(Role.TOOL_RESULT, format_tool_results(parsed.invocations, results))
                return self._result(TerminalState.CANCELLED, model_calls, error=str(e))

            self.state.add(Role.TOOL_RESULT, format_tool_results(parsed.invocations, results))
            self.console.print("\n[bold bright_blue]🔄 Processing results...[/bold bright_blue]")

    def _result(self, state: TerminalState, model_calls: int, answer: str = "", error: Optional[str] = None) -> LoopResult:
        return LoopResult(
            state=state, answer=answer, iterations=self.state.iteration_count,
            model_calls=model_calls, error=error
        )

    @staticmethod
    def _with_aborted_tail(invocations: Sequence[ToolInvocation], partial: List[ToolResult]) -> List[ToolResult]:
        aborted = ToolResult.fail(ErrorKind.USER_CANCELLED, "Aborted by user before running")
        return list(partial) + [aborted] * (len(invocations) - len(partial))

    def _show_commentary(self, commentary: str) -> None:
        if not commentary:
            return
        self.console.print("\n[bold bright_blue]🤖 Assistant>[/bold bright_blue]")
        self.console.print(RichMarkdown(commentary))

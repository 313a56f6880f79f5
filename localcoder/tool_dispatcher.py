# localcoder/tool_dispatcher.py
import json
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, Sequence

from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from localcoder import safety_policy
from localcoder.aux_tools import AuxiliaryToolClient, decode_arguments
from localcoder.data_models import ErrorKind, SafetyDecision, ToolInvocation, ToolResult
from localcoder.exceptions import ConfirmationAborted
from localcoder.logger import get_logger
from localcoder.tool_defs import (
    AUXILIARY,
    BUILTIN_TOOLS,
    canonical_tool_name,
    is_auxiliary_name,
    resolve_parameter,
)
from localcoder.tool_executors import EXECUTORS, CANCELLED_MESSAGE, ExecutionContext, Confirmer

if TYPE_CHECKING:
    from localcoder.config_utils import AgentSettings

logger = get_logger(__name__)

# Values allowed to be empty strings
_EMPTY_OK = {"content"}

Executor = Callable[[Mapping[str, Optional[str]], SafetyDecision, ExecutionContext], ToolResult]


class ToolDispatcher:
    """Routes one invocation to its executor: validate, gate, execute, truncate, report."""

    def __init__(
        self,
        settings: 'AgentSettings',
        console,
        confirm: Confirmer,
        aux_client: Optional[AuxiliaryToolClient] = None,
        executors: Optional[Dict[str, Executor]] = None,
    ):
        self.settings = settings
        self.console = console
        self.confirm = confirm
        self.aux_client = aux_client
        self.executors = dict(EXECUTORS if executors is None else executors)
        self._ctx = ExecutionContext(settings, console, confirm)

    def execute_batch(self, invocations: Sequence[ToolInvocation]) -> List[ToolResult]:
        """Run invocations in order. Failures never stop the batch.

        If the user aborts a confirmation prompt, ConfirmationAborted is raised
        with the results gathered so far in ``partial_results``.
        """
        results: List[ToolResult] = []
        for invocation in invocations:
            try:
                results.append(self.dispatch(invocation))
            except ConfirmationAborted as e:
                e.partial_results = results
                raise
        return results

    def dispatch(self, invocation: ToolInvocation) -> ToolResult:
        self.console.print(f"[bright_blue]→ {escape(invocation.name)}[/bright_blue]")
        result = self._truncate(self._dispatch(invocation))
        if not result.succeeded:
            kind = result.error_kind.value if result.error_kind else "error"
            self.console.print(f"[bold red]✗[/bold red] {escape(invocation.name)} failed ([red]{kind}[/red]): {escape(result.error_message or '')}")
        logger.debug("%s -> succeeded=%s exit=%s", invocation.name, result.succeeded, result.exit_status)
        return result

    def _dispatch(self, invocation: ToolInvocation) -> ToolResult:
        name = invocation.name
        canonical = canonical_tool_name(name)
        allowed = self.settings.allowed_tools
        available = ", ".join(sorted(t for t in self.executors if allowed is None or t in allowed))
        if canonical is None and is_auxiliary_name(name):
            if allowed is not None and name not in allowed:
                return ToolResult.fail(ErrorKind.TOOL_NOT_FOUND, f"Tool {name} is not available to the current agent. Available tools: {available}")
            return self._dispatch_auxiliary(invocation)
        if canonical is None or canonical not in self.executors:
            return ToolResult.fail(ErrorKind.TOOL_NOT_FOUND, f"Unknown tool: {name}. Available tools: {available}")
        if allowed is not None and canonical not in allowed:
            return ToolResult.fail(ErrorKind.TOOL_NOT_FOUND, f"Tool {canonical} is not available to the current agent. Available tools: {available}")

        tool_spec = BUILTIN_TOOLS[canonical]
        aliases = self.settings.parameter_aliases
        resolved: Dict[str, Optional[str]] = {}
        missing = []
        for logical in tool_spec["required"]:
            value = resolve_parameter(invocation.parameters, logical, aliases)
            if value is None or (logical not in _EMPTY_OK and not value.strip()):
                missing.append(logical)
            resolved[logical] = value
        if missing:
            received = ", ".join(invocation.parameters) or "none"
            return ToolResult.fail(
                ErrorKind.VALIDATION,
                f"Missing required parameter(s) for {canonical}: {', '.join(missing)}. Received parameters: {received}"
            )
        for logical in tool_spec["optional"]:
            resolved[logical] = resolve_parameter(invocation.parameters, logical, aliases)

        primary_value = resolved[tool_spec["primary"]] or ""
        decision = safety_policy.evaluate(tool_spec["kind"], primary_value, self.settings)
        if decision == SafetyDecision.DENIED:
            reason = safety_policy.denial_reason(primary_value, self.settings.allowed_commands)
            return ToolResult.fail(ErrorKind.SAFETY_DENIED, f"Blocked by safe mode: {reason}")

        try:
            return self.executors[canonical](resolved, decision, self._ctx)
        except ConfirmationAborted:
            raise
        except UnicodeError as e:
            return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"{canonical} failed: {e}")
        except ValueError as e:
            return ToolResult.fail(ErrorKind.VALIDATION, f"{canonical} failed: {e}")
        except OSError as e:
            return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"{canonical} failed: {e}")

    def _dispatch_auxiliary(self, invocation: ToolInvocation) -> ToolResult:
        name = invocation.name
        if self.aux_client is None:
            return ToolResult.fail(ErrorKind.TOOL_NOT_FOUND, f"Unknown tool: {name} (no auxiliary tool servers configured)")

        arguments = decode_arguments(invocation.parameters)
        decision = safety_policy.evaluate(AUXILIARY, name, self.settings)
        if decision == SafetyDecision.REQUIRES_CONFIRMATION:
            self.console.print(Panel(
                Text(json.dumps(arguments, indent=2, default=str)),
                title=f"[bold yellow]⚠ Auxiliary tool {escape(name)}[/bold yellow]",
                border_style="yellow", title_align="left", expand=False
            ))
            if not self.confirm(f"MCP:{name}", f"Call auxiliary tool {name}"):
                return ToolResult.fail(ErrorKind.USER_CANCELLED, CANCELLED_MESSAGE)

        aux_result = self.aux_client.call_tool(name, arguments)
        if aux_result.success:
            return ToolResult.ok(aux_result.content)
        return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, aux_result.error or f"Auxiliary tool {name} failed", output=aux_result.content)

    def _truncate(self, result: ToolResult) -> ToolResult:
        limit = self.settings.max_output_chars
        if len(result.output) <= limit:
            return result
        dropped = len(result.output) - limit
        return result.model_copy(update={"output": result.output[:limit] + f"\n[... truncated {dropped} characters]"})

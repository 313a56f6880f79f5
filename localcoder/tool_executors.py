# localcoder/tool_executors.py
"""Built-in tools. Each executor takes alias-resolved parameters and returns one ToolResult."""
import difflib
import fnmatch
import math
import os
import re
import subprocess
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional

from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

from localcoder.config_utils import MAX_FILE_SIZE_BYTES
from localcoder.data_models import ErrorKind, SafetyDecision, ToolResult
from localcoder.file_utils import (
    count_lines,
    format_line_delta,
    is_binary_file,
    iter_files,
    normalize_path,
    read_local_file,
    write_backup,
    write_local_file,
)
from localcoder.logger import get_logger

if TYPE_CHECKING:
    from localcoder.config_utils import AgentSettings

logger = get_logger(__name__)

Confirmer = Callable[[str, str], bool]

CANCELLED_MESSAGE = "Cancelled by user"
FILES_ONLY_MODES = {"files-only", "files_only", "files", "files_with_matches", "l"}
CONTENT_MODES = {"content", "lines", "n"}
PREVIEW_CHARS = 2000


class ExecutionContext:
    """What an executor may touch besides its parameters."""

    def __init__(self, settings: 'AgentSettings', console, confirm: Confirmer):
        self.settings = settings
        self.console = console
        self.confirm = confirm


def _needs_confirmation(decision: SafetyDecision) -> bool:
    return decision == SafetyDecision.REQUIRES_CONFIRMATION


def _preview(text: str) -> str:
    if len(text) <= PREVIEW_CHARS:
        return text
    return text[:PREVIEW_CHARS] + f"\n... ({len(text) - PREVIEW_CHARS} more characters)"


def _display_path(root: str, full_path: str) -> str:
    rel = os.path.relpath(full_path, root)
    return rel if root in (".", "./") else os.path.join(root, rel)


def _command_timeout(raw_timeout: Optional[str], settings: 'AgentSettings') -> int:
    """Seconds to wait for a command. A model-supplied value is clamped to max_command_timeout."""
    if not raw_timeout:
        return settings.command_timeout
    try:
        requested = float(raw_timeout)
    except ValueError:
        requested = math.nan
    if not math.isfinite(requested):
        logger.debug("Ignoring invalid timeout %r, using %s", raw_timeout, settings.command_timeout)
        return settings.command_timeout
    return min(max(1, int(requested)), settings.max_command_timeout)


def run_command(params: Mapping[str, Optional[str]], decision: SafetyDecision, ctx: ExecutionContext) -> ToolResult:
    command = params["command"] or ""
    if _needs_confirmation(decision):
        ctx.console.print(Panel(Text(command), title="[bold yellow]⚠ Run shell command[/bold yellow]", border_style="yellow", title_align="left", expand=False))
        if params.get("description"):
            ctx.console.print(f"[dim]{escape(params['description'])}[/dim]")
        if not ctx.confirm("Bash", f"Run command: {command}"):
            return ToolResult.fail(ErrorKind.USER_CANCELLED, CANCELLED_MESSAGE)

    timeout = _command_timeout(params.get("timeout"), ctx.settings)

    ctx.console.print(f"$ {command}", style="bright_blue", markup=False, highlight=False)
    try:
        completed = subprocess.run(
            command, shell=True, stdout=subprocess.PIPE, stderr=subprocess.STDOUT,
            text=True, errors="replace", timeout=timeout, cwd=os.getcwd()
        )
    except subprocess.TimeoutExpired as e:
        partial = e.output or ""
        if isinstance(partial, bytes):
            partial = partial.decode("utf-8", errors="replace")
        return ToolResult.fail(ErrorKind.TIMEOUT, f"Command timed out after {timeout} seconds", output=partial)
    except KeyboardInterrupt:
        return ToolResult.fail(ErrorKind.INTERRUPTED, "Command interrupted by user")
    except OSError as e:
        return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"Failed to start command: {e}")

    output = completed.stdout or ""
    if completed.returncode != 0:
        return ToolResult.fail(
            ErrorKind.EXECUTION_FAILURE, f"Command exited with status {completed.returncode}",
            output=output, exit_status=completed.returncode
        )
    return ToolResult.ok(output, exit_status=0)


def read_file(params: Mapping[str, Optional[str]], decision: SafetyDecision, ctx: ExecutionContext) -> ToolResult:
    path = (params["file_path"] or "").strip()
    full_path = normalize_path(path)
    if not os.path.exists(full_path):
        return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"File not found: {path}")
    if os.path.isdir(full_path):
        return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"Path is a directory, not a file: {path}")
    size = os.path.getsize(full_path)
    if size > MAX_FILE_SIZE_BYTES:
        return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"File too large ({size} bytes): {path}")

    content = read_local_file(full_path)
    if not content:
        return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"File is empty: {path}")
    ctx.console.print(f"[bold blue]✓[/bold blue] Read '[bright_cyan]{escape(path)}[/bright_cyan]' ({count_lines(content)} lines)")
    return ToolResult.ok(content)


def write_file(params: Mapping[str, Optional[str]], decision: SafetyDecision, ctx: ExecutionContext) -> ToolResult:
    path = (params["file_path"] or "").strip()
    content = params["content"] or ""
    full_path = normalize_path(path)
    if os.path.isdir(full_path):
        return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"Path is a directory, not a file: {path}")

    existed = os.path.isfile(full_path)
    old_content = read_local_file(full_path) if existed else ""

    if existed and _needs_confirmation(decision):
        ctx.console.print(Panel(Text(_preview(content)), title=f"[bold yellow]⚠ Overwrite {escape(path)}[/bold yellow]", border_style="yellow", title_align="left"))
        if not ctx.confirm("Write", f"File exists. Overwrite {path}?"):
            return ToolResult.fail(ErrorKind.USER_CANCELLED, CANCELLED_MESSAGE)

    try:
        write_local_file(full_path, content)
    except OSError as e:
        return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"Failed to write {path}: {e}")

    new_lines = count_lines(content)
    if existed:
        old_lines = count_lines(old_content)
        summary = f"Overwrote {path}: {old_lines} -> {new_lines} lines ({format_line_delta(old_lines, new_lines)})"
    else:
        summary = f"Created {path} ({new_lines} lines, {format_line_delta(0, new_lines)})"
    ctx.console.print(f"[bold blue]✓[/bold blue] {escape(summary)}")
    return ToolResult.ok(summary)


def edit_file(params: Mapping[str, Optional[str]], decision: SafetyDecision, ctx: ExecutionContext) -> ToolResult:
    path = (params["file_path"] or "").strip()
    old_string = params["old_string"] or ""
    new_string = params.get("new_string") or ""
    if not old_string:
        return ToolResult.fail(ErrorKind.VALIDATION, "old_string cannot be empty")

    full_path = normalize_path(path)
    if not os.path.isfile(full_path):
        return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"File not found: {path}")

    content = read_local_file(full_path)
    occurrences = content.count(old_string)
    if occurrences == 0:
        return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"String to replace not found in {path}")

    updated = content.replace(old_string, new_string)

    if _needs_confirmation(decision):
        diff_text = "".join(difflib.unified_diff(
            content.splitlines(keepends=True), updated.splitlines(keepends=True),
            fromfile=f"{path} (before)", tofile=f"{path} (after)"
        ))
        ctx.console.print(Panel(
            Syntax(_preview(diff_text), "diff", theme="ansi_dark"),
            title=f"[bold yellow]⚠ Edit {escape(path)}: {occurrences} occurrence(s)[/bold yellow]",
            border_style="yellow", title_align="left"
        ))
        if not ctx.confirm("Edit", f"Replace {occurrences} occurrence(s) in {path}?"):
            return ToolResult.fail(ErrorKind.USER_CANCELLED, CANCELLED_MESSAGE)

    try:
        backup_path = write_backup(full_path, content)
        write_local_file(full_path, updated)
    except OSError as e:
        return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"Failed to edit {path}: {e}")

    delta = format_line_delta(count_lines(content), count_lines(updated))
    summary = f"Replaced {occurrences} occurrence(s) in {path} ({delta}). Backup saved to {backup_path}"
    ctx.console.print(f"[bold blue]✓[/bold blue] {escape(summary)}")
    return ToolResult.ok(summary)


def find_files(params: Mapping[str, Optional[str]], decision: SafetyDecision, ctx: ExecutionContext) -> ToolResult:
    pattern = (params["pattern"] or "").strip()
    root = (params.get("path") or ".").strip() or "."
    if not os.path.isdir(root):
        return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"Directory not found: {root}")

    name_pattern = pattern[3:] if pattern.startswith("**/") else pattern
    match_relative = "/" in name_pattern
    # "**/" may also stand for no directory at all, as in src/**/*.py matching src/a.py
    relative_patterns = {pattern, name_pattern, name_pattern.replace("**/", "")}

    matches: List[str] = []
    for full_path in iter_files(root):
        rel = os.path.relpath(full_path, root).replace(os.sep, "/")
        if match_relative:
            hit = any(fnmatch.fnmatchcase(rel, p) for p in relative_patterns)
        else:
            hit = fnmatch.fnmatchcase(os.path.basename(full_path), name_pattern)
        if hit:
            matches.append(_display_path(root, full_path))

    matches.sort()
    return ToolResult.ok(_cap_results(matches, ctx.settings.max_search_results))


def search_content(params: Mapping[str, Optional[str]], decision: SafetyDecision, ctx: ExecutionContext) -> ToolResult:
    pattern = params["pattern"] or ""
    root = (params.get("path") or ".").strip() or "."
    mode = (params.get("mode") or "files-only").strip().lower()
    if mode in FILES_ONLY_MODES:
        content_mode = False
    elif mode in CONTENT_MODES:
        content_mode = True
    else:
        return ToolResult.fail(ErrorKind.VALIDATION, f"Unknown mode '{mode}'. Use 'files-only' or 'content'.")

    try:
        regex = re.compile(pattern)
    except re.error:
        regex = re.compile(re.escape(pattern))

    if os.path.isfile(root):
        candidates = [root]
        root_dir = os.path.dirname(root) or "."
    elif os.path.isdir(root):
        candidates = iter_files(root)
        root_dir = root
    else:
        return ToolResult.fail(ErrorKind.EXECUTION_FAILURE, f"Path not found: {root}")

    cap = ctx.settings.max_search_results
    results: List[str] = []
    for full_path in candidates:
        if is_binary_file(full_path):
            continue
        try:
            text = read_local_file(full_path)
        except OSError as e:
            logger.debug("Skipping unreadable %s: %s", full_path, e)
            continue
        shown = _display_path(root_dir, full_path)
        for lineno, line in enumerate(text.splitlines(), 1):
            if not regex.search(line):
                continue
            if content_mode:
                results.append(f"{shown}:{lineno}:{line}")
            else:
                results.append(shown)
                break
            if len(results) > cap:
                break
        if len(results) > cap:
            break

    return ToolResult.ok(_cap_results(results, cap))


def _cap_results(results: List[str], cap: int) -> str:
    if len(results) > cap:
        return "\n".join(results[:cap]) + f"\n... (results truncated at {cap})"
    return "\n".join(results)


EXECUTORS: Dict[str, Callable[[Mapping[str, Optional[str]], SafetyDecision, ExecutionContext], ToolResult]] = {
    "Bash": run_command,
    "Read": read_file,
    "Write": write_file,
    "Edit": edit_file,
    "Glob": find_files,
    "Grep": search_content,
}

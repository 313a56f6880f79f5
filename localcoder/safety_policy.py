# localcoder/safety_policy.py
import os
import re
import shlex
from typing import TYPE_CHECKING, Iterable, List, Optional

from localcoder.data_models import SafetyDecision
from localcoder.tool_defs import AUXILIARY, READ_ONLY, SHELL, WRITE

if TYPE_CHECKING:
    from localcoder.config_utils import AgentSettings

_SEGMENT_SEPARATORS = {";", "&&", "||", "|", "&", "|&", ";;", "(", ")"}
_ENV_ASSIGNMENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*=")
_SUBSTITUTION_MARKERS = ("$(", "`", "<(", ">(")


def leading_command_tokens(command: str) -> List[str]:
    """Program names that start each segment of a shell command line.

    ``FOO=1 git log | wc -l && /bin/ls`` gives ``["git", "wc", "ls"]``.
    Raises ValueError on unbalanced quoting.
    """
    lexer = shlex.shlex(command.replace("\n", ";"), posix=True, punctuation_chars=True)
    lexer.whitespace_split = True
    programs: List[str] = []
    at_segment_start = True
    for token in lexer:
        if token in _SEGMENT_SEPARATORS:
            at_segment_start = True
            continue
        if not at_segment_start:
            continue
        if _ENV_ASSIGNMENT_RE.match(token):
            continue
        programs.append(os.path.basename(token))
        at_segment_start = False
    return programs


def denial_reason(command: str, allowed_commands: Iterable[str]) -> Optional[str]:
    """Why safe mode refuses ``command``, or None when every segment is allowlisted."""
    if not command or not command.strip():
        return "Empty command."
    if any(marker in command for marker in _SUBSTITUTION_MARKERS):
        return "Command substitution is not allowed in safe mode."
    try:
        programs = leading_command_tokens(command)
    except ValueError as e:
        return f"Could not parse command: {e}"
    if not programs:
        return "No command found."
    allowed = set(allowed_commands)
    for program in programs:
        if program not in allowed:
            return f"Command '{program}' is not in the allowed list (safe mode is on)."
    return None


def evaluate(tool_kind: str, primary_value: str, settings: 'AgentSettings') -> SafetyDecision:
    """Gate one invocation. Computed fresh every call from the literal parameter value."""
    if tool_kind == SHELL:
        if settings.safe_mode and denial_reason(primary_value, settings.allowed_commands) is not None:
            return SafetyDecision.DENIED
        return SafetyDecision.ALLOWED if settings.auto_approve else SafetyDecision.REQUIRES_CONFIRMATION
    if tool_kind == READ_ONLY:
        return SafetyDecision.ALLOWED
    if tool_kind in (WRITE, AUXILIARY):
        return SafetyDecision.ALLOWED if settings.auto_approve else SafetyDecision.REQUIRES_CONFIRMATION
    raise ValueError(f"Unknown tool kind: {tool_kind}")

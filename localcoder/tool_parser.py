# localcoder/tool_parser.py
"""Extract tool invocations embedded in model output.

Three block shapes are understood::

    <function_calls>
      <invoke name="Read"><parameter name="file_path">a.py</parameter></invoke>
    </function_calls>

    <tool_calls>
      <tool_call><tool_name>Glob</tool_name><parameters><pattern>*.md</pattern></parameters></tool_call>
    </tool_calls>

    <tool_call>{"name": "Bash", "arguments": {"command": "ls"}}</tool_call>

A bare ``<tool_call>`` may hold either the tag form or the JSON form. The
parser is purely structural: parameter names pass through untouched and alias
resolution happens in the dispatcher.
"""
import json
import re
from typing import Dict, List, NamedTuple, Optional, Tuple

from localcoder.data_models import ToolInvocation
from localcoder.logger import get_logger

logger = get_logger(__name__)

FUNCTION_CALLS_OPEN, FUNCTION_CALLS_CLOSE = "<function_calls>", "</function_calls>"
TOOL_CALLS_OPEN, TOOL_CALLS_CLOSE = "<tool_calls>", "</tool_calls>"
TOOL_CALL_OPEN, TOOL_CALL_CLOSE = "<tool_call>", "</tool_call>"

_BLOCK_CLOSERS = {
    FUNCTION_CALLS_OPEN: FUNCTION_CALLS_CLOSE,
    TOOL_CALLS_OPEN: TOOL_CALLS_CLOSE,
    TOOL_CALL_OPEN: TOOL_CALL_CLOSE,
}

_INVOKE_RE = re.compile(r"<invoke\s+name\s*=\s*([\"'])(.*?)\1\s*>(.*?)</invoke>", re.DOTALL)
_PARAMETER_RE = re.compile(r"<parameter\s+name\s*=\s*([\"'])(.*?)\1\s*>(.*?)</parameter>", re.DOTALL)
_TOOL_CALL_ITEM_RE = re.compile(re.escape(TOOL_CALL_OPEN) + r"(.*?)" + re.escape(TOOL_CALL_CLOSE), re.DOTALL)
_TOOL_NAME_RE = re.compile(r"<tool_name>(.*?)</tool_name>", re.DOTALL)
_PARAMETERS_OPEN = "<parameters>"
_PARAMETERS_CLOSE = "</parameters>"
_CHILD_TAG_RE = re.compile(r"<([A-Za-z_][\w.-]*)>(.*?)</\1>", re.DOTALL)
_BLANK_RUNS_RE = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")


class ParsedResponse(NamedTuple):
    invocations: List[ToolInvocation]
    commentary: str


def has_tool_calls(text: Optional[str]) -> bool:
    """Cheap check for any tool-call opening tag."""
    if not text:
        return False
    return any(opener in text for opener in _BLOCK_CLOSERS)


def parse(text: Optional[str]) -> ParsedResponse:
    """Split model output into tool invocations and the prose meant for the user.

    A block missing its closing tag yields the invocations completed before the
    cut; everything after that point is kept, raw, as commentary. A block that
    yields nothing stays in the commentary, and with no invocations at all the
    whole input comes back unchanged.
    """
    if not text:
        return ParsedResponse([], "")
    if not has_tool_calls(text):
        return ParsedResponse([], text)

    invocations: List[ToolInvocation] = []
    pieces: List[str] = []
    pos = 0
    while True:
        start, opener = _find_next_opener(text, pos)
        if start < 0:
            pieces.append(text[pos:])
            break
        pieces.append(text[pos:start])
        body_start = start + len(opener)
        closer = _BLOCK_CLOSERS[opener]
        end = text.find(closer, body_start)

        if end < 0:
            body = text[body_start:]
            parsed, consumed = _parse_block_body(opener, body, truncated=True)
            invocations.extend(parsed)
            if parsed:
                pieces.append(body[consumed:])
            else:
                pieces.append(text[start:])
            logger.debug("Truncated %s block: kept %d invocation(s)", opener, len(parsed))
            break

        parsed, _ = _parse_block_body(opener, text[body_start:end], truncated=False)
        invocations.extend(parsed)
        pos = end + len(closer)
        if not parsed:
            pieces.append(text[start:pos])

    if not invocations:
        return ParsedResponse([], text)
    commentary = _BLANK_RUNS_RE.sub("\n\n", "".join(pieces)).strip()
    return ParsedResponse(invocations, commentary)


def _find_next_opener(text: str, pos: int) -> Tuple[int, str]:
    best, best_opener = -1, ""
    for opener in _BLOCK_CLOSERS:
        idx = text.find(opener, pos)
        if idx >= 0 and (best < 0 or idx < best):
            best, best_opener = idx, opener
    return best, best_opener


def _parse_block_body(opener: str, body: str, truncated: bool) -> Tuple[List[ToolInvocation], int]:
    """Parse the inside of one block. Returns the invocations and how much of ``body`` they covered."""
    invocations: List[ToolInvocation] = []
    consumed = 0

    if opener == FUNCTION_CALLS_OPEN:
        for match in _INVOKE_RE.finditer(body):
            params: Dict[str, str] = {}
            for p in _PARAMETER_RE.finditer(match.group(3)):
                params[p.group(2).strip()] = p.group(3)
            invocation = _make_invocation(match.group(2), params)
            if invocation:
                invocations.append(invocation)
            consumed = match.end()
    elif opener == TOOL_CALLS_OPEN:
        for match in _TOOL_CALL_ITEM_RE.finditer(body):
            invocation = _parse_tool_call_item(match.group(1))
            if invocation:
                invocations.append(invocation)
            consumed = match.end()
    elif not truncated:
        invocation = _parse_tool_call_item(body)
        if invocation:
            invocations.append(invocation)
        consumed = len(body)

    return invocations, consumed


def _parse_tool_call_item(item: str) -> Optional[ToolInvocation]:
    name_match = _TOOL_NAME_RE.search(item)
    if name_match:
        params: Dict[str, str] = {}
        params_start = item.find(_PARAMETERS_OPEN, name_match.end())
        if params_start < 0:
            params_start = item.find(_PARAMETERS_OPEN)
        if params_start >= 0:
            params_start += len(_PARAMETERS_OPEN)
            params_end = item.rfind(_PARAMETERS_CLOSE)
            params_body = item[params_start:params_end] if params_end >= params_start else item[params_start:]
            for child in _CHILD_TAG_RE.finditer(params_body):
                params[child.group(1)] = child.group(2)
        return _make_invocation(name_match.group(1), params)
    return _parse_json_item(item)


def _parse_json_item(item: str) -> Optional[ToolInvocation]:
    try:
        payload = json.loads(item.strip())
    except (json.JSONDecodeError, ValueError):
        return None
    if not isinstance(payload, dict) or not isinstance(payload.get("name"), str):
        return None

    arguments = payload.get("arguments", payload.get("parameters", {}))
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except (json.JSONDecodeError, ValueError):
            return None
    if not isinstance(arguments, dict):
        return None

    params = {}
    for key, value in arguments.items():
        params[str(key)] = value if isinstance(value, str) else json.dumps(value)
    return _make_invocation(payload["name"], params)


def _make_invocation(name: str, params: Dict[str, str]) -> Optional[ToolInvocation]:
    name = name.strip()
    if not name:
        return None
    try:
        return ToolInvocation(name=name, parameters=params)
    except ValueError as e:
        logger.debug("Discarding malformed invocation %r: %s", name, e)
        return None

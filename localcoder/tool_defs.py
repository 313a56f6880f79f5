# localcoder/tool_defs.py
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

# Tool kinds used by the safety policy
SHELL = "shell"
READ_ONLY = "read_only"
WRITE = "write"
AUXILIARY = "auxiliary"

AUX_SEPARATORS = ("__", ".")

BUILTIN_TOOLS: Dict[str, Dict] = {
    "Bash": {
        "kind": SHELL,
        "required": ["command"],
        "optional": ["description", "timeout"],
        "primary": "command",
        "description": "Run a shell command in the current working directory. Output is stdout and stderr merged, plus the exit code. timeout is in seconds (not milliseconds) and is capped by the max_command_timeout setting.",
    },
    "Read": {
        "kind": READ_ONLY,
        "required": ["file_path"],
        "optional": [],
        "primary": "file_path",
        "description": "Read the whole content of a text file.",
    },
    "Write": {
        "kind": WRITE,
        "required": ["file_path", "content"],
        "optional": [],
        "primary": "file_path",
        "description": "Create a file, or overwrite it, with exactly the given content. Parent directories are created.",
    },
    "Edit": {
        "kind": WRITE,
        "required": ["file_path", "old_string"],
        "optional": ["new_string"],
        "primary": "file_path",
        "description": "Replace EVERY occurrence of old_string in a file with new_string (omit new_string to delete). A backup is written to <file>.bak.",
    },
    "Glob": {
        "kind": READ_ONLY,
        "required": ["pattern"],
        "optional": ["path"],
        "primary": "pattern",
        "description": "Find files whose name matches a glob pattern (e.g. *.py), recursively under path (default: current directory).",
    },
    "Grep": {
        "kind": READ_ONLY,
        "required": ["pattern"],
        "optional": ["path", "mode"],
        "primary": "pattern",
        "description": "Search file contents for a regular expression. mode is 'files-only' (default) or 'content' for file:line:text matches.",
    },
}

# Lower-case spellings models use for the built-ins
TOOL_NAME_ALIASES: Dict[str, str] = {
    "bash": "Bash",
    "shell": "Bash",
    "run_command": "Bash",
    "run-command": "Bash",
    "execute_command": "Bash",
    "read": "Read",
    "read_file": "Read",
    "read-file": "Read",
    "write": "Write",
    "write_file": "Write",
    "write-file": "Write",
    "create_file": "Write",
    "edit": "Edit",
    "edit_file": "Edit",
    "edit-file": "Edit",
    "glob": "Glob",
    "find_files": "Glob",
    "find-files": "Glob",
    "grep": "Grep",
    "search": "Grep",
    "search_content": "Grep",
    "search-content": "Grep",
}

# Logical parameter -> accepted spellings, tried in order; first present wins.
DEFAULT_PARAMETER_ALIASES: Dict[str, List[str]] = {
    "command": ["command", "cmd"],
    "file_path": ["file_path", "path", "filename", "file"],
    "content": ["content", "text", "data", "body"],
    "old_string": ["old_string", "old", "search", "find", "original"],
    "new_string": ["new_string", "new", "replace", "replacement"],
    "pattern": ["pattern", "glob", "regex", "query"],
    "path": ["path", "directory", "dir"],
    "mode": ["mode", "output_mode"],
    "timeout": ["timeout"],
    "description": ["description"],
}


def canonical_tool_name(name: str) -> Optional[str]:
    """Return the built-in tool name for ``name`` or None when it is not a built-in."""
    stripped = name.strip()
    if stripped in BUILTIN_TOOLS:
        return stripped
    return TOOL_NAME_ALIASES.get(stripped.lower())


def is_auxiliary_name(name: str) -> bool:
    return any(sep in name for sep in AUX_SEPARATORS)


def split_auxiliary_name(name: str) -> Tuple[str, str]:
    """Split ``server__tool`` or ``server.tool`` into (server, tool)."""
    for sep in AUX_SEPARATORS:
        if sep in name:
            server, tool = name.split(sep, 1)
            return server, tool
    raise ValueError(f"Not a qualified auxiliary tool name: {name}")


def merge_parameter_aliases(overrides: Optional[Mapping[str, Sequence[str]]]) -> Dict[str, List[str]]:
    """Defaults with configured alias lists replacing whole entries."""
    merged = {k: list(v) for k, v in DEFAULT_PARAMETER_ALIASES.items()}
    for logical, spellings in (overrides or {}).items():
        if isinstance(spellings, str):
            spellings = [spellings]
        merged[logical] = [s for s in spellings if s]
    return merged


def resolve_parameter(
    parameters: Mapping[str, str],
    logical_name: str,
    aliases: Optional[Mapping[str, Sequence[str]]] = None,
) -> Optional[str]:
    table = aliases if aliases is not None else DEFAULT_PARAMETER_ALIASES
    for spelling in table.get(logical_name, [logical_name]):
        if spelling in parameters:
            return parameters[spelling]
    return None

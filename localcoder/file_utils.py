# localcoder/file_utils.py
import os
from pathlib import Path
from typing import Iterator

# Directories never descended into by Glob and Grep
EXCLUDED_DIRS = {
    ".git", ".hg", ".svn", "node_modules", "__pycache__", ".venv", "venv",
    ".mypy_cache", ".pytest_cache", ".tox", ".idea", "dist", "build",
}

BACKUP_SUFFIX = ".bak"


def normalize_path(path_str: str) -> str:
    """Return a canonical, absolute version of the path."""
    if not path_str or not path_str.strip():
        raise ValueError("Path cannot be empty.")
    try:
        return str(Path(path_str.strip()).expanduser().resolve())
    except (TypeError, RuntimeError, OSError) as e:
        raise ValueError(f"Invalid path: \"{path_str}\". Error: {e}") from e


def is_binary_file(file_path: str, peek_size: int = 1024) -> bool:
    """Checks if a file is likely binary by looking for null bytes."""
    try:
        with open(file_path, 'rb') as f:
            chunk = f.read(peek_size)
        return b'\0' in chunk
    except OSError:
        return True # Unreadable counts as binary for searching


def read_local_file(file_path: str) -> str:
    """Return the text content of a local file; undecodable bytes are replaced.
    Raises FileNotFoundError or OSError on issues.
    """
    with open(file_path, "r", encoding="utf-8", errors="replace", newline="") as f:
        return f.read()


def write_local_file(file_path: str, content: str) -> None:
    """Write ``content`` byte-exact (no newline translation), creating parent directories."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


def write_backup(file_path: str, content: str) -> str:
    backup_path = f"{file_path}{BACKUP_SUFFIX}"
    with open(backup_path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    return backup_path


def count_lines(text: str) -> int:
    return len(text.splitlines())


def format_line_delta(old_lines: int, new_lines: int) -> str:
    delta = new_lines - old_lines
    return f"{delta:+d} lines"


def iter_files(root: str) -> Iterator[str]:
    """Yield files under ``root`` in a stable order, skipping EXCLUDED_DIRS."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS)
        for filename in sorted(filenames):
            yield os.path.join(dirpath, filename)

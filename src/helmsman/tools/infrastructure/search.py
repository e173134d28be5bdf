"""Search tools — glob and grep over the local filesystem."""

import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from helmsman.tools.domain.context import ToolContext
from helmsman.tools.domain.definition import ToolDefinition, ToolParameter, object_schema
from helmsman.tools.domain.result import ToolExecutionResult
from helmsman.tools.infrastructure.paths import resolve_path

_IGNORED_DIRS = frozenset({"node_modules", ".git", "__pycache__", ".venv"})
_MAX_GLOB_RESULTS = 100
_MAX_GREP_FILES = 50
_MAX_GREP_MATCHES = 100


def _iter_files(root: Path, pattern: str) -> Iterator[Path]:
    for path in sorted(root.glob(pattern)):
        if not path.is_file():
            continue
        if _IGNORED_DIRS.intersection(path.relative_to(root).parts):
            continue
        yield path


def glob_files(arguments: dict[str, Any], context: ToolContext) -> ToolExecutionResult:
    pattern = arguments.get("pattern")
    if not isinstance(pattern, str) or not pattern:
        return ToolExecutionResult.failure("'pattern' must be a non-empty string")
    root = resolve_path(arguments.get("path") or str(context.cwd), context)

    try:
        matches = [
            path.relative_to(root).as_posix() for path in _iter_files(root, pattern)
        ]
    except (OSError, ValueError) as exc:
        return ToolExecutionResult.failure(f"Glob failed: {exc}")

    if not matches:
        return ToolExecutionResult.ok("No files found matching pattern")
    return ToolExecutionResult.ok("\n".join(matches[:_MAX_GLOB_RESULTS]))


def grep_files(arguments: dict[str, Any], context: ToolContext) -> ToolExecutionResult:
    """Case-insensitive regex search; reports `file:line: text` for each hit."""
    pattern = arguments.get("pattern")
    if not isinstance(pattern, str) or not pattern:
        return ToolExecutionResult.failure("'pattern' must be a non-empty string")
    try:
        regex = re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        return ToolExecutionResult.failure(f"Invalid pattern: {exc}")

    target = resolve_path(arguments.get("path") or str(context.cwd), context)
    file_glob = str(arguments.get("glob_pattern") or "**/*")

    if target.is_file():
        candidates = [target]
    else:
        candidates = list(_iter_files(target, file_glob))[:_MAX_GREP_FILES]

    results: list[str] = []
    for path in candidates:
        try:
            lines = path.read_text(encoding="utf-8").split("\n")
        except (OSError, UnicodeDecodeError):
            continue
        for number, line in enumerate(lines, start=1):
            if regex.search(line):
                results.append(f"{path}:{number}: {line.strip()}")
        if len(results) >= _MAX_GREP_MATCHES:
            break

    if not results:
        return ToolExecutionResult.ok("No matches found")
    return ToolExecutionResult.ok("\n".join(results[:_MAX_GREP_MATCHES]))


GLOB_TOOL = ToolDefinition(
    name="glob",
    description="Find files matching a glob pattern such as '**/*.py'.",
    handler=glob_files,
    input_schema=object_schema(
        {
            "pattern": ToolParameter("string", "Glob pattern to match", required=True),
            "path": ToolParameter("string", "Directory to search (default: cwd)"),
        }
    ),
    read_only=True,
)

GREP_TOOL = ToolDefinition(
    name="grep",
    description="Search file contents for a regex. Returns file paths and line numbers.",
    handler=grep_files,
    input_schema=object_schema(
        {
            "pattern": ToolParameter("string", "Regex to search for", required=True),
            "path": ToolParameter("string", "File or directory to search (default: cwd)"),
            "glob_pattern": ToolParameter("string", "Glob filter for files, e.g. '*.py'"),
        }
    ),
    read_only=True,
)

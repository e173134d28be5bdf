"""File tools — read_file, write_file and edit_file."""

from typing import Any

from helmsman.tools.domain.context import ToolContext
from helmsman.tools.domain.definition import ToolDefinition, ToolParameter, object_schema
from helmsman.tools.domain.result import ToolExecutionResult
from helmsman.tools.infrastructure.paths import resolve_path

_DEFAULT_LINE_LIMIT = 2000


def _path_key(arguments: dict[str, Any]) -> dict[str, Any]:
    return {"path": arguments.get("path")}


def read_file(arguments: dict[str, Any], context: ToolContext) -> ToolExecutionResult:
    """Return the file's lines numbered from 1, optionally windowed by offset/limit."""
    path = resolve_path(arguments.get("path"), context)
    offset = max(1, int(arguments.get("offset") or 1))
    limit = int(arguments.get("limit") or _DEFAULT_LINE_LIMIT)

    try:
        lines = path.read_text(encoding="utf-8").split("\n")
    except OSError as exc:
        return ToolExecutionResult.failure(f"Failed to read file: {exc}")

    window = lines[offset - 1 : offset - 1 + limit]
    numbered = "\n".join(
        f"{offset + i:>6}  {line}" for i, line in enumerate(window)
    )
    return ToolExecutionResult.ok(numbered)


def write_file(arguments: dict[str, Any], context: ToolContext) -> ToolExecutionResult:
    path = resolve_path(arguments.get("path"), context)
    content = str(arguments.get("content", ""))

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        return ToolExecutionResult.failure(f"Failed to write file: {exc}")

    return ToolExecutionResult.ok(f"Successfully wrote {len(content)} characters to {path}")


def edit_file(arguments: dict[str, Any], context: ToolContext) -> ToolExecutionResult:
    """Replace exactly one occurrence of old_string with new_string."""
    path = resolve_path(arguments.get("path"), context)
    old_string = str(arguments.get("old_string", ""))
    new_string = str(arguments.get("new_string", ""))
    if not old_string:
        return ToolExecutionResult.failure("'old_string' must not be empty")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        return ToolExecutionResult.failure(f"Failed to edit file: {exc}")

    occurrences = content.count(old_string)
    if occurrences == 0:
        return ToolExecutionResult.failure(
            f'String not found in file: "{old_string[:50]}..."'
        )
    if occurrences > 1:
        return ToolExecutionResult.failure(
            f"String found {occurrences} times. Provide a more specific string"
            " so that only one location matches."
        )

    try:
        path.write_text(content.replace(old_string, new_string, 1), encoding="utf-8")
    except OSError as exc:
        return ToolExecutionResult.failure(f"Failed to edit file: {exc}")

    return ToolExecutionResult.ok(f"Successfully edited {path}")


READ_FILE_TOOL = ToolDefinition(
    name="read_file",
    description="Read the contents of a file. Returns the content with line numbers.",
    handler=read_file,
    input_schema=object_schema(
        {
            "path": ToolParameter("string", "Path of the file to read", required=True),
            "offset": ToolParameter("integer", "Line number to start from (1-indexed)"),
            "limit": ToolParameter("integer", "Maximum number of lines to read"),
        }
    ),
    read_only=True,
    describe=lambda args: f"Read file: {args.get('path')}",
)

WRITE_FILE_TOOL = ToolDefinition(
    name="write_file",
    description="Write content to a file, creating it or overwriting it.",
    handler=write_file,
    input_schema=object_schema(
        {
            "path": ToolParameter("string", "Path of the file to write", required=True),
            "content": ToolParameter("string", "Content to write", required=True),
        }
    ),
    permission_key=_path_key,
    describe=lambda args: f"Write file: {args.get('path')}",
)

EDIT_FILE_TOOL = ToolDefinition(
    name="edit_file",
    description=(
        "Edit a file by replacing one exact occurrence of old_string with new_string."
    ),
    handler=edit_file,
    input_schema=object_schema(
        {
            "path": ToolParameter("string", "Path of the file to edit", required=True),
            "old_string": ToolParameter("string", "Exact text to replace", required=True),
            "new_string": ToolParameter("string", "Replacement text", required=True),
        }
    ),
    permission_key=_path_key,
    describe=lambda args: f"Edit file: {args.get('path')}",
)

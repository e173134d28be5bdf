"""list_dir tool — directory listing with types and sizes."""

from pathlib import Path
from typing import Any

from helmsman.tools.domain.context import ToolContext
from helmsman.tools.domain.definition import ToolDefinition, ToolParameter, object_schema
from helmsman.tools.domain.result import ToolExecutionResult
from helmsman.tools.infrastructure.paths import resolve_path

_MAX_ENTRIES = 200


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024**2:
        return f"{size / 1024:.1f} KB"
    if size < 1024**3:
        return f"{size / 1024**2:.1f} MB"
    return f"{size / 1024**3:.1f} GB"


def _describe_entry(entry: Path) -> str:
    try:
        if entry.is_symlink():
            return f"[LINK] {entry.name}"
        if entry.is_dir():
            return f"[DIR]  {entry.name}/"
        return f"[FILE] {entry.name} ({format_size(entry.stat().st_size)})"
    except OSError:
        return f"[????] {entry.name}"


def list_dir(arguments: dict[str, Any], context: ToolContext) -> ToolExecutionResult:
    """List directories first, then files, each group sorted by name."""
    path = resolve_path(arguments.get("path") or str(context.cwd), context)

    try:
        entries = sorted(path.iterdir(), key=lambda e: (not e.is_dir(), e.name))
    except OSError as exc:
        return ToolExecutionResult.failure(f"Failed to list directory: {exc}")

    lines = [_describe_entry(entry) for entry in entries[:_MAX_ENTRIES]]
    if len(entries) > _MAX_ENTRIES:
        lines.append(f"\n... and {len(entries) - _MAX_ENTRIES} more entries")
    return ToolExecutionResult.ok("\n".join(lines))


LIST_DIR_TOOL = ToolDefinition(
    name="list_dir",
    description="List the contents of a directory with entry types and sizes.",
    handler=list_dir,
    input_schema=object_schema(
        {"path": ToolParameter("string", "Directory to list", required=True)}
    ),
    read_only=True,
)

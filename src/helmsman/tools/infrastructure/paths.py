"""Path resolution shared by the filesystem tools."""

from pathlib import Path

from helmsman.tools.domain.context import ToolContext


def resolve_path(raw: object, context: ToolContext) -> Path:
    """Resolve a tool-supplied path against the context's working directory."""
    if not isinstance(raw, str) or not raw:
        raise ValueError("'path' must be a non-empty string")
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = context.cwd / path
    return path

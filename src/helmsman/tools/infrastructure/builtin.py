"""The base tool set every session starts from."""

from helmsman.tools.domain.definition import ToolDefinition
from helmsman.tools.domain.registry import ToolRegistry
from helmsman.tools.infrastructure.file import EDIT_FILE_TOOL, READ_FILE_TOOL, WRITE_FILE_TOOL
from helmsman.tools.infrastructure.list_dir import LIST_DIR_TOOL
from helmsman.tools.infrastructure.search import GLOB_TOOL, GREP_TOOL
from helmsman.tools.infrastructure.shell import BASH_TOOL
from helmsman.tools.infrastructure.web import WEB_FETCH_TOOL

# Tool set of the read-only sub-agents. Excludes web_fetch.
READ_ONLY_TOOL_NAMES: tuple[str, ...] = ("read_file", "glob", "grep", "list_dir")


def create_base_tools() -> list[ToolDefinition]:
    return [
        READ_FILE_TOOL,
        WRITE_FILE_TOOL,
        EDIT_FILE_TOOL,
        LIST_DIR_TOOL,
        BASH_TOOL,
        GLOB_TOOL,
        GREP_TOOL,
        WEB_FETCH_TOOL,
    ]


def create_base_registry() -> ToolRegistry:
    return ToolRegistry(create_base_tools())

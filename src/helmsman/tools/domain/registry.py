"""ToolRegistry — name-to-definition map that executes tools safely."""

import asyncio
import inspect
from collections.abc import Collection, Iterable

from helmsman.tools.domain.context import ToolContext
from helmsman.tools.domain.definition import Arguments, ToolDefinition, ToolSchema
from helmsman.tools.domain.result import ToolExecutionResult


class ToolRegistry:
    """Holds the tools one agent may dispatch.

    Restriction happens by building a narrower registry with `restricted()`;
    a tool left out simply does not exist for whoever holds that registry.
    """

    def __init__(self, tools: Iterable[ToolDefinition] = ()) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: ToolDefinition) -> None:
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> None:
        self._tools.pop(name, None)

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def schemas(self) -> list[ToolSchema]:
        return [tool.schema() for tool in self._tools.values()]

    def restricted(
        self,
        allow_only: Collection[str] | None = None,
        block: Collection[str] | None = None,
    ) -> "ToolRegistry":
        """Return a new registry holding only the permitted tools.

        An allow-list takes precedence: when both are given the block-list is
        ignored.
        """
        if allow_only is not None:
            return ToolRegistry(t for t in self._tools.values() if t.name in allow_only)
        if block is not None:
            return ToolRegistry(t for t in self._tools.values() if t.name not in block)
        return ToolRegistry(self._tools.values())

    async def execute(
        self, name: str, arguments: Arguments, context: ToolContext
    ) -> ToolExecutionResult:
        """Run a tool by name. Never raises for handler failures.

        Synchronous handlers run in a worker thread so file and search tools
        do not block other agents or server readers on the event loop.
        """
        tool = self._tools.get(name)
        if tool is None:
            return ToolExecutionResult.failure(f"unknown tool: {name}")

        try:
            if inspect.iscoroutinefunction(tool.handler):
                outcome = await tool.handler(arguments, context)
            else:
                outcome = await asyncio.to_thread(tool.handler, arguments, context)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as exc:
            detail = str(exc) or type(exc).__name__
            return ToolExecutionResult.failure(detail)

        return outcome

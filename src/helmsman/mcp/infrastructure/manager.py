"""McpServerManager — owns every capability server client of a session."""

from collections.abc import Callable, Mapping
from typing import Any

from helmsman.config.domain.mcp_server import McpServerConfig
from helmsman.mcp.domain.capabilities import McpServerState, McpServerTool
from helmsman.mcp.domain.observer import McpObserver
from helmsman.mcp.domain.status import ConnectionStatus
from helmsman.mcp.infrastructure.client import McpClient
from helmsman.mcp.infrastructure.errors import McpConnectionError, McpServerNotFoundError
from helmsman.tools.domain.context import ToolContext
from helmsman.tools.domain.definition import Arguments, ToolDefinition
from helmsman.tools.domain.result import ToolExecutionResult

type ClientFactory = Callable[[str, McpServerConfig, McpObserver], McpClient]


def _default_client_factory(
    name: str, config: McpServerConfig, observer: McpObserver
) -> McpClient:
    return McpClient(name=name, config=config, observer=observer)


class McpServerManager:
    """Keeps one client per configured server name and routes tool calls.

    Clients are created on first connect and reused for reconnects.
    """

    def __init__(
        self,
        servers: Mapping[str, McpServerConfig],
        observer: McpObserver,
        client_factory: ClientFactory = _default_client_factory,
    ) -> None:
        self._servers = dict(servers)
        self._observer = observer
        self._client_factory = client_factory
        self._clients: dict[str, McpClient] = {}

    def server_names(self) -> list[str]:
        return list(self._servers)

    def client(self, name: str) -> McpClient | None:
        return self._clients.get(name)

    async def connect(self, name: str) -> McpClient:
        """Connect one configured server.

        Raises:
            McpServerNotFoundError: if the name is not configured.
            McpAlreadyConnectedError: if it is already connecting or connected.
            McpConnectionError: if spawning or the handshake fails.
        """
        config = self._servers.get(name)
        if config is None:
            raise McpServerNotFoundError(name)

        client = self._clients.get(name)
        if client is None:
            client = self._client_factory(name, config, self._observer)
            self._clients[name] = client
        await client.connect()
        return client

    async def disconnect(self, name: str) -> None:
        client = self._clients.get(name)
        if client is not None:
            await client.disconnect()

    async def connect_all(self) -> list[str]:
        """Connect every enabled server; returns the names that connected.

        A failing server is reported through the observer and skipped.
        """
        connected: list[str] = []
        for name, config in self._servers.items():
            if not config.enabled:
                continue
            try:
                await self.connect(name)
            except McpConnectionError:
                continue
            connected.append(name)
        return connected

    async def disconnect_all(self) -> None:
        for client in list(self._clients.values()):
            await client.disconnect()

    def server_states(self) -> list[McpServerState]:
        states: list[McpServerState] = []
        for name, config in self._servers.items():
            client = self._clients.get(name)
            if client is None:
                states.append(
                    McpServerState(
                        name=name,
                        status=ConnectionStatus.DISCONNECTED,
                        enabled=config.enabled,
                    )
                )
                continue
            states.append(
                McpServerState(
                    name=name,
                    status=client.status,
                    enabled=config.enabled,
                    error=client.error,
                    tools=client.tools,
                    resources=client.resources,
                    prompts=client.prompts,
                )
            )
        return states

    def all_tools(self) -> list[McpServerTool]:
        return [
            McpServerTool(server=client.name, tool=tool)
            for client in self._connected_clients()
            for tool in client.tools
        ]

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> ToolExecutionResult:
        """Route a call to the first connected server that lists the tool."""
        for client in self._connected_clients():
            if any(tool.name == name for tool in client.tools):
                return await client.call_tool(name, arguments)
        return ToolExecutionResult.failure(f"tool not found: {name}")

    def tool_definitions(self, reserved: frozenset[str] = frozenset()) -> list[ToolDefinition]:
        """Expose discovered tools as definitions whose handlers issue `tools/call`.

        Names in `reserved` (normally the local tools) and duplicates across
        servers are skipped; the first server wins.
        """
        definitions: list[ToolDefinition] = []
        seen = set(reserved)
        for entry in self.all_tools():
            if entry.tool.name in seen:
                self._observer.tool_shadowed(server=entry.server, tool=entry.tool.name)
                continue
            seen.add(entry.tool.name)
            definitions.append(self._definition_for(entry))
        return definitions

    def _definition_for(self, entry: McpServerTool) -> ToolDefinition:
        tool_name = entry.tool.name

        async def handler(arguments: Arguments, context: ToolContext) -> ToolExecutionResult:
            return await self.call_tool(tool_name, arguments)

        return ToolDefinition(
            name=tool_name,
            description=entry.tool.description or f"{tool_name} (from {entry.server})",
            handler=handler,
            input_schema=entry.tool.input_schema,
        )

    def _connected_clients(self) -> list[McpClient]:
        return [
            client
            for client in self._clients.values()
            if client.status == ConnectionStatus.CONNECTED
        ]

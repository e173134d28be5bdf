"""Structlog implementation of the McpObserver port."""

import structlog


class StructlogMcpObserver:
    """Delegates capability server events to structlog.

    Satisfies the McpObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def server_connecting(self, server: str, command: str) -> None:
        self._log.info("mcp.server_connecting", server=server, command=command)

    def server_connected(
        self, server: str, tools: int, resources: int, prompts: int
    ) -> None:
        self._log.info(
            "mcp.server_connected",
            server=server,
            tools=tools,
            resources=resources,
            prompts=prompts,
        )

    def server_connection_failed(self, server: str, reason: str) -> None:
        self._log.error("mcp.server_connection_failed", server=server, reason=reason)

    def server_disconnected(self, server: str, reason: str) -> None:
        self._log.info("mcp.server_disconnected", server=server, reason=reason)

    def server_stderr(self, server: str, line: str) -> None:
        self._log.debug("mcp.server_stderr", server=server, line=line)

    def capability_list_failed(self, server: str, method: str, reason: str) -> None:
        self._log.warning(
            "mcp.capability_list_failed", server=server, method=method, reason=reason
        )

    def request_timed_out(
        self, server: str, method: str, request_id: int, timeout_seconds: float
    ) -> None:
        self._log.warning(
            "mcp.request_timed_out",
            server=server,
            method=method,
            request_id=request_id,
            timeout_seconds=timeout_seconds,
        )

    def message_discarded(self, server: str, reason: str) -> None:
        self._log.debug("mcp.message_discarded", server=server, reason=reason)

    def notification_received(self, server: str, method: str) -> None:
        self._log.debug("mcp.notification_received", server=server, method=method)

    def notification_handler_failed(
        self, server: str, method: str, reason: str
    ) -> None:
        self._log.error(
            "mcp.notification_handler_failed",
            server=server,
            method=method,
            reason=reason,
        )

    def tool_shadowed(self, server: str, tool: str) -> None:
        self._log.warning("mcp.tool_shadowed", server=server, tool=tool)

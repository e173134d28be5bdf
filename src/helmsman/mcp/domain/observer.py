"""McpObserver port — domain events emitted by capability server clients."""

from typing import Protocol


class McpObserver(Protocol):
    """Observer port for capability server events.

    Implementations may log to structlog or record for tests.
    """

    def server_connecting(self, server: str, command: str) -> None: ...

    def server_connected(
        self, server: str, tools: int, resources: int, prompts: int
    ) -> None: ...

    def server_connection_failed(self, server: str, reason: str) -> None: ...

    def server_disconnected(self, server: str, reason: str) -> None: ...

    def server_stderr(self, server: str, line: str) -> None: ...

    def capability_list_failed(self, server: str, method: str, reason: str) -> None: ...

    def request_timed_out(
        self, server: str, method: str, request_id: int, timeout_seconds: float
    ) -> None: ...

    def message_discarded(self, server: str, reason: str) -> None: ...

    def notification_received(self, server: str, method: str) -> None: ...

    def notification_handler_failed(
        self, server: str, method: str, reason: str
    ) -> None: ...

    def tool_shadowed(self, server: str, tool: str) -> None: ...

"""Error types raised by capability server infrastructure."""

from helmsman.core.errors import HelmsmanError


class McpConnectionError(HelmsmanError):
    """Raised when a server cannot be spawned or does not complete `initialize`."""

    def __init__(self, server: str, reason: str) -> None:
        self.server = server
        super().__init__(f"Failed to connect to MCP server '{server}': {reason}")


class McpAlreadyConnectedError(HelmsmanError):
    """Raised when connect() is called while connecting or connected."""

    def __init__(self, server: str) -> None:
        self.server = server
        super().__init__(
            f"Failed to connect to MCP server '{server}': already connected"
        )


class McpRequestError(HelmsmanError):
    """Raised when the server answers a request with a JSON-RPC error."""

    def __init__(self, server: str, method: str, code: int, detail: str) -> None:
        self.server = server
        self.method = method
        self.code = code
        self.detail = detail
        super().__init__(
            f"Failed to complete {method} on MCP server '{server}': {detail} (code {code})"
        )


class McpRequestTimeoutError(HelmsmanError):
    """Raised when a request gets no response within the configured timeout."""

    def __init__(self, server: str, method: str, timeout_seconds: float) -> None:
        self.server = server
        self.method = method
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Failed to complete {method} on MCP server '{server}':"
            f" timed out after {timeout_seconds:g}s",
            retriable=True,
        )


class McpDisconnectedError(HelmsmanError):
    """Raised for requests that are pending or attempted while the link is down."""

    def __init__(self, server: str, reason: str) -> None:
        self.server = server
        self.reason = reason
        super().__init__(f"Failed to reach MCP server '{server}': {reason}")


class McpServerNotFoundError(HelmsmanError):
    """Raised when the manager is asked for a server that is not configured."""

    def __init__(self, server: str) -> None:
        self.server = server
        super().__init__(f"Failed to find MCP server '{server}' in configuration")

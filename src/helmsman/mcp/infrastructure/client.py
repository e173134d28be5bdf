"""McpClient — one JSON-RPC connection to a capability server."""

import asyncio
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from helmsman.config.domain.mcp_server import McpServerConfig
from helmsman.mcp.domain.capabilities import (
    McpPrompt,
    McpPromptResult,
    McpResource,
    McpResourceContent,
    McpTool,
)
from helmsman.mcp.domain.messages import (
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    decode_message,
    encode_message,
)
from helmsman.mcp.domain.observer import McpObserver
from helmsman.mcp.domain.status import ConnectionStatus
from helmsman.mcp.domain.transport import McpTransport
from helmsman.mcp.infrastructure.errors import (
    McpAlreadyConnectedError,
    McpConnectionError,
    McpDisconnectedError,
    McpRequestError,
    McpRequestTimeoutError,
)
from helmsman.mcp.infrastructure.stdio_transport import StdioTransport
from helmsman.tools.domain.result import ToolExecutionResult

PROTOCOL_VERSION = "2024-11-05"
CLIENT_CAPABILITIES: dict[str, Any] = {"roots": {"listChanged": True}, "sampling": {}}

type NotificationHandler = Callable[[JsonRpcNotification], None]
type TransportFactory = Callable[[McpServerConfig], McpTransport]


class McpClient:
    """Owns one server process and correlates its requests and responses.

    Status moves disconnected -> connecting -> connected, or to error when
    spawning or `initialize` fails. Disconnect and process exit both return to
    disconnected and reject every pending request.

    Pending requests are futures keyed by request id. Both the response path
    and the timeout path remove the entry with a single `dict.pop`, so
    whichever runs first wins and the other finds nothing to do.
    """

    def __init__(
        self,
        name: str,
        config: McpServerConfig,
        observer: McpObserver,
        transport_factory: TransportFactory = StdioTransport,
        client_name: str = "helmsman",
        client_version: str = "0.1.0",
    ) -> None:
        self._name = name
        self._config = config
        self._observer = observer
        self._transport_factory = transport_factory
        self._client_info = {"name": client_name, "version": client_version}

        self._transport: McpTransport | None = None
        self._status = ConnectionStatus.DISCONNECTED
        self._error: str | None = None
        self._next_id = 1
        self._pending: dict[int, tuple[str, asyncio.Future[Any]]] = {}
        self._subscribers: list[NotificationHandler] = []
        self._server_info: dict[str, Any] = {}

        self._tools: tuple[McpTool, ...] = ()
        self._resources: tuple[McpResource, ...] = ()
        self._prompts: tuple[McpPrompt, ...] = ()

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> McpServerConfig:
        return self._config

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def server_info(self) -> dict[str, Any]:
        return dict(self._server_info)

    @property
    def tools(self) -> tuple[McpTool, ...]:
        return self._tools

    @property
    def resources(self) -> tuple[McpResource, ...]:
        return self._resources

    @property
    def prompts(self) -> tuple[McpPrompt, ...]:
        return self._prompts

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def on_notification(self, handler: NotificationHandler) -> Callable[[], None]:
        """Subscribe to server notifications. Returns an unsubscribe callable."""
        self._subscribers.append(handler)

        def unsubscribe() -> None:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

        return unsubscribe

    async def connect(self) -> None:
        """Spawn the server, run the handshake and discover its capabilities.

        Raises:
            McpAlreadyConnectedError: if connecting or connected.
            McpConnectionError: if the process cannot start or `initialize` fails.
        """
        if self._status in (ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED):
            raise McpAlreadyConnectedError(self._name)

        self._status = ConnectionStatus.CONNECTING
        self._error = None
        self._observer.server_connecting(server=self._name, command=self._config.command)

        await self._close_transport()
        transport = self._transport_factory(self._config)
        self._transport = transport
        try:
            await transport.start(
                on_line=self._handle_line,
                on_stderr=self._handle_stderr,
                on_exit=self._handle_exit,
                on_discard=self._handle_discard,
            )
            result = await self._request(
                "initialize",
                {
                    "protocolVersion": PROTOCOL_VERSION,
                    "capabilities": CLIENT_CAPABILITIES,
                    "clientInfo": self._client_info,
                },
            )
        except (OSError, McpRequestError, McpRequestTimeoutError, McpDisconnectedError) as exc:
            reason = str(exc)
            self._status = ConnectionStatus.ERROR
            self._error = reason
            self._reject_all(reason="connection failed")
            await self._close_transport()
            self._observer.server_connection_failed(server=self._name, reason=reason)
            raise McpConnectionError(server=self._name, reason=reason) from exc
        except asyncio.CancelledError:
            self._status = ConnectionStatus.DISCONNECTED
            self._reject_all(reason="connect cancelled")
            await self._close_transport()
            raise

        if isinstance(result, dict):
            self._server_info = dict(result.get("serverInfo") or {})
        self._status = ConnectionStatus.CONNECTED

        await self._notify("notifications/initialized")
        self._tools = await self._list("tools/list", "tools", McpTool)
        self._resources = await self._list("resources/list", "resources", McpResource)
        self._prompts = await self._list("prompts/list", "prompts", McpPrompt)

        self._observer.server_connected(
            server=self._name,
            tools=len(self._tools),
            resources=len(self._resources),
            prompts=len(self._prompts),
        )

    async def disconnect(self) -> None:
        """Reject every pending request and terminate the server. Idempotent."""
        if self._transport is None and self._status == ConnectionStatus.DISCONNECTED:
            return
        self._status = ConnectionStatus.DISCONNECTED
        self._reject_all(reason="client disconnected")
        await self._close_transport()
        self._clear_capabilities()
        self._observer.server_disconnected(server=self._name, reason="client disconnected")

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> ToolExecutionResult:
        """Invoke `tools/call`.

        JSON-RPC errors and results flagged `isError` become failed results;
        timeouts and disconnects propagate.
        """
        try:
            result = await self._request(
                "tools/call", {"name": name, "arguments": arguments or {}}
            )
        except McpRequestError as exc:
            return ToolExecutionResult.failure(exc.detail)

        result = result if isinstance(result, dict) else {}
        text = _content_text(result.get("content") or [])
        if result.get("isError"):
            return ToolExecutionResult.failure(text or "tool reported an error", output=text)
        return ToolExecutionResult.ok(text)

    async def read_resource(self, uri: str) -> tuple[McpResourceContent, ...]:
        result = await self._request("resources/read", {"uri": uri})
        contents = result.get("contents") if isinstance(result, dict) else None
        return tuple(McpResourceContent.model_validate(item) for item in contents or [])

    async def get_prompt(
        self, name: str, arguments: dict[str, str] | None = None
    ) -> McpPromptResult:
        params: dict[str, Any] = {"name": name}
        if arguments:
            params["arguments"] = arguments
        result = await self._request("prompts/get", params)
        return McpPromptResult.model_validate(result if isinstance(result, dict) else {})

    async def _request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        transport = self._transport
        if transport is None or self._status not in (
            ConnectionStatus.CONNECTING,
            ConnectionStatus.CONNECTED,
        ):
            raise McpDisconnectedError(server=self._name, reason="not connected")

        request_id = self._next_id
        self._next_id += 1
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = (method, future)

        timeout = self._config.request_timeout_seconds
        try:
            await transport.send(
                encode_message(JsonRpcRequest(id=request_id, method=method, params=params))
            )
            return await asyncio.wait_for(future, timeout=timeout)
        except TimeoutError as exc:
            self._observer.request_timed_out(
                server=self._name,
                method=method,
                request_id=request_id,
                timeout_seconds=timeout,
            )
            raise McpRequestTimeoutError(
                server=self._name, method=method, timeout_seconds=timeout
            ) from exc
        except ConnectionError as exc:
            raise McpDisconnectedError(server=self._name, reason=str(exc)) from exc
        finally:
            self._pending.pop(request_id, None)

    async def _notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        if self._transport is None:
            return
        try:
            await self._transport.send(
                encode_message(JsonRpcNotification(method=method, params=params))
            )
        except ConnectionError as exc:
            self._observer.message_discarded(
                server=self._name, reason=f"failed to send {method}: {exc}"
            )

    async def _list[T: BaseModel](
        self, method: str, key: str, model: type[T]
    ) -> tuple[T, ...]:
        try:
            result = await self._request(method)
            items = result.get(key) if isinstance(result, dict) else None
            return tuple(model.model_validate(item) for item in items or [])
        except (
            McpRequestError,
            McpRequestTimeoutError,
            McpDisconnectedError,
            ValidationError,
            TypeError,
        ) as exc:
            self._observer.capability_list_failed(
                server=self._name, method=method, reason=str(exc)
            )
            return ()

    def _handle_line(self, line: str) -> None:
        if not line.strip():
            return
        message = decode_message(line)
        if message is None:
            self._observer.message_discarded(server=self._name, reason="unparseable line")
            return

        if isinstance(message, JsonRpcNotification):
            self._dispatch_notification(message)
            return

        self._resolve(message)

    def _resolve(self, response: JsonRpcResponse) -> None:
        entry = (
            self._pending.pop(response.id, None) if isinstance(response.id, int) else None
        )
        if entry is None or entry[1].done():
            self._observer.message_discarded(
                server=self._name, reason=f"response for unknown id {response.id}"
            )
            return

        method, future = entry
        if response.error is not None:
            future.set_exception(
                McpRequestError(
                    server=self._name,
                    method=method,
                    code=response.error.code,
                    detail=response.error.message,
                )
            )
        else:
            future.set_result(response.result)

    def _dispatch_notification(self, notification: JsonRpcNotification) -> None:
        self._observer.notification_received(
            server=self._name, method=notification.method
        )
        for handler in list(self._subscribers):
            try:
                handler(notification)
            except Exception as exc:
                self._observer.notification_handler_failed(
                    server=self._name, method=notification.method, reason=str(exc)
                )

    def _handle_stderr(self, line: str) -> None:
        self._observer.server_stderr(server=self._name, line=line)

    def _handle_discard(self, reason: str) -> None:
        self._observer.message_discarded(server=self._name, reason=reason)

    def _handle_exit(self, code: int | None) -> None:
        if self._status == ConnectionStatus.DISCONNECTED:
            return
        reason = f"server exited with code {code}"
        self._reject_all(reason=reason)
        if self._status == ConnectionStatus.CONNECTED:
            self._status = ConnectionStatus.DISCONNECTED
            self._clear_capabilities()
            self._observer.server_disconnected(server=self._name, reason=reason)

    def _reject_all(self, reason: str) -> None:
        pending, self._pending = self._pending, {}
        for _, future in pending.values():
            if not future.done():
                future.set_exception(McpDisconnectedError(server=self._name, reason=reason))

    async def _close_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport is not None:
            await transport.close()

    def _clear_capabilities(self) -> None:
        self._tools = ()
        self._resources = ()
        self._prompts = ()


def _content_text(content: list[Any]) -> str:
    """Flatten MCP content items into the text fed back to the backend."""
    parts: list[str] = []
    for item in content:
        if not isinstance(item, dict):
            continue
        kind = item.get("type")
        if kind == "text":
            parts.append(str(item.get("text", "")))
        elif kind == "image":
            parts.append(f"[image: {item.get('mimeType', 'unknown')}]")
        elif kind == "resource":
            resource = item.get("resource") or {}
            parts.append(str(resource.get("text") or resource.get("uri", "")))
    return "\n".join(parts)

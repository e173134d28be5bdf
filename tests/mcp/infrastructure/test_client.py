"""Tests for McpClient request correlation, handshake and lifecycle."""

import asyncio
import json

import pytest

from helmsman.config.domain.mcp_server import McpServerConfig
from helmsman.mcp.domain.messages import JsonRpcNotification
from helmsman.mcp.domain.status import ConnectionStatus
from helmsman.mcp.infrastructure.client import PROTOCOL_VERSION, McpClient
from helmsman.mcp.infrastructure.errors import (
    McpAlreadyConnectedError,
    McpConnectionError,
    McpDisconnectedError,
    McpRequestTimeoutError,
)
from tests.mcp.fake_observer import FakeMcpObserver
from tests.mcp.fake_transport import ErrorReply, FakeTransport, handshake_replies

_SEARCH_TOOL = {
    "name": "search",
    "description": "Search the index",
    "inputSchema": {"type": "object", "properties": {"q": {"type": "string"}}},
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_client(
    transport: FakeTransport | None = None,
    timeout: float = 5.0,
) -> tuple[McpClient, FakeTransport, FakeMcpObserver]:
    fake = transport if transport is not None else FakeTransport(
        handshake_replies(tools=[_SEARCH_TOOL])
    )
    observer = FakeMcpObserver()
    client = McpClient(
        name="index",
        config=McpServerConfig(command="index-server", request_timeout_seconds=timeout),
        observer=observer,
        transport_factory=lambda config: fake,
    )
    return client, fake, observer


async def _connected(
    transport: FakeTransport | None = None, timeout: float = 5.0
) -> tuple[McpClient, FakeTransport, FakeMcpObserver]:
    client, fake, observer = _make_client(transport, timeout)
    await client.connect()
    return client, fake, observer


# ---------------------------------------------------------------------------
# connect()
# ---------------------------------------------------------------------------


class TestConnect:
    async def test_handshake_then_discovery(self) -> None:
        client, transport, observer = await _connected()

        methods = [m["method"] for m in transport.sent_messages]
        assert methods == [
            "initialize",
            "notifications/initialized",
            "tools/list",
            "resources/list",
            "prompts/list",
        ]
        assert client.status == ConnectionStatus.CONNECTED
        assert [t.name for t in client.tools] == ["search"]
        assert client.tools[0].input_schema["properties"]["q"]["type"] == "string"
        assert observer.connected[0].tools == 1

    async def test_initialize_carries_protocol_version_and_client_info(self) -> None:
        _, transport, _ = await _connected()

        initialize = transport.last_request("initialize")
        assert initialize["id"] == 1
        assert initialize["params"]["protocolVersion"] == PROTOCOL_VERSION
        assert initialize["params"]["clientInfo"] == {"name": "helmsman", "version": "0.1.0"}

    async def test_records_server_info(self) -> None:
        client, _, _ = await _connected()
        assert client.server_info["name"] == "fake-server"

    async def test_connect_twice_raises(self) -> None:
        client, _, _ = await _connected()
        with pytest.raises(McpAlreadyConnectedError):
            await client.connect()

    async def test_spawn_failure_sets_error_status(self) -> None:
        transport = FakeTransport(start_error=FileNotFoundError("no such command"))
        client, _, observer = _make_client(transport)

        with pytest.raises(McpConnectionError):
            await client.connect()

        assert client.status == ConnectionStatus.ERROR
        assert client.error is not None and "no such command" in client.error
        assert observer.connection_failed[0].server == "index"

    async def test_initialize_error_sets_error_status(self) -> None:
        replies = handshake_replies()
        replies["initialize"] = ErrorReply(code=-32603, message="boom")
        client, transport, _ = _make_client(FakeTransport(replies))

        with pytest.raises(McpConnectionError, match="boom"):
            await client.connect()

        assert client.status == ConnectionStatus.ERROR
        assert transport.closed is True

    async def test_failed_listing_yields_empty_capabilities(self) -> None:
        replies = handshake_replies(tools=[_SEARCH_TOOL])
        replies["resources/list"] = ErrorReply(code=-32601, message="Method not found")
        client, _, observer = await _connected(FakeTransport(replies))

        assert client.status == ConnectionStatus.CONNECTED
        assert client.resources == ()
        assert len(client.tools) == 1
        assert observer.list_failed[0].method == "resources/list"

    async def test_malformed_listing_yields_empty_capabilities(self) -> None:
        replies = handshake_replies(tools=[_SEARCH_TOOL])
        replies["resources/list"] = {"resources": 5}
        client, _, observer = await _connected(FakeTransport(replies))

        assert client.status == ConnectionStatus.CONNECTED
        assert client.resources == ()
        assert len(client.tools) == 1
        assert observer.list_failed[0].method == "resources/list"

    async def test_can_reconnect_after_error(self) -> None:
        replies = handshake_replies()
        replies["initialize"] = ErrorReply(code=-1, message="not yet")
        transports = iter([FakeTransport(replies), FakeTransport(handshake_replies())])
        client = McpClient(
            name="index",
            config=McpServerConfig(command="index-server"),
            observer=FakeMcpObserver(),
            transport_factory=lambda config: next(transports),
        )

        with pytest.raises(McpConnectionError):
            await client.connect()
        await client.connect()

        assert client.status == ConnectionStatus.CONNECTED


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestCallTool:
    async def test_round_trip_line_and_result(self) -> None:
        client, transport, _ = await _connected()
        transport.set_reply(
            "tools/call", {"content": [{"type": "text", "text": "3 hits"}]}
        )

        result = await client.call_tool("x", {"a": 1})

        request_id = transport.last_request("tools/call")["id"]
        assert transport.sent[-1] == (
            f'{{"jsonrpc":"2.0","id":{request_id},"method":"tools/call",'
            '"params":{"name":"x","arguments":{"a":1}}}'
        )
        assert result.success is True
        assert result.output == "3 hits"
        assert client.pending_count == 0

    async def test_ids_are_unique_and_increasing(self) -> None:
        client, transport, _ = await _connected()
        transport.set_reply("tools/call", {"content": []})

        await client.call_tool("a")
        await client.call_tool("b")

        ids = [m["id"] for m in transport.sent_messages if "id" in m]
        assert ids == sorted(set(ids))

    async def test_is_error_result_becomes_failure(self) -> None:
        client, transport, _ = await _connected()
        transport.set_reply(
            "tools/call",
            {"content": [{"type": "text", "text": "bad query"}], "isError": True},
        )

        result = await client.call_tool("search", {"q": ""})

        assert result.success is False
        assert result.error_detail == "bad query"

    async def test_json_rpc_error_becomes_failure(self) -> None:
        client, transport, _ = await _connected()
        transport.set_reply("tools/call", ErrorReply(code=-32602, message="Invalid params"))

        result = await client.call_tool("search")

        assert result.success is False
        assert result.error_detail == "Invalid params"

    async def test_concurrent_requests_resolve_by_id(self) -> None:
        client, transport, _ = await _connected()

        first = asyncio.create_task(client.call_tool("a"))
        second = asyncio.create_task(client.call_tool("b"))
        await asyncio.sleep(0)
        ids = [m["id"] for m in transport.sent_messages if m.get("method") == "tools/call"]

        # Answer out of order.
        for request_id, text in ((ids[1], "second"), (ids[0], "first")):
            transport.feed(
                json.dumps(
                    {
                        "jsonrpc": "2.0",
                        "id": request_id,
                        "result": {"content": [{"type": "text", "text": text}]},
                    }
                )
            )

        assert (await first).output == "first"
        assert (await second).output == "second"

    async def test_read_resource_and_get_prompt(self) -> None:
        client, transport, _ = await _connected()
        transport.set_reply(
            "resources/read",
            {"contents": [{"uri": "file:///a", "mimeType": "text/plain", "text": "hi"}]},
        )
        transport.set_reply(
            "prompts/get",
            {
                "description": "review",
                "messages": [{"role": "user", "content": {"type": "text", "text": "go"}}],
            },
        )

        contents = await client.read_resource("file:///a")
        prompt = await client.get_prompt("review", {"lang": "py"})

        assert contents[0].text == "hi"
        assert contents[0].mime_type == "text/plain"
        assert prompt.messages[0].role == "user"
        assert transport.last_request("prompts/get")["params"]["arguments"] == {"lang": "py"}


class TestTimeout:
    """A request with no reply fails after its timeout and leaves no pending entry."""

    async def test_times_out_and_clears_pending_table(self) -> None:
        client, _, observer = await _connected(timeout=0.05)

        with pytest.raises(McpRequestTimeoutError) as exc_info:
            await client.call_tool("slow")

        assert exc_info.value.retriable is True
        assert client.pending_count == 0
        assert observer.timed_out[0].method == "tools/call"

    async def test_late_response_is_discarded(self) -> None:
        client, transport, observer = await _connected(timeout=0.05)

        with pytest.raises(McpRequestTimeoutError):
            await client.call_tool("slow")
        late_id = transport.last_request("tools/call")["id"]
        transport.feed(json.dumps({"jsonrpc": "2.0", "id": late_id, "result": {}}))

        assert client.pending_count == 0
        assert any(str(late_id) in e.reason for e in observer.discarded)


class TestInboundMessages:
    async def test_unparseable_lines_are_discarded(self) -> None:
        client, transport, observer = await _connected()
        transport.feed("Listening on stdio")
        transport.feed("")

        assert client.status == ConnectionStatus.CONNECTED
        assert [e.reason for e in observer.discarded] == ["unparseable line"]

    async def test_lines_dropped_by_transport_are_reported(self) -> None:
        client, transport, observer = await _connected()
        transport.discard("line exceeds 1024 bytes")

        assert client.status == ConnectionStatus.CONNECTED
        assert [e.reason for e in observer.discarded] == ["line exceeds 1024 bytes"]

    async def test_notifications_reach_subscribers(self) -> None:
        client, transport, observer = await _connected()
        received: list[JsonRpcNotification] = []
        unsubscribe = client.on_notification(received.append)

        transport.feed('{"jsonrpc":"2.0","method":"notifications/tools/list_changed"}')
        unsubscribe()
        transport.feed('{"jsonrpc":"2.0","method":"notifications/message"}')

        assert [n.method for n in received] == ["notifications/tools/list_changed"]
        assert len(observer.notifications) == 2

    async def test_failing_subscriber_does_not_break_dispatch(self) -> None:
        client, transport, observer = await _connected()
        received: list[str] = []

        def explode(notification: JsonRpcNotification) -> None:
            raise ValueError("handler bug")

        client.on_notification(explode)
        client.on_notification(lambda n: received.append(n.method))
        transport.feed('{"jsonrpc":"2.0","method":"notifications/progress"}')

        assert received == ["notifications/progress"]
        assert observer.handler_failures[0].reason == "handler bug"

    async def test_stderr_is_reported(self) -> None:
        _, transport, observer = await _connected()
        transport.feed_stderr("warming cache")
        assert observer.stderr[0].reason == "warming cache"


class TestDisconnect:
    async def test_rejects_pending_requests(self) -> None:
        client, _, _ = await _connected()
        pending = asyncio.create_task(client.call_tool("slow"))
        await asyncio.sleep(0)
        assert client.pending_count == 1

        await client.disconnect()

        with pytest.raises(McpDisconnectedError, match="client disconnected"):
            await pending
        assert client.pending_count == 0
        assert client.status == ConnectionStatus.DISCONNECTED
        assert client.tools == ()

    async def test_is_idempotent(self) -> None:
        client, transport, observer = await _connected()
        await client.disconnect()
        await client.disconnect()

        assert transport.closed is True
        assert len(observer.disconnected) == 1

    async def test_requests_after_disconnect_fail(self) -> None:
        client, _, _ = await _connected()
        await client.disconnect()
        with pytest.raises(McpDisconnectedError):
            await client.call_tool("search")

    async def test_server_exit_rejects_pending_and_disconnects(self) -> None:
        client, transport, observer = await _connected()
        pending = asyncio.create_task(client.call_tool("slow"))
        await asyncio.sleep(0)

        transport.exit(1)

        with pytest.raises(McpDisconnectedError, match="exited with code 1"):
            await pending
        assert client.status == ConnectionStatus.DISCONNECTED
        assert observer.disconnected[0].reason == "server exited with code 1"

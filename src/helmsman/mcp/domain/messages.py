"""JSON-RPC 2.0 message models and the newline-delimited wire encoding."""

import json
from typing import Any

from pydantic import BaseModel, ValidationError

JSONRPC_VERSION = "2.0"


class JsonRpcRequest(BaseModel, frozen=True):
    jsonrpc: str = JSONRPC_VERSION
    id: int
    method: str
    params: dict[str, Any] | None = None


class JsonRpcNotification(BaseModel, frozen=True):
    jsonrpc: str = JSONRPC_VERSION
    method: str
    params: dict[str, Any] | None = None


class JsonRpcError(BaseModel, frozen=True):
    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel, frozen=True):
    jsonrpc: str = JSONRPC_VERSION
    id: int | str
    result: Any = None
    error: JsonRpcError | None = None


type InboundMessage = JsonRpcResponse | JsonRpcNotification


def encode_message(message: JsonRpcRequest | JsonRpcNotification) -> str:
    """Serialise to one compact JSON line, without the trailing newline."""
    payload: dict[str, Any] = {"jsonrpc": message.jsonrpc}
    if isinstance(message, JsonRpcRequest):
        payload["id"] = message.id
    payload["method"] = message.method
    if message.params is not None:
        payload["params"] = message.params
    return json.dumps(payload, separators=(",", ":"))


def decode_message(line: str) -> InboundMessage | None:
    """Parse one inbound line.

    Returns None for anything that is neither a response nor a notification:
    malformed JSON, non-objects and server-to-client requests.
    """
    try:
        raw = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(raw, dict):
        return None

    has_id = raw.get("id") is not None
    try:
        if has_id and ("result" in raw or "error" in raw):
            return JsonRpcResponse.model_validate(raw)
        if not has_id and isinstance(raw.get("method"), str):
            return JsonRpcNotification.model_validate(raw)
    except ValidationError:
        return None
    return None

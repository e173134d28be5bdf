"""LiteLLMCompletionBackend — streaming completions through LiteLLM."""

import json
import time
from dataclasses import dataclass
from typing import Any

import litellm

from helmsman.backend.domain.backend import TextCallback
from helmsman.backend.domain.completion import (
    CompletionRequest,
    CompletionResponse,
    StopReason,
)
from helmsman.backend.domain.observer import BackendObserver
from helmsman.backend.infrastructure.errors import BackendInvocationError
from helmsman.config.domain.backend import BackendConfig
from helmsman.conversation.domain.blocks import (
    ContentBlock,
    TextBlock,
    ToolInvocationBlock,
    ToolResultBlock,
)
from helmsman.conversation.domain.turn import Turn
from helmsman.conversation.domain.usage import UsageMetrics
from helmsman.tools.domain.definition import ToolSchema

_FINISH_REASONS: dict[str, StopReason] = {
    "stop": "end_turn",
    "tool_calls": "tool_use",
    "function_call": "tool_use",
    "length": "max_tokens",
    "content_filter": "error",
}


@dataclass
class _PendingToolCall:
    id: str = ""
    name: str = ""
    arguments: str = ""


class LiteLLMCompletionBackend:
    """Completion backend that speaks to any LiteLLM-supported provider.

    Conversation turns are translated to OpenAI-style chat messages: tool
    invocations become assistant `tool_calls` and each tool result becomes a
    `tool` message carrying the matching `tool_call_id`.
    """

    def __init__(self, config: BackendConfig, observer: BackendObserver) -> None:
        litellm.suppress_debug_info = True
        self._config = config
        self._observer = observer

    @property
    def model(self) -> str:
        return self._config.model

    async def complete(
        self, request: CompletionRequest, on_text: TextCallback | None = None
    ) -> CompletionResponse:
        """Stream one completion and assemble the structured response.

        Raises:
            BackendInvocationError: if the provider call fails at any point.
        """
        self._observer.completion_started(
            model=self._config.model,
            messages=len(request.messages),
            tools=len(request.tools),
        )

        kwargs: dict[str, Any] = {
            "model": self._config.model,
            "messages": to_chat_messages(request.system_prompt, request.messages),
            "max_tokens": request.max_tokens,
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if request.tools:
            kwargs["tools"] = to_chat_tools(request.tools)
        if self._config.temperature is not None:
            kwargs["temperature"] = self._config.temperature
        if self._config.api_base is not None:
            kwargs["api_base"] = self._config.api_base

        start = time.monotonic()
        text_parts: list[str] = []
        calls: dict[int, _PendingToolCall] = {}
        finish_reason: str | None = None
        usage = UsageMetrics()
        try:
            stream = await litellm.acompletion(**kwargs)
            async for chunk in stream:
                chunk_usage = getattr(chunk, "usage", None)
                if chunk_usage is not None:
                    usage = UsageMetrics(
                        input_tokens=getattr(chunk_usage, "prompt_tokens", 0) or 0,
                        output_tokens=getattr(chunk_usage, "completion_tokens", 0) or 0,
                    )
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                delta = choice.delta
                if delta is not None and delta.content:
                    text_parts.append(delta.content)
                    if on_text is not None:
                        on_text(delta.content)
                if delta is not None:
                    for call_delta in getattr(delta, "tool_calls", None) or []:
                        _accumulate(calls, call_delta)
                if choice.finish_reason:
                    finish_reason = choice.finish_reason
        except Exception as exc:
            reason = str(exc) or type(exc).__name__
            status_code = getattr(exc, "status_code", None)
            status_code = status_code if isinstance(status_code, int) else None
            self._observer.completion_failed(
                model=self._config.model, reason=reason, status_code=status_code
            )
            raise BackendInvocationError(reason=reason, status_code=status_code) from exc

        content: list[ContentBlock] = []
        text = "".join(text_parts)
        if text:
            content.append(TextBlock(text=text))
        for index in sorted(calls):
            content.append(_to_invocation(index, calls[index]))

        stop_reason = _FINISH_REASONS.get(finish_reason or "stop", "end_turn")
        if calls:
            stop_reason = "tool_use"

        self._observer.completion_completed(
            model=self._config.model,
            stop_reason=stop_reason,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return CompletionResponse(content=tuple(content), stop_reason=stop_reason, usage=usage)


def to_chat_messages(system_prompt: str, turns: tuple[Turn, ...]) -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})

    for turn in turns:
        if turn.role == "assistant":
            message: dict[str, Any] = {"role": "assistant", "content": turn.text() or None}
            invocations = turn.tool_invocations()
            if invocations:
                message["tool_calls"] = [
                    {
                        "id": inv.id,
                        "type": "function",
                        "function": {
                            "name": inv.name,
                            "arguments": json.dumps(inv.arguments),
                        },
                    }
                    for inv in invocations
                ]
            messages.append(message)
            continue

        for block in turn.content:
            if isinstance(block, ToolResultBlock):
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": block.invocation_id,
                        "content": block.content,
                    }
                )
        text = turn.text()
        if text:
            messages.append({"role": "user", "content": text})
    return messages


def to_chat_tools(tools: tuple[ToolSchema, ...]) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.input_schema,
            },
        }
        for tool in tools
    ]


def _accumulate(calls: dict[int, _PendingToolCall], call_delta: Any) -> None:
    index = getattr(call_delta, "index", None)
    if index is None:
        index = len(calls)
    pending = calls.setdefault(index, _PendingToolCall())
    if getattr(call_delta, "id", None):
        pending.id = call_delta.id
    function = getattr(call_delta, "function", None)
    if function is not None:
        if getattr(function, "name", None):
            pending.name += function.name
        if getattr(function, "arguments", None):
            pending.arguments += function.arguments


def _to_invocation(index: int, call: _PendingToolCall) -> ToolInvocationBlock:
    try:
        arguments = json.loads(call.arguments) if call.arguments else {}
    except json.JSONDecodeError:
        arguments = {"raw_arguments": call.arguments}
    if not isinstance(arguments, dict):
        arguments = {"value": arguments}
    return ToolInvocationBlock(
        id=call.id or f"call_{index}",
        name=call.name or "unknown",
        arguments=arguments,
    )

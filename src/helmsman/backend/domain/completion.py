"""Completion request/response value objects exchanged with the backend."""

from typing import Literal

from pydantic import BaseModel, Field

from helmsman.conversation.domain.blocks import ContentBlock, TextBlock, ToolInvocationBlock
from helmsman.conversation.domain.turn import Turn
from helmsman.conversation.domain.usage import UsageMetrics
from helmsman.tools.domain.definition import ToolSchema

type StopReason = Literal["end_turn", "tool_use", "max_tokens", "stop_sequence", "error"]


class CompletionRequest(BaseModel, frozen=True):
    messages: tuple[Turn, ...]
    system_prompt: str = ""
    tools: tuple[ToolSchema, ...] = ()
    max_tokens: int = Field(default=8192, gt=0)


class CompletionResponse(BaseModel, frozen=True):
    """One structured assistant reply. `content` is appended to the conversation verbatim."""

    content: tuple[ContentBlock, ...]
    stop_reason: StopReason
    usage: UsageMetrics = UsageMetrics()

    def text(self) -> str:
        return "".join(b.text for b in self.content if isinstance(b, TextBlock))

    def tool_invocations(self) -> list[ToolInvocationBlock]:
        return [b for b in self.content if isinstance(b, ToolInvocationBlock)]

"""Turn value object — one role-tagged message in a conversation."""

from typing import Literal

from pydantic import BaseModel

from helmsman.conversation.domain.blocks import (
    ContentBlock,
    TextBlock,
    ToolInvocationBlock,
    ToolResultBlock,
)

type Role = Literal["user", "assistant"]


class Turn(BaseModel, frozen=True):
    """Immutable message: a role plus an ordered sequence of content blocks."""

    role: Role
    content: tuple[ContentBlock, ...]

    @classmethod
    def user_text(cls, text: str) -> "Turn":
        return cls(role="user", content=(TextBlock(text=text),))

    def text(self) -> str:
        """Concatenate every text block in order."""
        return "".join(b.text for b in self.content if isinstance(b, TextBlock))

    def tool_invocations(self) -> list[ToolInvocationBlock]:
        return [b for b in self.content if isinstance(b, ToolInvocationBlock)]

    def tool_results(self) -> list[ToolResultBlock]:
        return [b for b in self.content if isinstance(b, ToolResultBlock)]

"""Content blocks — the typed pieces a conversation turn is made of."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class TextBlock(BaseModel, frozen=True):
    """Plain text produced by the user or the assistant."""

    type: Literal["text"] = "text"
    text: str


class ToolInvocationBlock(BaseModel, frozen=True):
    """A tool call requested by the completion backend.

    The id is assigned by the backend and is unique within one assistant turn.
    """

    type: Literal["tool_invocation"] = "tool_invocation"
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolResultBlock(BaseModel, frozen=True):
    """The answer to exactly one ToolInvocationBlock, correlated by invocation_id."""

    type: Literal["tool_result"] = "tool_result"
    invocation_id: str = Field(min_length=1)
    content: str
    is_error: bool = False


# Pydantic selects the subtype from the `type` field when validating raw dicts.
type ContentBlock = Annotated[
    TextBlock | ToolInvocationBlock | ToolResultBlock,
    Field(discriminator="type"),
]

"""Value objects for what a capability server offers: tools, resources, prompts."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class McpTool(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(min_length=1)
    description: str = ""
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        alias="inputSchema",
    )


class McpResource(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    uri: str
    name: str = ""
    description: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")


class McpPromptArgument(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    description: str | None = None
    required: bool = False


class McpPrompt(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    description: str | None = None
    arguments: tuple[McpPromptArgument, ...] = ()


class McpResourceContent(BaseModel):
    """One entry of a `resources/read` result; exactly one of text/blob is set."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    uri: str
    mime_type: str | None = Field(default=None, alias="mimeType")
    text: str | None = None
    blob: str | None = None


class McpPromptMessage(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    role: str
    content: dict[str, Any]


class McpPromptResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    description: str | None = None
    messages: tuple[McpPromptMessage, ...] = ()


class McpServerTool(BaseModel, frozen=True):
    """A discovered tool together with the server that owns it."""

    server: str
    tool: McpTool


class McpServerState(BaseModel, frozen=True):
    """Snapshot of one configured server, as reported by the manager."""

    name: str
    status: str
    enabled: bool
    error: str | None = None
    tools: tuple[McpTool, ...] = ()
    resources: tuple[McpResource, ...] = ()
    prompts: tuple[McpPrompt, ...] = ()

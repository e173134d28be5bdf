"""MCP server configuration — servers are launched as subprocesses over stdio."""

from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


class McpServerConfig(BaseModel, frozen=True):
    """Launch settings for a stdio MCP server.

    `env` is overlaid on the parent process environment.
    """

    type: Literal["stdio"] = "stdio"
    command: str = Field(min_length=1)
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    cwd: str | None = None
    enabled: bool = True
    description: str = ""
    request_timeout_seconds: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0.0
    )

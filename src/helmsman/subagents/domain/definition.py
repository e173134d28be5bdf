"""SubAgentDefinition — an immutable recipe for a tool-restricted child agent."""

from typing import Literal

from pydantic import BaseModel, Field

from helmsman.permissions.domain.request import PermissionMode

type ExecutionMode = Literal["foreground", "background"]

DEFAULT_SUBAGENT_MAX_TURNS = 30


class SubAgentDefinition(BaseModel, frozen=True):
    """A named sub-agent.

    `model` overrides the session's model for this agent's runs.
    When `allow_tools` is set it is the complete tool set and `block_tools`
    is ignored; otherwise `block_tools` is subtracted from the base tools.
    """

    name: str = Field(min_length=1)
    description: str = ""
    system_prompt: str
    model: str | None = None
    allow_tools: tuple[str, ...] | None = None
    block_tools: tuple[str, ...] | None = None
    max_turns: int = Field(default=DEFAULT_SUBAGENT_MAX_TURNS, gt=0)
    execution_mode: ExecutionMode = "foreground"
    permission_mode: PermissionMode = "default"

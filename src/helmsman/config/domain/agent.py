"""Root agent configuration model."""

from pydantic import BaseModel, Field

DEFAULT_MAX_TURNS = 50


class AgentConfig(BaseModel, frozen=True):
    max_turns: int = Field(default=DEFAULT_MAX_TURNS, gt=0)
    system_prompt: str | None = None

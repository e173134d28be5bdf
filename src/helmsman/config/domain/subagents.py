"""Sub-agent configuration model."""

from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_MAX_RETAINED_TASKS = 100


class SubAgentsConfig(BaseModel, frozen=True):
    """`agent_dirs` replaces the default search path when set."""

    max_retained_tasks: int = Field(default=DEFAULT_MAX_RETAINED_TASKS, gt=0)
    agent_dirs: list[Path] | None = None

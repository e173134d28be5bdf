"""BackgroundTaskHandle — bookkeeping for one detached sub-agent run."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from helmsman.subagents.domain.result import SubAgentResult

type TaskStatus = Literal["running", "completed", "failed", "cancelled"]


@dataclass(eq=False)
class BackgroundTaskHandle:
    """Updated in place by the manager when the run finishes.

    `completion` resolves with the final result whether the run succeeded,
    failed or was cancelled.
    """

    id: str
    agent_name: str
    task: str
    started_at: datetime
    completion: asyncio.Future[SubAgentResult]
    status: TaskStatus = "running"
    result: SubAgentResult | None = None
    error: str | None = None
    completed_at: datetime | None = None
    runner: asyncio.Task[SubAgentResult] | None = field(default=None, repr=False)

    @property
    def is_complete(self) -> bool:
        return self.status != "running"

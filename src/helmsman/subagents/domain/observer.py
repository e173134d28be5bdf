"""SubAgentObserver port — lifecycle events of sub-agent runs and definitions."""

from typing import Protocol


class SubAgentObserver(Protocol):
    def subagent_started(self, agent: str, task_id: str | None) -> None: ...

    def subagent_completed(
        self, agent: str, task_id: str | None, success: bool, duration_ms: int
    ) -> None: ...

    def task_cancelled(self, task_id: str) -> None: ...

    def tasks_evicted(self, task_ids: list[str]) -> None: ...

    def definition_loaded(self, name: str, path: str) -> None: ...

    def definition_skipped(self, path: str, reason: str) -> None: ...

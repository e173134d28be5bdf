"""Structlog implementation of the SubAgentObserver port."""

import structlog


class StructlogSubAgentObserver:
    """Delegates sub-agent lifecycle events to structlog.

    Satisfies the SubAgentObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def subagent_started(self, agent: str, task_id: str | None) -> None:
        self._log.info("subagent.started", agent=agent, task_id=task_id)

    def subagent_completed(
        self, agent: str, task_id: str | None, success: bool, duration_ms: int
    ) -> None:
        self._log.info(
            "subagent.completed",
            agent=agent,
            task_id=task_id,
            success=success,
            duration_ms=duration_ms,
        )

    def task_cancelled(self, task_id: str) -> None:
        self._log.info("subagent.task_cancelled", task_id=task_id)

    def tasks_evicted(self, task_ids: list[str]) -> None:
        self._log.debug("subagent.tasks_evicted", task_ids=task_ids)

    def definition_loaded(self, name: str, path: str) -> None:
        self._log.debug("subagent.definition_loaded", name=name, path=path)

    def definition_skipped(self, path: str, reason: str) -> None:
        self._log.warning("subagent.definition_skipped", path=path, reason=reason)

"""Error types raised by the sub-agent manager."""

from helmsman.core.errors import HelmsmanError


class BackgroundTaskNotFoundError(HelmsmanError):
    """Raised when a task id is unknown or its handle was already evicted."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Failed to find background task: {task_id}")


class SubAgentNotFoundError(HelmsmanError):
    """Raised when a background run names an agent that is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Failed to find sub-agent: {name}")

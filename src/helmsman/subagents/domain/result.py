"""SubAgentResult — the only thing that crosses back from a sub-agent run."""

from pydantic import BaseModel, Field

from helmsman.conversation.domain.usage import UsageMetrics


class SubAgentResult(BaseModel, frozen=True):
    success: bool
    response: str = ""
    error: str | None = None
    usage: UsageMetrics = UsageMetrics()
    execution_time_ms: int = Field(default=0, ge=0)
    task_id: str | None = None

    @classmethod
    def failed(cls, error: str, execution_time_ms: int = 0) -> "SubAgentResult":
        return cls(success=False, error=error, execution_time_ms=execution_time_ms)

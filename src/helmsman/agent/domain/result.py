"""RunResult — what one orchestrator run hands back to its caller."""

from pydantic import BaseModel, Field

from helmsman.conversation.domain.turn import Turn
from helmsman.conversation.domain.usage import UsageMetrics


class RunResult(BaseModel, frozen=True):
    """Outcome of `AgentOrchestrator.run()`.

    Reaching the turn budget is not an error: `max_turns_reached` is set and
    `final_text` holds the last text the backend produced.
    """

    final_text: str
    conversation: tuple[Turn, ...]
    usage: UsageMetrics
    turns_taken: int = Field(ge=0)
    max_turns_reached: bool = False
    stopped: bool = False

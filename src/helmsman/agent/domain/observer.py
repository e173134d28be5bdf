"""AgentObserver port — domain events emitted by the turn loop."""

from typing import Protocol


class AgentObserver(Protocol):
    """Observer port for turn-loop events.

    Implementations may log to structlog, render to a terminal, or record for tests.
    `agent` names the orchestrator emitting the event ("main" or a sub-agent name).
    """

    def turn_started(self, agent: str, turn: int) -> None: ...

    def text_delta(self, agent: str, text: str) -> None: ...

    def tool_invoked(
        self, agent: str, tool: str, invocation_id: str, description: str
    ) -> None: ...

    def tool_completed(
        self,
        agent: str,
        tool: str,
        invocation_id: str,
        success: bool,
        duration_ms: int,
    ) -> None: ...

    def usage_reported(self, agent: str, input_tokens: int, output_tokens: int) -> None: ...

    def turn_completed(self, agent: str, turn: int, stop_reason: str) -> None: ...

    def run_completed(
        self, agent: str, turns_taken: int, max_turns_reached: bool
    ) -> None: ...

    def run_failed(self, agent: str, reason: str) -> None: ...

"""Structlog implementation of the AgentObserver port."""

import structlog


class StructlogAgentObserver:
    """Delegates turn-loop events to structlog.

    Satisfies the AgentObserver protocol structurally. Text deltas are not
    logged; the final text is carried by the run result.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def turn_started(self, agent: str, turn: int) -> None:
        self._log.debug("agent.turn_started", agent=agent, turn=turn)

    def text_delta(self, agent: str, text: str) -> None:
        return None

    def tool_invoked(
        self, agent: str, tool: str, invocation_id: str, description: str
    ) -> None:
        self._log.info(
            "agent.tool_invoked",
            agent=agent,
            tool=tool,
            invocation_id=invocation_id,
            description=description,
        )

    def tool_completed(
        self,
        agent: str,
        tool: str,
        invocation_id: str,
        success: bool,
        duration_ms: int,
    ) -> None:
        self._log.info(
            "agent.tool_completed",
            agent=agent,
            tool=tool,
            invocation_id=invocation_id,
            success=success,
            duration_ms=duration_ms,
        )

    def usage_reported(self, agent: str, input_tokens: int, output_tokens: int) -> None:
        self._log.debug(
            "agent.usage_reported",
            agent=agent,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    def turn_completed(self, agent: str, turn: int, stop_reason: str) -> None:
        self._log.debug(
            "agent.turn_completed", agent=agent, turn=turn, stop_reason=stop_reason
        )

    def run_completed(
        self, agent: str, turns_taken: int, max_turns_reached: bool
    ) -> None:
        self._log.info(
            "agent.run_completed",
            agent=agent,
            turns_taken=turns_taken,
            max_turns_reached=max_turns_reached,
        )

    def run_failed(self, agent: str, reason: str) -> None:
        self._log.error("agent.run_failed", agent=agent, reason=reason)

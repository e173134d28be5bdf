"""CompositeAgentObserver — fans out all events to a list of observers."""

from helmsman.agent.domain.observer import AgentObserver


class CompositeAgentObserver:
    """Delegates every observer event to each observer in order.

    Does NOT inherit from AgentObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[AgentObserver]) -> None:
        self._observers = observers

    def turn_started(self, agent: str, turn: int) -> None:
        for obs in self._observers:
            obs.turn_started(agent=agent, turn=turn)

    def text_delta(self, agent: str, text: str) -> None:
        for obs in self._observers:
            obs.text_delta(agent=agent, text=text)

    def tool_invoked(
        self, agent: str, tool: str, invocation_id: str, description: str
    ) -> None:
        for obs in self._observers:
            obs.tool_invoked(
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
        for obs in self._observers:
            obs.tool_completed(
                agent=agent,
                tool=tool,
                invocation_id=invocation_id,
                success=success,
                duration_ms=duration_ms,
            )

    def usage_reported(self, agent: str, input_tokens: int, output_tokens: int) -> None:
        for obs in self._observers:
            obs.usage_reported(
                agent=agent, input_tokens=input_tokens, output_tokens=output_tokens
            )

    def turn_completed(self, agent: str, turn: int, stop_reason: str) -> None:
        for obs in self._observers:
            obs.turn_completed(agent=agent, turn=turn, stop_reason=stop_reason)

    def run_completed(
        self, agent: str, turns_taken: int, max_turns_reached: bool
    ) -> None:
        for obs in self._observers:
            obs.run_completed(
                agent=agent,
                turns_taken=turns_taken,
                max_turns_reached=max_turns_reached,
            )

    def run_failed(self, agent: str, reason: str) -> None:
        for obs in self._observers:
            obs.run_failed(agent=agent, reason=reason)

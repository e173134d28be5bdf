"""AgentOrchestrator — the turn loop driving one conversation."""

import time
from collections.abc import Iterable

from helmsman.agent.domain.observer import AgentObserver
from helmsman.agent.domain.result import RunResult
from helmsman.backend.domain.backend import CompletionBackend
from helmsman.backend.domain.completion import CompletionRequest, CompletionResponse
from helmsman.config.domain.agent import DEFAULT_MAX_TURNS
from helmsman.conversation.domain.blocks import ToolInvocationBlock, ToolResultBlock
from helmsman.conversation.domain.conversation import ConversationState
from helmsman.conversation.domain.turn import Turn
from helmsman.conversation.domain.usage import UsageMetrics
from helmsman.permissions.application.gateway import ToolGateway
from helmsman.tools.domain.context import ToolContext

DEFAULT_MAX_TOKENS = 8192


class AgentOrchestrator:
    """Runs the request-completion / execute-tools loop for one conversation.

    Each iteration sends the whole conversation to the backend, appends the
    reply as an assistant turn, then runs every tool invocation of that reply
    sequentially through the gateway and appends the results as one user turn.
    The loop ends when the backend stops for any reason other than
    `tool_use`, when `max_turns` completions have been made, or when `stop()`
    was called.

    The conversation is owned here; callers only ever receive snapshots.
    """

    def __init__(
        self,
        backend: CompletionBackend,
        gateway: ToolGateway,
        observer: AgentObserver,
        system_prompt: str = "",
        max_turns: int = DEFAULT_MAX_TURNS,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        context: ToolContext | None = None,
        name: str = "main",
    ) -> None:
        self._backend = backend
        self._gateway = gateway
        self._observer = observer
        self._system_prompt = system_prompt
        self._max_turns = max_turns
        self._max_tokens = max_tokens
        self._context = context if context is not None else ToolContext()
        self._name = name

        self._conversation = ConversationState()
        self._usage = UsageMetrics()
        self._stop_requested = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def conversation(self) -> tuple[Turn, ...]:
        return self._conversation.snapshot()

    @property
    def usage(self) -> UsageMetrics:
        """Token totals across every run since construction or the last clear."""
        return self._usage

    def stop(self) -> None:
        """Ask the running loop to finish at its next iteration boundary."""
        self._stop_requested = True

    def clear_history(self) -> None:
        self._conversation.clear()
        self._usage = UsageMetrics()

    def replace_conversation(self, turns: Iterable[Turn]) -> None:
        """Install an externally prepared (e.g. compacted) conversation."""
        self._conversation.replace(turns)

    async def run(self, user_input: str, observer: AgentObserver | None = None) -> RunResult:
        """Run the loop for one user message.

        Raises:
            Whatever the backend raises; the failure is reported via `run_failed`
            first and the conversation keeps its last complete turn.
        """
        obs = observer if observer is not None else self._observer
        self._stop_requested = False
        self._conversation.append_user_text(user_input)

        turns_taken = 0
        final_text = ""
        run_usage = UsageMetrics()

        while turns_taken < self._max_turns:
            if self._stop_requested:
                return self._finish(obs, final_text, run_usage, turns_taken, stopped=True)

            turns_taken += 1
            obs.turn_started(agent=self._name, turn=turns_taken)
            response = await self._complete(obs)

            self._conversation.append_assistant(response.content)
            run_usage = run_usage.plus(response.usage)
            self._usage = self._usage.plus(response.usage)
            obs.usage_reported(
                agent=self._name,
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            )

            text = response.text()
            if text:
                final_text = text

            invocations = response.tool_invocations()
            if response.stop_reason != "tool_use" or not invocations:
                if invocations:
                    self._conversation.append_tool_results(
                        _unexecuted(
                            invocations,
                            reason=f"response ended with stop reason {response.stop_reason}",
                        )
                    )
                obs.turn_completed(
                    agent=self._name, turn=turns_taken, stop_reason=response.stop_reason
                )
                return self._finish(obs, final_text, run_usage, turns_taken)

            await self._execute_all(invocations, obs)
            obs.turn_completed(
                agent=self._name, turn=turns_taken, stop_reason=response.stop_reason
            )

        return self._finish(
            obs, final_text, run_usage, turns_taken, max_turns_reached=True
        )

    async def _complete(self, obs: AgentObserver) -> CompletionResponse:
        request = CompletionRequest(
            messages=self._conversation.snapshot(),
            system_prompt=self._system_prompt,
            tools=tuple(self._gateway.registry.schemas()),
            max_tokens=self._max_tokens,
        )

        def forward(text: str) -> None:
            obs.text_delta(agent=self._name, text=text)

        try:
            return await self._backend.complete(request, on_text=forward)
        except Exception as exc:
            obs.run_failed(agent=self._name, reason=str(exc) or type(exc).__name__)
            raise

    async def _execute_all(
        self, invocations: list[ToolInvocationBlock], obs: AgentObserver
    ) -> None:
        """Execute invocations in order and append their results as one turn.

        If execution is interrupted (cancellation or a failing permission
        prompt), the invocations that did not run are answered with error
        results before the exception propagates, so the conversation stays
        well-formed.
        """
        results: list[ToolResultBlock] = []
        try:
            for invocation in invocations:
                results.append(await self._execute(invocation, obs))
        except BaseException:
            remaining = invocations[len(results):]
            self._conversation.append_tool_results(
                results + _unexecuted(remaining, reason="interrupted")
            )
            raise
        self._conversation.append_tool_results(results)

    async def _execute(
        self, invocation: ToolInvocationBlock, obs: AgentObserver
    ) -> ToolResultBlock:
        tool = self._gateway.registry.get(invocation.name)
        description = (
            tool.describe_call(invocation.arguments) if tool is not None else invocation.name
        )
        obs.tool_invoked(
            agent=self._name,
            tool=invocation.name,
            invocation_id=invocation.id,
            description=description,
        )

        start = time.monotonic()
        result = await self._gateway.execute(invocation, self._context)
        obs.tool_completed(
            agent=self._name,
            tool=invocation.name,
            invocation_id=invocation.id,
            success=result.success,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return ToolResultBlock(
            invocation_id=invocation.id,
            content=result.as_result_content(),
            is_error=not result.success,
        )

    def _finish(
        self,
        obs: AgentObserver,
        final_text: str,
        usage: UsageMetrics,
        turns_taken: int,
        max_turns_reached: bool = False,
        stopped: bool = False,
    ) -> RunResult:
        obs.run_completed(
            agent=self._name,
            turns_taken=turns_taken,
            max_turns_reached=max_turns_reached,
        )
        return RunResult(
            final_text=final_text,
            conversation=self._conversation.snapshot(),
            usage=usage,
            turns_taken=turns_taken,
            max_turns_reached=max_turns_reached,
            stopped=stopped,
        )


def _unexecuted(
    invocations: list[ToolInvocationBlock], reason: str
) -> list[ToolResultBlock]:
    return [
        ToolResultBlock(
            invocation_id=invocation.id,
            content=f"Error: tool not executed: {reason}",
            is_error=True,
        )
        for invocation in invocations
    ]

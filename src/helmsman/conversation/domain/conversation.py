"""ConversationState — the ordered, invariant-checked list of turns."""

from collections.abc import Iterable, Sequence

from helmsman.conversation.domain.blocks import (
    ContentBlock,
    ToolInvocationBlock,
    ToolResultBlock,
)
from helmsman.conversation.domain.errors import ConversationInvariantError
from helmsman.conversation.domain.turn import Turn


class ConversationState:
    """Mutable aggregate owned by exactly one orchestrator.

    Every tool invocation in an assistant turn must be answered by the very
    next user turn, one result per invocation, same ids, same order. The
    append methods enforce this; callers outside the owner only ever see
    `snapshot()`.
    """

    def __init__(self, turns: Iterable[Turn] = ()) -> None:
        self._turns: list[Turn] = list(turns)

    def __len__(self) -> int:
        return len(self._turns)

    def snapshot(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def replace(self, turns: Iterable[Turn]) -> None:
        """Install a new turn sequence wholesale (e.g. after compaction)."""
        self._turns = list(turns)

    def clear(self) -> None:
        self._turns = []

    def pending_invocations(self) -> list[ToolInvocationBlock]:
        """Invocations in the last turn that still await their results."""
        if not self._turns or self._turns[-1].role != "assistant":
            return []
        return self._turns[-1].tool_invocations()

    def append_user_text(self, text: str) -> Turn:
        self._require_no_pending(action="append user text")
        turn = Turn.user_text(text)
        self._turns.append(turn)
        return turn

    def append_assistant(self, content: Sequence[ContentBlock]) -> Turn:
        self._require_no_pending(action="append assistant turn")
        turn = Turn(role="assistant", content=tuple(content))
        self._turns.append(turn)
        return turn

    def append_tool_results(self, results: Sequence[ToolResultBlock]) -> Turn:
        """Answer the pending invocations of the previous assistant turn."""
        expected = [inv.id for inv in self.pending_invocations()]
        received = [r.invocation_id for r in results]
        if not expected:
            raise ConversationInvariantError("no tool invocations are pending")
        if received != expected:
            raise ConversationInvariantError(
                f"tool results {received} do not match pending invocations {expected}"
            )
        turn = Turn(role="user", content=tuple(results))
        self._turns.append(turn)
        return turn

    def _require_no_pending(self, action: str) -> None:
        pending = self.pending_invocations()
        if pending:
            ids = ", ".join(inv.id for inv in pending)
            raise ConversationInvariantError(
                f"cannot {action} while tool invocations are unanswered: {ids}"
            )

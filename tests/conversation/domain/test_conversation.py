"""Tests for ConversationState and its tool-result pairing invariant."""

import pytest

from helmsman.conversation.domain.blocks import (
    TextBlock,
    ToolInvocationBlock,
    ToolResultBlock,
)
from helmsman.conversation.domain.conversation import ConversationState
from helmsman.conversation.domain.errors import ConversationInvariantError
from helmsman.conversation.domain.turn import Turn


def _invocation(call_id: str, name: str = "read_file") -> ToolInvocationBlock:
    return ToolInvocationBlock(id=call_id, name=name, arguments={"path": "a.txt"})


def _result(call_id: str, content: str = "ok") -> ToolResultBlock:
    return ToolResultBlock(invocation_id=call_id, content=content)


class TestAppend:
    """Turns are appended in order and snapshots are immutable copies."""

    def test_user_text_then_assistant(self) -> None:
        state = ConversationState()
        state.append_user_text("hello")
        state.append_assistant([TextBlock(text="hi")])

        turns = state.snapshot()
        assert [t.role for t in turns] == ["user", "assistant"]
        assert turns[0].text() == "hello"
        assert turns[1].text() == "hi"

    def test_snapshot_is_not_affected_by_later_appends(self) -> None:
        state = ConversationState()
        state.append_user_text("one")
        snapshot = state.snapshot()
        state.append_assistant([TextBlock(text="two")])

        assert len(snapshot) == 1
        assert len(state) == 2

    def test_tool_results_answer_pending_invocations(self) -> None:
        state = ConversationState()
        state.append_user_text("read two files")
        state.append_assistant([_invocation("c1"), _invocation("c2")])

        assert [inv.id for inv in state.pending_invocations()] == ["c1", "c2"]
        turn = state.append_tool_results([_result("c1"), _result("c2")])

        assert turn.role == "user"
        assert [r.invocation_id for r in turn.tool_results()] == ["c1", "c2"]
        assert state.pending_invocations() == []


class TestInvariant:
    """Every invocation is answered by the next turn, same ids in the same order."""

    def test_rejects_user_text_while_invocations_pending(self) -> None:
        state = ConversationState()
        state.append_user_text("go")
        state.append_assistant([_invocation("c1")])

        with pytest.raises(ConversationInvariantError, match="c1"):
            state.append_user_text("another message")

    def test_rejects_assistant_turn_while_invocations_pending(self) -> None:
        state = ConversationState()
        state.append_user_text("go")
        state.append_assistant([_invocation("c1")])

        with pytest.raises(ConversationInvariantError):
            state.append_assistant([TextBlock(text="skipping ahead")])

    def test_rejects_results_in_wrong_order(self) -> None:
        state = ConversationState()
        state.append_user_text("go")
        state.append_assistant([_invocation("c1"), _invocation("c2")])

        with pytest.raises(ConversationInvariantError):
            state.append_tool_results([_result("c2"), _result("c1")])

    def test_rejects_missing_result(self) -> None:
        state = ConversationState()
        state.append_user_text("go")
        state.append_assistant([_invocation("c1"), _invocation("c2")])

        with pytest.raises(ConversationInvariantError):
            state.append_tool_results([_result("c1")])

    def test_rejects_results_when_nothing_pending(self) -> None:
        state = ConversationState()
        state.append_user_text("go")
        state.append_assistant([TextBlock(text="done")])

        with pytest.raises(ConversationInvariantError, match="no tool invocations"):
            state.append_tool_results([_result("c1")])

    def test_failed_append_leaves_state_unchanged(self) -> None:
        state = ConversationState()
        state.append_user_text("go")
        state.append_assistant([_invocation("c1")])

        with pytest.raises(ConversationInvariantError):
            state.append_tool_results([_result("other")])

        assert len(state) == 2


class TestReplaceAndClear:
    def test_replace_installs_turns(self) -> None:
        state = ConversationState()
        state.append_user_text("old")
        state.replace([Turn.user_text("summary"), Turn(role="assistant", content=())])

        assert [t.text() for t in state.snapshot()] == ["summary", ""]

    def test_clear_empties_conversation(self) -> None:
        state = ConversationState([Turn.user_text("x")])
        state.clear()
        assert state.snapshot() == ()


class TestContentBlocks:
    def test_blocks_validate_from_raw_dicts_by_type(self) -> None:
        turn = Turn.model_validate(
            {
                "role": "assistant",
                "content": [
                    {"type": "text", "text": "checking"},
                    {"type": "tool_invocation", "id": "c1", "name": "glob", "arguments": {}},
                ],
            }
        )
        assert isinstance(turn.content[0], TextBlock)
        assert isinstance(turn.content[1], ToolInvocationBlock)
        assert turn.tool_invocations()[0].name == "glob"

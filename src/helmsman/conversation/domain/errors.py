"""Error types raised by the conversation domain."""

from helmsman.core.errors import HelmsmanError


class ConversationInvariantError(HelmsmanError):
    """Raised when an append would leave a tool invocation unanswered or mis-correlated."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to append turn: {reason}")

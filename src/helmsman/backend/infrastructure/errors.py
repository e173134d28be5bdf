"""Error types raised by completion backend infrastructure."""

from helmsman.core.errors import HelmsmanError

_RATE_LIMIT_STATUS = 429


class BackendInvocationError(HelmsmanError):
    """Raised when the completion backend call fails.

    Rate limits are not retried here; they are flagged retriable for the caller.
    """

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        self.reason = reason
        self.status_code = status_code
        super().__init__(
            f"Failed to get completion: {reason}",
            retriable=status_code == _RATE_LIMIT_STATUS,
        )

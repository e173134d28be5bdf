"""Base exception class for all helmsman-specific errors."""


class HelmsmanError(Exception):
    """Base class for all helmsman errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable

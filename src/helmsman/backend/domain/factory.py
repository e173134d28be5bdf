"""CompletionBackendFactory Protocol — builds a backend for a named model."""

from typing import Protocol

from helmsman.backend.domain.backend import CompletionBackend


class CompletionBackendFactory(Protocol):
    """Constructs a backend that calls `model`, with every other setting
    taken from the session's backend configuration.
    """

    def create(self, model: str) -> CompletionBackend: ...

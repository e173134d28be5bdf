"""CompletionBackend port — produces one assistant reply per call."""

from collections.abc import Callable
from typing import Protocol

from helmsman.backend.domain.completion import CompletionRequest, CompletionResponse

type TextCallback = Callable[[str], None]


class CompletionBackend(Protocol):
    """Implementations stream text through `on_text` as it arrives and return
    the complete structured response once the backend has finished.

    Raises on transport or provider failure; never retries internally.
    """

    @property
    def model(self) -> str: ...

    async def complete(
        self, request: CompletionRequest, on_text: TextCallback | None = None
    ) -> CompletionResponse: ...

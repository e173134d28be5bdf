"""BackendObserver port — domain events emitted around completion calls."""

from typing import Protocol


class BackendObserver(Protocol):
    def completion_started(self, model: str, messages: int, tools: int) -> None: ...

    def completion_completed(
        self,
        model: str,
        stop_reason: str,
        input_tokens: int,
        output_tokens: int,
        duration_ms: int,
    ) -> None: ...

    def completion_failed(
        self, model: str, reason: str, status_code: int | None
    ) -> None: ...

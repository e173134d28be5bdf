"""Structlog implementation of the BackendObserver port."""

import structlog


class StructlogBackendObserver:
    """Delegates backend domain events to structlog.

    Satisfies the BackendObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def completion_started(self, model: str, messages: int, tools: int) -> None:
        self._log.debug(
            "backend.completion_started", model=model, messages=messages, tools=tools
        )

    def completion_completed(
        self,
        model: str,
        stop_reason: str,
        input_tokens: int,
        output_tokens: int,
        duration_ms: int,
    ) -> None:
        self._log.info(
            "backend.completion_completed",
            model=model,
            stop_reason=stop_reason,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            duration_ms=duration_ms,
        )

    def completion_failed(
        self, model: str, reason: str, status_code: int | None
    ) -> None:
        self._log.error(
            "backend.completion_failed",
            model=model,
            reason=reason,
            status_code=status_code,
        )

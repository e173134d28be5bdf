"""LiteLLMBackendFactory — constructs LiteLLMCompletionBackend instances."""

from helmsman.backend.domain.backend import CompletionBackend
from helmsman.backend.domain.observer import BackendObserver
from helmsman.backend.infrastructure.litellm_backend import LiteLLMCompletionBackend
from helmsman.config.domain.backend import BackendConfig


class LiteLLMBackendFactory:
    """Creates backends that share one configuration but may differ in model."""

    def __init__(self, config: BackendConfig, observer: BackendObserver) -> None:
        self._config = config
        self._observer = observer

    def create(self, model: str) -> CompletionBackend:
        return LiteLLMCompletionBackend(
            config=self._config.model_copy(update={"model": model}),
            observer=self._observer,
        )

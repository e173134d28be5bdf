"""FakeConfigObserver — records config domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ConfigLoadedEvent:
    path: str
    model: str
    mcp_servers: int


class FakeConfigObserver:
    """Records all emitted config events as typed frozen dataclasses."""

    def __init__(self) -> None:
        self._loaded: list[ConfigLoadedEvent] = []
        self._auto_mode_warnings = 0

    @property
    def loaded(self) -> list[ConfigLoadedEvent]:
        return self._loaded

    @property
    def auto_mode_warnings(self) -> int:
        return self._auto_mode_warnings

    def config_loaded(self, path: str, model: str, mcp_servers: int) -> None:
        self._loaded.append(ConfigLoadedEvent(path=path, model=model, mcp_servers=mcp_servers))

    def config_auto_mode_warning(self) -> None:
        self._auto_mode_warnings += 1

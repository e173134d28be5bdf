"""Observer port for the config domain — defines events in domain language."""

from typing import Protocol


class ConfigObserver(Protocol):
    def config_loaded(self, path: str, model: str, mcp_servers: int) -> None: ...

    def config_auto_mode_warning(self) -> None: ...

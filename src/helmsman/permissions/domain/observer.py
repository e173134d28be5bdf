"""PermissionObserver port — domain events emitted by the permission gateway."""

from typing import Protocol


class PermissionObserver(Protocol):
    """Observer port for permission domain events.

    Implementations may log to structlog or record for tests.
    """

    def permission_granted(self, tool: str, key: str, source: str) -> None: ...

    def permission_denied(self, tool: str, key: str, source: str) -> None: ...

    def permission_prompted(self, tool: str, description: str) -> None: ...

    def permission_rule_added(
        self, tool_pattern: str, argument_pattern: str | None, scope: str
    ) -> None: ...

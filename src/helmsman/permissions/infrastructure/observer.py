"""Structlog implementation of the PermissionObserver port."""

import structlog


class StructlogPermissionObserver:
    """Delegates permission domain events to structlog.

    Satisfies the PermissionObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def permission_granted(self, tool: str, key: str, source: str) -> None:
        self._log.debug("permission.granted", tool=tool, key=key, source=source)

    def permission_denied(self, tool: str, key: str, source: str) -> None:
        self._log.info("permission.denied", tool=tool, key=key, source=source)

    def permission_prompted(self, tool: str, description: str) -> None:
        self._log.debug("permission.prompted", tool=tool, description=description)

    def permission_rule_added(
        self, tool_pattern: str, argument_pattern: str | None, scope: str
    ) -> None:
        self._log.info(
            "permission.rule_added",
            tool_pattern=tool_pattern,
            argument_pattern=argument_pattern,
            scope=scope,
        )

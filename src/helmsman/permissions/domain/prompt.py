"""PermissionPrompt port — asks the user whether a tool call may run."""

from typing import Protocol

from helmsman.permissions.domain.request import PermissionAnswer, PermissionRequest


class PermissionPrompt(Protocol):
    """Implemented by the presentation layer.

    A plain bool is accepted as a YES/NO answer.
    """

    async def request_permission(
        self, request: PermissionRequest
    ) -> PermissionAnswer | bool: ...

"""Permission configuration model."""

from pathlib import Path

from pydantic import BaseModel, Field

from helmsman.permissions.domain.request import PermissionMode
from helmsman.permissions.domain.rule import PermissionRule


class PermissionsConfig(BaseModel, frozen=True):
    """Gateway mode plus permanent rules.

    Rules listed here come first; rules persisted in `rules_file` follow them.
    """

    mode: PermissionMode = "default"
    require_permission_for_safe_tools: bool = False
    rules: list[PermissionRule] = Field(default_factory=list)
    rules_file: Path | None = None

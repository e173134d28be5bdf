"""Error types raised by permissions infrastructure."""

from pathlib import Path

from helmsman.core.errors import HelmsmanError


class PermissionRuleStoreError(HelmsmanError):
    """Raised when the permanent rule file cannot be read, parsed or written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to access permission rules at {path}: {reason}")

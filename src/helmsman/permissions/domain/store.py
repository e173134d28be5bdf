"""PermissionRuleStore port — durable storage for permanent rules."""

from collections.abc import Sequence
from typing import Protocol

from helmsman.permissions.domain.rule import PermissionRule


class PermissionRuleStore(Protocol):
    def load(self) -> list[PermissionRule]: ...

    def save(self, rules: Sequence[PermissionRule]) -> None: ...

"""YAML-backed store for permanent permission rules."""

from collections.abc import Sequence
from pathlib import Path

import yaml
from pydantic import ValidationError

from helmsman.permissions.domain.rule import PermissionRule
from helmsman.permissions.infrastructure.errors import PermissionRuleStoreError


class YamlPermissionRuleStore:
    """Reads and writes a `rules:` list in a YAML file.

    A missing file is an empty rule set. Satisfies the PermissionRuleStore
    protocol structurally.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[PermissionRule]:
        if not self._path.exists():
            return []
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise PermissionRuleStoreError(path=self._path, reason=str(exc)) from exc

        if not isinstance(raw, dict):
            raise PermissionRuleStoreError(
                path=self._path, reason="top level must be a mapping"
            )
        try:
            return [PermissionRule.model_validate(item) for item in raw.get("rules") or []]
        except ValidationError as exc:
            raise PermissionRuleStoreError(path=self._path, reason=str(exc)) from exc

    def save(self, rules: Sequence[PermissionRule]) -> None:
        data = {"rules": [rule.model_dump(exclude_none=True) for rule in rules]}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("w", encoding="utf-8") as fh:
                yaml.safe_dump(data, fh, sort_keys=False)
        except OSError as exc:
            raise PermissionRuleStoreError(path=self._path, reason=str(exc)) from exc

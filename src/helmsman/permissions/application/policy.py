"""PermissionPolicy — permanent rules plus the per-session grant table."""

import asyncio
import json
from collections.abc import Iterable, Sequence
from typing import Any

from helmsman.permissions.domain.observer import PermissionObserver
from helmsman.permissions.domain.rule import PermissionRule
from helmsman.permissions.domain.store import PermissionRuleStore


def session_key(tool_name: str, key_arguments: dict[str, Any]) -> str:
    """Format a session-grant key, e.g. 'bash:{"command": "git"}'."""
    return f"{tool_name}:{json.dumps(key_arguments, sort_keys=True, default=str)}"


class PermissionPolicy:
    """Consent state shared by every gateway of one session.

    Rules are permanent. Configured rules come first, then those loaded from
    the optional store; only rules not present in the configuration are
    saved back to the store.
    Session grants live only as long as this object and are never persisted.
    Concurrent agents share one policy; `prompt_lock` serialises prompting
    per session key so a key is asked about at most once.
    """

    def __init__(
        self,
        observer: PermissionObserver,
        rules: Iterable[PermissionRule] = (),
        store: PermissionRuleStore | None = None,
    ) -> None:
        self._observer = observer
        self._store = store
        self._config_rules: tuple[PermissionRule, ...] = tuple(rules)
        self._rules: list[PermissionRule] = list(self._config_rules)
        if store is not None:
            self._rules.extend(store.load())
        self._session: dict[str, bool] = {}
        self._prompt_locks: dict[str, asyncio.Lock] = {}

    @property
    def rules(self) -> Sequence[PermissionRule]:
        return tuple(self._rules)

    def add_rule(self, rule: PermissionRule) -> None:
        """Append a permanent rule, replacing any rule with the same patterns."""
        self._rules = [
            r
            for r in self._rules
            if (r.tool_pattern, r.argument_pattern)
            != (rule.tool_pattern, rule.argument_pattern)
        ]
        self._rules.append(rule)
        self._persist()
        self._observer.permission_rule_added(
            tool_pattern=rule.tool_pattern,
            argument_pattern=rule.argument_pattern,
            scope=rule.scope,
        )

    def remove_rule(self, tool_pattern: str, argument_pattern: str | None = None) -> bool:
        before = len(self._rules)
        self._rules = [
            r
            for r in self._rules
            if (r.tool_pattern, r.argument_pattern) != (tool_pattern, argument_pattern)
        ]
        removed = len(self._rules) != before
        if removed:
            self._persist()
        return removed

    def match_rule(self, tool_name: str, arguments: dict[str, Any]) -> PermissionRule | None:
        for rule in self._rules:
            if rule.matches(tool_name, arguments):
                return rule
        return None

    def session_decision(self, key: str) -> bool | None:
        return self._session.get(key)

    def record_session(self, key: str, granted: bool) -> None:
        self._session[key] = granted

    def prompt_lock(self, key: str) -> asyncio.Lock:
        """The lock held while a prompt for this key is open."""
        lock = self._prompt_locks.get(key)
        if lock is None:
            lock = self._prompt_locks[key] = asyncio.Lock()
        return lock

    def session_grants(self) -> dict[str, bool]:
        return dict(self._session)

    def clear_session(self) -> None:
        self._session.clear()

    def _persist(self) -> None:
        if self._store is not None:
            self._store.save(
                [r for r in self._rules if r not in self._config_rules]
            )

"""PermissionRule — a permanent allow/deny decision for matching tool calls."""

import fnmatch
import json
import re
from typing import Any, Literal

from pydantic import BaseModel, Field

type RuleScope = Literal["always", "never"]


def serialize_arguments(arguments: dict[str, Any]) -> str:
    """The text argument patterns are matched against."""
    return json.dumps(arguments, sort_keys=True, default=str)


class PermissionRule(BaseModel, frozen=True):
    """A permanent rule. Rules are checked in order and the first match wins.

    tool_pattern is an exact tool name or a shell-style wildcard ("*", "mcp_*").
    argument_pattern, when set, is a regex searched in the JSON-serialised
    arguments; a pattern that does not compile never matches.
    """

    tool_pattern: str = Field(min_length=1)
    argument_pattern: str | None = None
    scope: RuleScope
    description: str = ""

    def matches(self, tool_name: str, arguments: dict[str, Any]) -> bool:
        if not fnmatch.fnmatchcase(tool_name, self.tool_pattern):
            return False
        if self.argument_pattern is None:
            return True
        try:
            regex = re.compile(self.argument_pattern)
        except re.error:
            return False
        return regex.search(serialize_arguments(arguments)) is not None

    @classmethod
    def for_key(
        cls,
        tool_name: str,
        key_arguments: dict[str, Any],
        scope: RuleScope,
        description: str = "",
    ) -> "PermissionRule":
        """Build a rule covering the same calls as a session-grant key.

        String key values match as a prefix ending at a quote or whitespace,
        so a key of {"command": "git"} covers "git status" but not "gitk".
        """
        parts: list[str] = []
        for name, value in sorted(key_arguments.items()):
            if value is None or value == "":
                continue
            encoded_value = json.dumps(value, default=str)
            if isinstance(value, str):
                encoded_value = encoded_value[:-1]
                parts.append(
                    rf'{re.escape(json.dumps(name))}:\s*{re.escape(encoded_value)}(?:"|\s)'
                )
            else:
                parts.append(rf"{re.escape(json.dumps(name))}:\s*{re.escape(encoded_value)}")

        argument_pattern = "".join(f"(?=.*{part})" for part in parts) or None
        return cls(
            tool_pattern=tool_name,
            argument_pattern=argument_pattern,
            scope=scope,
            description=description,
        )

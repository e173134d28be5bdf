"""ToolDefinition — a tool's handler together with its schema and permission hooks.

Each tool declares its own permission-key function and call formatter next
to its handler, so nothing else has to switch on tool names.
"""

import json
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from helmsman.tools.domain.context import ToolContext
from helmsman.tools.domain.result import ToolExecutionResult

type Arguments = dict[str, Any]
type ToolHandler = Callable[
    [Arguments, ToolContext],
    Awaitable[ToolExecutionResult] | ToolExecutionResult,
]
type PermissionKeyFn = Callable[[Arguments], dict[str, Any]]
type DescribeFn = Callable[[Arguments], str]

type ParameterType = Literal["string", "number", "integer", "boolean", "array", "object"]

_PREVIEW_CHARS = 100


@dataclass(frozen=True)
class ToolParameter:
    type: ParameterType
    description: str
    required: bool = False
    enum: tuple[str, ...] | None = None
    default: Any = None


@dataclass(frozen=True)
class ToolSchema:
    """The provider-facing description of a tool: name, description, JSON schema."""

    name: str
    description: str
    input_schema: dict[str, Any]


def object_schema(parameters: Mapping[str, ToolParameter]) -> dict[str, Any]:
    """Build a JSON-schema `object` from a parameter map."""
    properties: dict[str, Any] = {}
    required: list[str] = []
    for name, param in parameters.items():
        prop: dict[str, Any] = {"type": param.type, "description": param.description}
        if param.enum is not None:
            prop["enum"] = list(param.enum)
        if param.default is not None:
            prop["default"] = param.default
        properties[name] = prop
        if param.required:
            required.append(name)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def no_permission_key(arguments: Arguments) -> dict[str, Any]:
    return {}


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    handler: ToolHandler
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )
    read_only: bool = False
    permission_key: PermissionKeyFn = no_permission_key
    describe: DescribeFn | None = None

    def schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema,
        )

    def describe_call(self, arguments: Arguments) -> str:
        """Human-readable one-liner used in permission prompts and logs."""
        if self.describe is not None:
            return self.describe(arguments)
        preview = json.dumps(arguments, default=str)[:_PREVIEW_CHARS]
        return f"{self.name}: {preview}"

"""Loads custom sub-agents from `<dir>/<agent>/AGENT.md` files."""

import re
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError

from helmsman.subagents.domain.definition import SubAgentDefinition
from helmsman.subagents.domain.observer import SubAgentObserver

AGENT_FILE = "AGENT.md"

_FRONT_MATTER = re.compile(r"\A---\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

# Front-matter key -> SubAgentDefinition field.
_KEYS: dict[str, str] = {
    "name": "name",
    "description": "description",
    "model": "model",
    "maxTurns": "max_turns",
    "permissionMode": "permission_mode",
    "allowTools": "allow_tools",
    "blockTools": "block_tools",
    "executionMode": "execution_mode",
}
_LIST_FIELDS = {"allow_tools", "block_tools"}


def parse_agent_md(default_name: str, content: str) -> SubAgentDefinition:
    """Build a definition from an AGENT.md body.

    The optional front-matter is a block of `key: value` lines between `---`
    fences; everything after it is the system prompt. Unknown keys are
    ignored. Tool lists are comma-separated. A `provider` key is prefixed to
    a bare `model` name, giving LiteLLM's "provider/model" form.

    Raises:
        pydantic.ValidationError: if a value has the wrong type or is out of range.
    """
    match = _FRONT_MATTER.match(content)
    if match is None:
        return SubAgentDefinition(
            name=default_name,
            description=f"Custom agent: {default_name}",
            system_prompt=content.strip(),
        )

    fields: dict[str, object] = {"name": default_name}
    provider = ""
    for line in match.group(1).splitlines():
        key, sep, value = line.partition(":")
        if key.strip() == "provider":
            provider = value.strip()
            continue
        field = _KEYS.get(key.strip())
        if not sep or field is None:
            continue
        value = value.strip()
        if field in _LIST_FIELDS:
            fields[field] = tuple(t.strip() for t in value.split(",") if t.strip())
        elif field == "name":
            fields[field] = value or default_name
        elif field == "model":
            fields[field] = value or None
        else:
            fields[field] = value

    model = fields.get("model")
    if provider and isinstance(model, str) and "/" not in model:
        fields["model"] = f"{provider}/{model}"

    fields["system_prompt"] = content[match.end():].strip()
    return SubAgentDefinition.model_validate(fields)


def load_agent_definitions(
    directories: Iterable[Path], observer: SubAgentObserver
) -> list[SubAgentDefinition]:
    """Read every `<dir>/<agent>/AGENT.md`, in directory order.

    Later directories come later in the result, so registering the list in
    order lets project agents override user agents of the same name. Missing
    directories are skipped; unreadable or invalid files are reported to the
    observer and skipped.
    """
    definitions: list[SubAgentDefinition] = []
    for directory in directories:
        if not directory.is_dir():
            continue
        for agent_dir in sorted(p for p in directory.iterdir() if p.is_dir()):
            agent_file = agent_dir / AGENT_FILE
            if not agent_file.is_file():
                continue
            try:
                definition = parse_agent_md(
                    agent_dir.name, agent_file.read_text(encoding="utf-8")
                )
            except (OSError, UnicodeDecodeError, ValidationError) as exc:
                observer.definition_skipped(path=str(agent_file), reason=str(exc))
                continue
            observer.definition_loaded(name=definition.name, path=str(agent_file))
            definitions.append(definition)
    return definitions


def default_agent_dirs(cwd: Path, home: Path | None = None) -> list[Path]:
    """User agents first, then project agents."""
    home_dir = home if home is not None else Path.home()
    return [home_dir / ".helmsman" / "agents", cwd / ".helmsman" / "agents"]

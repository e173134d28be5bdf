"""Built-in sub-agents: `explore` at three speeds and `plan`."""

from helmsman.subagents.domain.definition import SubAgentDefinition
from helmsman.tools.infrastructure.builtin import READ_ONLY_TOOL_NAMES

_EXPLORE_PROMPT = """\
You are an exploration agent. Your job is to search a codebase and explain \
what you find.

## Tools
- read_file: read file contents
- glob: find files by pattern, e.g. **/*.py
- grep: search file contents for a pattern
- list_dir: list a directory

## Approach
1. Start broad, then narrow down.
2. Use glob to locate files by name or extension.
3. Use grep to locate specific code.
4. Read only the files you need.

## Answer
- List the relevant files.
- Summarise the patterns or implementations you found.
- Answer the question that was asked.

You are read-only and cannot modify files."""

_SPEED_ADDENDA: dict[str, str] = {
    "quick": """

## Speed: quick
- Use at most five tool calls.
- Check the most likely locations first.
- Partial findings are acceptable.""",
    "medium": """

## Speed: medium
- Use up to fifteen tool calls.
- Look in more than one candidate location.""",
    "thorough": """

## Speed: thorough
- Be comprehensive and search every relevant directory.
- Cross-reference files before concluding.""",
}

_EXPLORE_MAX_TURNS: dict[str, int] = {"quick": 5, "medium": 15, "thorough": 50}

_PLAN_PROMPT = """\
You are a planning agent. Research the codebase and produce an \
implementation plan for the requested feature, fix or refactor.

## Tools
- read_file, glob, grep, list_dir

## Approach
1. Understand the existing architecture first.
2. Identify every affected file and component.
3. Consider edge cases and risks.
4. Lay out the work step by step.

## Answer format

### Analysis
Current state and the relevant existing patterns.

### Implementation steps
A numbered list.

### Files to change
Each file with the change it needs.

### Considerations
Edge cases, risks and how to test.

You are read-only and cannot modify files."""


def explore_definition(speed: str = "medium", name: str | None = None) -> SubAgentDefinition:
    return SubAgentDefinition(
        name=name or f"explore:{speed}",
        description=f"Read-only codebase search ({speed})",
        system_prompt=_EXPLORE_PROMPT + _SPEED_ADDENDA[speed],
        allow_tools=READ_ONLY_TOOL_NAMES,
        max_turns=_EXPLORE_MAX_TURNS[speed],
        permission_mode="auto",
    )


def plan_definition() -> SubAgentDefinition:
    return SubAgentDefinition(
        name="plan",
        description="Researches the codebase and writes an implementation plan",
        system_prompt=_PLAN_PROMPT,
        allow_tools=READ_ONLY_TOOL_NAMES,
        max_turns=30,
        permission_mode="auto",
    )


def builtin_definitions() -> list[SubAgentDefinition]:
    return [
        explore_definition("medium", name="explore"),
        explore_definition("quick"),
        explore_definition("medium"),
        explore_definition("thorough"),
        plan_definition(),
    ]

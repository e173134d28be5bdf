"""Shell tool — runs a command through bash in the context's working directory."""

import asyncio
from typing import Any

from helmsman.tools.domain.context import ToolContext
from helmsman.tools.domain.definition import ToolDefinition, ToolParameter, object_schema
from helmsman.tools.domain.result import ToolExecutionResult

_DEFAULT_TIMEOUT_MS = 120_000
_MAX_OUTPUT_CHARS = 30_000


def first_command_word(arguments: dict[str, Any]) -> dict[str, Any]:
    command = str(arguments.get("command") or "")
    words = command.split()
    return {"command": words[0] if words else ""}


async def run_bash(arguments: dict[str, Any], context: ToolContext) -> ToolExecutionResult:
    command = arguments.get("command")
    if not isinstance(command, str) or not command.strip():
        return ToolExecutionResult.failure("'command' must be a non-empty string")
    timeout_ms = int(arguments.get("timeout") or _DEFAULT_TIMEOUT_MS)

    try:
        proc = await asyncio.create_subprocess_exec(
            "bash",
            "-c",
            command,
            cwd=str(context.cwd),
            env=dict(context.env),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        return ToolExecutionResult.failure(str(exc))

    try:
        stdout, stderr = await asyncio.wait_for(
            proc.communicate(), timeout=timeout_ms / 1000
        )
    except TimeoutError:
        proc.kill()
        await proc.wait()
        return ToolExecutionResult.failure(f"Command timed out after {timeout_ms}ms")
    except asyncio.CancelledError:
        proc.kill()
        await proc.wait()
        raise

    output = stdout.decode(errors="replace")
    if stderr:
        output += f"\nSTDERR:\n{stderr.decode(errors='replace')}"
    output = output[:_MAX_OUTPUT_CHARS]

    if proc.returncode != 0:
        return ToolExecutionResult.failure(f"Exit code: {proc.returncode}", output=output)
    return ToolExecutionResult.ok(output)


BASH_TOOL = ToolDefinition(
    name="bash",
    description="Execute a bash command. Use for git, package managers and other CLI work.",
    handler=run_bash,
    input_schema=object_schema(
        {
            "command": ToolParameter("string", "The command to execute", required=True),
            "timeout": ToolParameter(
                "integer",
                "Timeout in milliseconds",
                default=_DEFAULT_TIMEOUT_MS,
            ),
        }
    ),
    permission_key=first_command_word,
    describe=lambda args: f"Run command: {args.get('command')}",
)

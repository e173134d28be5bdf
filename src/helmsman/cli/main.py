"""CLI entrypoint for helmsman — typer app with `ask` and `agents` commands."""

import asyncio
import logging
import sys
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.table import Table

from helmsman.agent.domain.observer import AgentObserver
from helmsman.agent.domain.result import RunResult
from helmsman.agent.infrastructure.composite_observer import CompositeAgentObserver
from helmsman.agent.infrastructure.console_observer import ConsoleAgentObserver
from helmsman.agent.infrastructure.observer import StructlogAgentObserver
from helmsman.backend.infrastructure.factory import LiteLLMBackendFactory
from helmsman.backend.infrastructure.observer import StructlogBackendObserver
from helmsman.cli.permission_prompt import ConsolePermissionPrompt
from helmsman.config.domain.backend import BackendConfig
from helmsman.config.domain.config import HelmsmanConfig
from helmsman.config.infrastructure.observer import StructlogConfigObserver
from helmsman.config.infrastructure.yaml_loader import YamlConfigLoader
from helmsman.core.errors import HelmsmanError
from helmsman.mcp.infrastructure.observer import StructlogMcpObserver
from helmsman.permissions.infrastructure.observer import StructlogPermissionObserver
from helmsman.session.application.session import SessionObservers
from helmsman.session.infrastructure.factory import create_session
from helmsman.subagents.infrastructure.observer import StructlogSubAgentObserver

app = typer.Typer(add_completion=False)

DEFAULT_CONFIG_PATH = Path("helmsman.yaml")
DEFAULT_MODEL = "anthropic/claude-sonnet-4-5"


def _configure_structlog(log_format: str, verbose: bool) -> None:
    """Configure structlog based on the requested format. Logs go to stderr."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.WARNING
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _load_config(config_path: Path | None, max_turns: int | None) -> HelmsmanConfig:
    """Load the YAML config, or fall back to defaults when no file exists.

    An explicitly given path must exist; the default path is optional.
    """
    path = config_path if config_path is not None else DEFAULT_CONFIG_PATH
    if config_path is None and not path.exists():
        config = HelmsmanConfig(backend=BackendConfig(model=DEFAULT_MODEL))
    else:
        config = YamlConfigLoader(observer=StructlogConfigObserver()).load(path=path)

    if max_turns is not None:
        config = config.model_copy(
            update={"agent": config.agent.model_copy(update={"max_turns": max_turns})}
        )
    return config


async def _ask(config: HelmsmanConfig, prompt: str, console: Console, stream: bool) -> RunResult:
    observers: list[AgentObserver] = [StructlogAgentObserver()]
    if stream:
        observers.append(ConsoleAgentObserver(console=console))

    backends = LiteLLMBackendFactory(
        config=config.backend, observer=StructlogBackendObserver()
    )
    session = create_session(
        config=config,
        backend=backends.create(config.backend.model),
        observers=SessionObservers(
            agent=CompositeAgentObserver(observers=observers),
            permission=StructlogPermissionObserver(),
            subagent=StructlogSubAgentObserver(),
        ),
        mcp_observer=StructlogMcpObserver(),
        prompt=ConsolePermissionPrompt(console=console),
        backend_factory=backends,
    )
    async with session:
        return await session.ask(prompt)


@app.command()
def ask(
    prompt: str = typer.Argument(..., help="What to ask the agent"),
    config_path: Path | None = typer.Option(
        None, "--config", "-c", help="Path to helmsman YAML config"
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
    max_turns: int | None = typer.Option(
        None, "--max-turns", min=1, help="Override the agent's turn budget"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug events"),
) -> None:
    """Run the agent once on PROMPT, streaming its answer."""
    try:
        _configure_structlog(log_format=log_format, verbose=verbose)
        try:
            config = _load_config(config_path=config_path, max_turns=max_turns)
        except HelmsmanError as exc:
            typer.echo(str(exc))
            raise typer.Exit(code=1) from exc

        console = Console()
        stream = log_format != "json"
        result = asyncio.run(_ask(config=config, prompt=prompt, console=console, stream=stream))
        if not stream:
            typer.echo(result.final_text)

    except typer.Exit:
        raise
    except KeyboardInterrupt:
        typer.echo("Interrupted.")
        sys.exit(1)
    except HelmsmanError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)


@app.command()
def agents(
    config_path: Path | None = typer.Option(
        None, "--config", "-c", help="Path to helmsman YAML config"
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """List the built-in and custom sub-agents."""
    _configure_structlog(log_format=log_format, verbose=False)
    try:
        config = _load_config(config_path=config_path, max_turns=None)
    except HelmsmanError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc

    backends = LiteLLMBackendFactory(
        config=config.backend, observer=StructlogBackendObserver()
    )
    session = create_session(
        config=config,
        backend=backends.create(config.backend.model),
        observers=SessionObservers(
            agent=StructlogAgentObserver(),
            permission=StructlogPermissionObserver(),
            subagent=StructlogSubAgentObserver(),
        ),
        mcp_observer=StructlogMcpObserver(),
        backend_factory=backends,
    )

    table = Table(title="Sub-agents")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Model")
    table.add_column("Max turns", justify="right")
    table.add_column("Tools")
    for definition in session.subagents.definitions():
        registry = session.subagents.registry_for(definition)
        table.add_row(
            definition.name,
            definition.description,
            definition.model or config.backend.model,
            str(definition.max_turns),
            ", ".join(registry.names()),
        )
    Console().print(table)


if __name__ == "__main__":
    app()

"""create_session — wires a Session from configuration with the default adapters."""

from pathlib import Path

from helmsman.agent.infrastructure.system_prompt import build_system_prompt
from helmsman.backend.domain.backend import CompletionBackend
from helmsman.backend.domain.factory import CompletionBackendFactory
from helmsman.config.domain.config import HelmsmanConfig
from helmsman.mcp.domain.observer import McpObserver
from helmsman.mcp.infrastructure.manager import McpServerManager
from helmsman.permissions.domain.prompt import PermissionPrompt
from helmsman.permissions.infrastructure.yaml_store import YamlPermissionRuleStore
from helmsman.session.application.session import Session, SessionObservers
from helmsman.subagents.infrastructure.agent_md import (
    default_agent_dirs,
    load_agent_definitions,
)
from helmsman.subagents.infrastructure.builtin import builtin_definitions
from helmsman.tools.infrastructure.builtin import create_base_registry


def create_session(
    config: HelmsmanConfig,
    backend: CompletionBackend,
    observers: SessionObservers,
    mcp_observer: McpObserver,
    prompt: PermissionPrompt | None = None,
    cwd: Path | None = None,
    home: Path | None = None,
    backend_factory: CompletionBackendFactory | None = None,
) -> Session:
    """Build a Session with the local tools, built-in and custom sub-agents,
    the configured capability servers and, when configured, a YAML rule store.
    `backend_factory` serves sub-agents that name their own model.
    """
    working_dir = cwd if cwd is not None else Path.cwd()

    agent_dirs = config.subagents.agent_dirs
    if agent_dirs is None:
        agent_dirs = default_agent_dirs(working_dir, home=home)
    definitions = [
        *builtin_definitions(),
        *load_agent_definitions(agent_dirs, observer=observers.subagent),
    ]

    rules_file = config.permissions.rules_file
    rule_store = YamlPermissionRuleStore(rules_file) if rules_file is not None else None

    return Session(
        config=config,
        backend=backend,
        observers=observers,
        base_registry=create_base_registry(),
        mcp_manager=McpServerManager(servers=config.mcp_servers, observer=mcp_observer),
        system_prompt=build_system_prompt(working_dir, extra=config.agent.system_prompt),
        subagent_definitions=definitions,
        prompt=prompt,
        rule_store=rule_store,
        cwd=working_dir,
        backend_factory=backend_factory,
    )

"""Session — owns every stateful collaborator of one interactive session."""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from helmsman.agent.application.orchestrator import AgentOrchestrator
from helmsman.agent.domain.observer import AgentObserver
from helmsman.agent.domain.result import RunResult
from helmsman.backend.domain.backend import CompletionBackend
from helmsman.backend.domain.factory import CompletionBackendFactory
from helmsman.config.domain.config import HelmsmanConfig
from helmsman.mcp.infrastructure.manager import McpServerManager
from helmsman.permissions.application.gateway import ToolGateway
from helmsman.permissions.application.policy import PermissionPolicy
from helmsman.permissions.domain.observer import PermissionObserver
from helmsman.permissions.domain.prompt import PermissionPrompt
from helmsman.permissions.domain.store import PermissionRuleStore
from helmsman.subagents.application.manager import SubAgentManager
from helmsman.subagents.domain.definition import SubAgentDefinition
from helmsman.subagents.domain.observer import SubAgentObserver
from helmsman.tools.domain.context import ToolContext
from helmsman.tools.domain.registry import ToolRegistry


@dataclass(frozen=True)
class SessionObservers:
    agent: AgentObserver
    permission: PermissionObserver
    subagent: SubAgentObserver


class Session:
    """One permission policy, one server manager, one sub-agent manager and
    the root orchestrator, created together and torn down together.

    The base registry is what sub-agents are restricted from; the root
    registry is the base registry plus the `task` tool. Tools discovered on
    capability servers are added to both by `start()`.
    """

    def __init__(
        self,
        config: HelmsmanConfig,
        backend: CompletionBackend,
        observers: SessionObservers,
        base_registry: ToolRegistry,
        mcp_manager: McpServerManager,
        system_prompt: str,
        subagent_definitions: Iterable[SubAgentDefinition] = (),
        prompt: PermissionPrompt | None = None,
        rule_store: PermissionRuleStore | None = None,
        cwd: Path | None = None,
        backend_factory: CompletionBackendFactory | None = None,
    ) -> None:
        self._cwd = cwd if cwd is not None else Path.cwd()
        self._mcp = mcp_manager
        self._base_registry = base_registry
        self._policy = PermissionPolicy(
            observer=observers.permission,
            rules=config.permissions.rules,
            store=rule_store,
        )
        self._subagents = SubAgentManager(
            backend=backend,
            base_registry=base_registry,
            policy=self._policy,
            permission_observer=observers.permission,
            agent_observer=observers.agent,
            observer=observers.subagent,
            prompt=prompt,
            cwd=self._cwd,
            definitions=subagent_definitions,
            max_retained_tasks=config.subagents.max_retained_tasks,
            max_tokens=config.backend.max_tokens,
            backend_factory=backend_factory,
        )
        self._registry = ToolRegistry(
            [*base_registry.definitions(), self._subagents.create_task_tool()]
        )
        self._gateway = ToolGateway(
            registry=self._registry,
            policy=self._policy,
            observer=observers.permission,
            prompt=prompt,
            mode=config.permissions.mode,
            require_permission_for_safe_tools=config.permissions.require_permission_for_safe_tools,
        )
        self._orchestrator = AgentOrchestrator(
            backend=backend,
            gateway=self._gateway,
            observer=observers.agent,
            system_prompt=system_prompt,
            max_turns=config.agent.max_turns,
            max_tokens=config.backend.max_tokens,
            context=ToolContext(cwd=self._cwd),
        )

    @property
    def cwd(self) -> Path:
        return self._cwd

    @property
    def policy(self) -> PermissionPolicy:
        return self._policy

    @property
    def mcp(self) -> McpServerManager:
        return self._mcp

    @property
    def subagents(self) -> SubAgentManager:
        return self._subagents

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def orchestrator(self) -> AgentOrchestrator:
        return self._orchestrator

    async def start(self) -> None:
        """Connect enabled capability servers and register their tools."""
        await self._mcp.connect_all()
        for tool in self._mcp.tool_definitions(reserved=frozenset(self._registry.names())):
            self._base_registry.register(tool)
            self._registry.register(tool)

    async def close(self) -> None:
        """Cancel running background tasks and disconnect every server."""
        runners = [h.runner for h in self._subagents.list_tasks() if h.runner is not None]
        for handle in self._subagents.list_tasks():
            self._subagents.cancel_task(handle.id)
        await asyncio.gather(*runners, return_exceptions=True)
        await self._mcp.disconnect_all()

    async def __aenter__(self) -> "Session":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def ask(self, user_input: str, observer: AgentObserver | None = None) -> RunResult:
        return await self._orchestrator.run(user_input, observer=observer)

    def reset(self) -> None:
        """Forget the conversation and every session grant. Rules stay."""
        self._orchestrator.clear_history()
        self._policy.clear_session()

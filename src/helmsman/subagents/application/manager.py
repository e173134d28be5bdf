"""SubAgentManager — runs isolated, tool-restricted child agents."""

import asyncio
import time
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from pathlib import Path

from helmsman.agent.application.orchestrator import DEFAULT_MAX_TOKENS, AgentOrchestrator
from helmsman.agent.domain.observer import AgentObserver
from helmsman.backend.domain.backend import CompletionBackend
from helmsman.backend.domain.factory import CompletionBackendFactory
from helmsman.config.domain.subagents import DEFAULT_MAX_RETAINED_TASKS
from helmsman.conversation.domain.usage import UsageMetrics
from helmsman.permissions.application.gateway import ToolGateway
from helmsman.permissions.application.policy import PermissionPolicy
from helmsman.permissions.domain.observer import PermissionObserver
from helmsman.permissions.domain.prompt import PermissionPrompt
from helmsman.subagents.domain.definition import ExecutionMode, SubAgentDefinition
from helmsman.subagents.domain.errors import (
    BackgroundTaskNotFoundError,
    SubAgentNotFoundError,
)
from helmsman.subagents.domain.observer import SubAgentObserver
from helmsman.subagents.domain.result import SubAgentResult
from helmsman.subagents.domain.task import BackgroundTaskHandle, TaskStatus
from helmsman.tools.domain.context import ToolContext
from helmsman.tools.domain.definition import (
    Arguments,
    ToolDefinition,
    ToolParameter,
    object_schema,
)
from helmsman.tools.domain.registry import ToolRegistry
from helmsman.tools.domain.result import ToolExecutionResult

ABORTED = "aborted"

type TaskCallback = Callable[[BackgroundTaskHandle], None]


class SubAgentManager:
    """Registry of sub-agent definitions plus the runner for them.

    Every run gets a fresh registry restricted by the definition, a fresh
    gateway and a fresh orchestrator; nothing but the final text and the
    usage totals crosses back. All runs share the session's permission
    policy, so a grant given to one agent applies to the others.

    A definition that names a `model` runs on a backend from
    `backend_factory`; without a factory such a run fails.
    """

    def __init__(
        self,
        backend: CompletionBackend,
        base_registry: ToolRegistry,
        policy: PermissionPolicy,
        permission_observer: PermissionObserver,
        agent_observer: AgentObserver,
        observer: SubAgentObserver,
        prompt: PermissionPrompt | None = None,
        cwd: Path | None = None,
        definitions: Iterable[SubAgentDefinition] = (),
        max_retained_tasks: int = DEFAULT_MAX_RETAINED_TASKS,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        on_task_complete: TaskCallback | None = None,
        backend_factory: CompletionBackendFactory | None = None,
    ) -> None:
        self._backend = backend
        self._backend_factory = backend_factory
        self._base_registry = base_registry
        self._policy = policy
        self._permission_observer = permission_observer
        self._agent_observer = agent_observer
        self._observer = observer
        self._prompt = prompt
        self._cwd = cwd if cwd is not None else Path.cwd()
        self._max_retained_tasks = max_retained_tasks
        self._max_tokens = max_tokens
        self._on_task_complete = on_task_complete

        self._definitions: dict[str, SubAgentDefinition] = {}
        for definition in definitions:
            self.register(definition)
        self._tasks: dict[str, BackgroundTaskHandle] = {}
        self._task_counter = 0

    def register(self, definition: SubAgentDefinition) -> None:
        """Add a definition; a later one with the same name replaces the earlier."""
        self._definitions[definition.name] = definition

    def get(self, name: str) -> SubAgentDefinition | None:
        return self._definitions.get(name)

    def definitions(self) -> list[SubAgentDefinition]:
        return list(self._definitions.values())

    def names(self) -> list[str]:
        return list(self._definitions)

    def registry_for(self, definition: SubAgentDefinition) -> ToolRegistry:
        return self._base_registry.restricted(
            allow_only=definition.allow_tools, block=definition.block_tools
        )

    async def run_agent(
        self,
        name: str,
        task: str,
        context: str | None = None,
        cwd: Path | None = None,
        execution_mode: ExecutionMode | None = None,
        observer: AgentObserver | None = None,
    ) -> SubAgentResult:
        """Run a sub-agent in the foreground, or detach it.

        In background mode the returned result is a placeholder naming the
        task id. Unknown agents and failures inside the run come back as
        `success=False`; nothing is raised.
        """
        definition = self._definitions.get(name)
        if definition is None:
            return SubAgentResult.failed(f"unknown sub-agent: {name}")

        mode = execution_mode or definition.execution_mode
        if mode == "background":
            task_id = self.run_agent_in_background(
                name, task, context=context, cwd=cwd, observer=observer
            )
            return SubAgentResult(
                success=True,
                response=f"Background task started: {task_id}",
                task_id=task_id,
            )

        return await self._run(definition, task, context, cwd, observer, task_id=None)

    def run_agent_in_background(
        self,
        name: str,
        task: str,
        context: str | None = None,
        cwd: Path | None = None,
        observer: AgentObserver | None = None,
    ) -> str:
        """Start a detached run and return its task id.

        Must be called from a running event loop.

        Raises:
            SubAgentNotFoundError: if no definition has this name.
        """
        definition = self._definitions.get(name)
        if definition is None:
            raise SubAgentNotFoundError(name)

        self._task_counter += 1
        task_id = f"task_{self._task_counter}"
        loop = asyncio.get_running_loop()
        handle = BackgroundTaskHandle(
            id=task_id,
            agent_name=name,
            task=task,
            started_at=datetime.now(UTC),
            completion=loop.create_future(),
        )
        runner = asyncio.create_task(
            self._run(definition, task, context, cwd, observer, task_id=task_id),
            name=task_id,
        )
        handle.runner = runner
        self._tasks[task_id] = handle
        runner.add_done_callback(lambda finished: self._finish_task(handle, finished))
        return task_id

    async def wait_for_task(self, task_id: str) -> SubAgentResult:
        """Wait for a background task and return its result.

        Raises:
            BackgroundTaskNotFoundError: if the id is unknown or was evicted.
        """
        handle = self._tasks.get(task_id)
        if handle is None:
            raise BackgroundTaskNotFoundError(task_id)
        return await asyncio.shield(handle.completion)

    def get_task(self, task_id: str) -> BackgroundTaskHandle | None:
        return self._tasks.get(task_id)

    def get_task_status(self, task_id: str) -> TaskStatus | None:
        handle = self._tasks.get(task_id)
        return handle.status if handle is not None else None

    def list_tasks(self) -> list[BackgroundTaskHandle]:
        return list(self._tasks.values())

    def cancel_task(self, task_id: str) -> bool:
        """Cancel a running task. Returns False if unknown or already finished."""
        handle = self._tasks.get(task_id)
        if handle is None or handle.is_complete:
            return False

        handle.status = "cancelled"
        handle.error = ABORTED
        handle.result = SubAgentResult(success=False, error=ABORTED, task_id=task_id)
        handle.completed_at = datetime.now(UTC)
        if handle.runner is not None:
            handle.runner.cancel()
        self._observer.task_cancelled(task_id=task_id)
        return True

    def cleanup_completed_tasks(self) -> int:
        """Forget every finished task. Returns how many were removed."""
        finished = [task_id for task_id, h in self._tasks.items() if h.is_complete]
        for task_id in finished:
            del self._tasks[task_id]
        return len(finished)

    def create_task_tool(self) -> ToolDefinition:
        """A `task` tool through which the root agent delegates to sub-agents."""
        names = self.names()
        listing = ", ".join(names)

        async def handler(arguments: Arguments, context: ToolContext) -> ToolExecutionResult:
            agent = arguments.get("agent")
            task = arguments.get("task")
            if not agent or not task:
                return ToolExecutionResult.failure(
                    "both 'agent' and 'task' parameters are required"
                )
            result = await self.run_agent(
                str(agent),
                str(task),
                context=arguments.get("context") or None,
                cwd=context.cwd,
                execution_mode="background" if arguments.get("background") else None,
            )
            if not result.success:
                return ToolExecutionResult.failure(result.error or "sub-agent failed")
            return ToolExecutionResult.ok(result.response)

        return ToolDefinition(
            name="task",
            description=(
                f"Delegate a task to a sub-agent. Available agents: {listing}. "
                "Use 'explore' for codebase search and 'plan' for implementation planning."
            ),
            handler=handler,
            input_schema=object_schema(
                {
                    "agent": ToolParameter(
                        type="string",
                        description="Name of the sub-agent to run",
                        required=True,
                        enum=tuple(names),
                    ),
                    "task": ToolParameter(
                        type="string",
                        description="The task or question for the sub-agent",
                        required=True,
                    ),
                    "background": ToolParameter(
                        type="boolean",
                        description="Run detached and return a task id (default: false)",
                    ),
                    "context": ToolParameter(
                        type="string",
                        description="Extra context to give the sub-agent",
                    ),
                }
            ),
            permission_key=lambda arguments: {"agent": arguments.get("agent")},
            describe=lambda arguments: (
                f"Run sub-agent {arguments.get('agent')}: {str(arguments.get('task', ''))[:80]}"
            ),
        )

    async def _run(
        self,
        definition: SubAgentDefinition,
        task: str,
        context: str | None,
        cwd: Path | None,
        observer: AgentObserver | None,
        task_id: str | None,
    ) -> SubAgentResult:
        backend = self._backend_for(definition)
        if backend is None:
            return SubAgentResult(
                success=False,
                error=f"no backend available for model {definition.model}",
                task_id=task_id,
            )

        working_dir = cwd if cwd is not None else self._cwd
        gateway = ToolGateway(
            registry=self.registry_for(definition),
            policy=self._policy,
            observer=self._permission_observer,
            prompt=self._prompt,
            mode=definition.permission_mode,
        )
        orchestrator = AgentOrchestrator(
            backend=backend,
            gateway=gateway,
            observer=observer if observer is not None else self._agent_observer,
            system_prompt=_compose_prompt(definition, working_dir, context),
            max_turns=definition.max_turns,
            max_tokens=self._max_tokens,
            context=ToolContext(cwd=working_dir),
            name=definition.name,
        )

        self._observer.subagent_started(agent=definition.name, task_id=task_id)
        start = time.monotonic()
        try:
            run = await orchestrator.run(task)
        except Exception as exc:
            duration_ms = _elapsed_ms(start)
            self._observer.subagent_completed(
                agent=definition.name, task_id=task_id, success=False, duration_ms=duration_ms
            )
            return SubAgentResult(
                success=False,
                error=str(exc) or type(exc).__name__,
                usage=orchestrator.usage,
                execution_time_ms=duration_ms,
                task_id=task_id,
            )

        duration_ms = _elapsed_ms(start)
        self._observer.subagent_completed(
            agent=definition.name, task_id=task_id, success=True, duration_ms=duration_ms
        )
        return SubAgentResult(
            success=True,
            response=run.final_text,
            usage=run.usage,
            execution_time_ms=duration_ms,
            task_id=task_id,
        )

    def _backend_for(self, definition: SubAgentDefinition) -> CompletionBackend | None:
        if definition.model is None or definition.model == self._backend.model:
            return self._backend
        if self._backend_factory is None:
            return None
        return self._backend_factory.create(definition.model)

    def _finish_task(
        self, handle: BackgroundTaskHandle, runner: asyncio.Task[SubAgentResult]
    ) -> None:
        if runner.cancelled():
            if handle.status == "running":
                handle.status = "cancelled"
                handle.error = ABORTED
                handle.completed_at = datetime.now(UTC)
            result = handle.result or SubAgentResult(
                success=False, error=ABORTED, task_id=handle.id
            )
        else:
            exc = runner.exception()
            result = (
                runner.result()
                if exc is None
                else SubAgentResult(
                    success=False,
                    error=str(exc) or type(exc).__name__,
                    usage=UsageMetrics(),
                    task_id=handle.id,
                )
            )
            if handle.status == "running":
                handle.status = "completed" if result.success else "failed"
                handle.error = result.error
                handle.completed_at = datetime.now(UTC)

        handle.result = result
        if not handle.completion.done():
            handle.completion.set_result(result)
        if self._on_task_complete is not None:
            self._on_task_complete(handle)
        self._evict_finished()

    def _evict_finished(self) -> None:
        finished = sorted(
            (h for h in self._tasks.values() if h.is_complete),
            key=lambda h: h.completed_at or h.started_at,
        )
        excess = len(finished) - self._max_retained_tasks
        if excess <= 0:
            return
        evicted = [h.id for h in finished[:excess]]
        for task_id in evicted:
            del self._tasks[task_id]
        self._observer.tasks_evicted(task_ids=evicted)


def _compose_prompt(
    definition: SubAgentDefinition, cwd: Path, context: str | None
) -> str:
    prompt = f"{definition.system_prompt}\n\nWorking directory: {cwd}"
    if context:
        prompt += f"\n\nContext:\n{context}"
    return prompt


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)

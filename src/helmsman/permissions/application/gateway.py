"""ToolGateway — the single path from a tool invocation to a tool handler."""

from helmsman.conversation.domain.blocks import ToolInvocationBlock
from helmsman.permissions.application.policy import PermissionPolicy, session_key
from helmsman.permissions.domain.observer import PermissionObserver
from helmsman.permissions.domain.prompt import PermissionPrompt
from helmsman.permissions.domain.request import (
    PermissionAnswer,
    PermissionDecision,
    PermissionMode,
    PermissionRequest,
)
from helmsman.permissions.domain.rule import PermissionRule
from helmsman.tools.domain.context import ToolContext
from helmsman.tools.domain.definition import Arguments, ToolDefinition
from helmsman.tools.domain.registry import ToolRegistry
from helmsman.tools.domain.result import ToolExecutionResult

PERMISSION_DENIED = "permission denied"


class ToolGateway:
    """Checks consent for each invocation and then dispatches it.

    Decision order: read-only tools are approved outright (unless mode is
    "ask_always" or safe tools are configured to need permission); then
    permanent rules, first match wins; then the session grant table; and
    finally the permission prompt, whose answer is written to the session
    table before the tool runs. Mode "auto" approves instead of prompting.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        policy: PermissionPolicy,
        observer: PermissionObserver,
        prompt: PermissionPrompt | None = None,
        mode: PermissionMode = "default",
        require_permission_for_safe_tools: bool = False,
    ) -> None:
        self._registry = registry
        self._policy = policy
        self._observer = observer
        self._prompt = prompt
        self._mode = mode
        self._require_permission_for_safe_tools = require_permission_for_safe_tools

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def check(self, tool: ToolDefinition, arguments: Arguments) -> PermissionDecision:
        """Resolve a decision without prompting; outcome "ask" means unresolved."""
        key = session_key(tool.name, tool.permission_key(arguments))

        if tool.read_only and not self._safe_tools_need_permission():
            return PermissionDecision(outcome="allow", source="safe", key=key)

        rule = self._policy.match_rule(tool.name, arguments)
        if rule is not None:
            return PermissionDecision(
                outcome="allow" if rule.scope == "always" else "deny",
                source="rule",
                key=key,
                reason=rule.description or None,
            )

        granted = self._policy.session_decision(key)
        if granted is not None:
            return PermissionDecision(
                outcome="allow" if granted else "deny", source="session", key=key
            )

        if self._mode == "auto":
            return PermissionDecision(outcome="allow", source="auto", key=key)

        return PermissionDecision(outcome="ask", source="none", key=key)

    async def execute(
        self, invocation: ToolInvocationBlock, context: ToolContext
    ) -> ToolExecutionResult:
        tool = self._registry.get(invocation.name)
        if tool is None:
            return ToolExecutionResult.failure(f"unknown tool: {invocation.name}")

        decision = self.check(tool, invocation.arguments)
        if not decision.resolved:
            async with self._policy.prompt_lock(decision.key):
                # Another agent may have answered for this key while we waited.
                decision = self.check(tool, invocation.arguments)
                if not decision.resolved:
                    decision = await self._ask(tool, invocation.arguments, decision.key)

        if decision.outcome != "allow":
            self._observer.permission_denied(
                tool=tool.name, key=decision.key, source=decision.source
            )
            return ToolExecutionResult.failure(PERMISSION_DENIED)

        self._observer.permission_granted(
            tool=tool.name, key=decision.key, source=decision.source
        )
        return await self._registry.execute(tool.name, invocation.arguments, context)

    async def _ask(
        self, tool: ToolDefinition, arguments: Arguments, key: str
    ) -> PermissionDecision:
        if self._prompt is None:
            return PermissionDecision(
                outcome="deny", source="none", key=key, reason="no permission prompt"
            )

        description = tool.describe_call(arguments)
        self._observer.permission_prompted(tool=tool.name, description=description)
        raw = await self._prompt.request_permission(
            PermissionRequest(tool=tool.name, args=arguments, description=description)
        )
        if isinstance(raw, PermissionAnswer):
            answer = raw
        else:
            answer = PermissionAnswer.YES if raw else PermissionAnswer.NO

        self._policy.record_session(key, answer.granted)
        if answer.permanent:
            self._policy.add_rule(
                PermissionRule.for_key(
                    tool_name=tool.name,
                    key_arguments=tool.permission_key(arguments),
                    scope="always" if answer.granted else "never",
                    description=description,
                )
            )

        return PermissionDecision(
            outcome="allow" if answer.granted else "deny", source="prompt", key=key
        )

    def _safe_tools_need_permission(self) -> bool:
        return self._mode == "ask_always" or self._require_permission_for_safe_tools

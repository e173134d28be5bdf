"""Tests for ToolGateway permission decisions and dispatch."""

import asyncio
from pathlib import Path
from typing import Any

import pytest

from helmsman.conversation.domain.blocks import ToolInvocationBlock
from helmsman.permissions.application.gateway import PERMISSION_DENIED, ToolGateway
from helmsman.permissions.application.policy import PermissionPolicy
from helmsman.permissions.domain.request import PermissionAnswer, PermissionMode
from helmsman.permissions.domain.rule import PermissionRule
from helmsman.tools.domain.context import ToolContext
from helmsman.tools.domain.definition import ToolDefinition
from helmsman.tools.domain.registry import ToolRegistry
from helmsman.tools.domain.result import ToolExecutionResult
from tests.permissions.fake_observer import FakePermissionObserver
from tests.permissions.fake_prompt import FailingPermissionPrompt, FakePermissionPrompt


class SpyHandler:
    """Counts how often a tool handler actually ran."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    def __call__(self, arguments: dict[str, Any], context: ToolContext) -> ToolExecutionResult:
        self.calls.append(arguments)
        return ToolExecutionResult.ok("ran")


def _command_key(arguments: dict[str, Any]) -> dict[str, Any]:
    return {"command": str(arguments.get("command", "")).split(" ")[0]}


def _make_gateway(
    prompt=None,
    mode: PermissionMode = "default",
    rules: list[PermissionRule] | None = None,
    require_permission_for_safe_tools: bool = False,
) -> tuple[ToolGateway, SpyHandler, SpyHandler, FakePermissionObserver]:
    shell = SpyHandler()
    peek = SpyHandler()
    registry = ToolRegistry(
        [
            ToolDefinition(
                name="shell",
                description="runs commands",
                handler=shell,
                permission_key=_command_key,
                describe=lambda args: f"Run command: {args.get('command')}",
            ),
            ToolDefinition(name="peek", description="reads", handler=peek, read_only=True),
        ]
    )
    observer = FakePermissionObserver()
    policy = PermissionPolicy(observer, rules=rules or [])
    gateway = ToolGateway(
        registry=registry,
        policy=policy,
        observer=observer,
        prompt=prompt,
        mode=mode,
        require_permission_for_safe_tools=require_permission_for_safe_tools,
    )
    return gateway, shell, peek, observer


def _call(name: str, call_id: str = "c1", **arguments: Any) -> ToolInvocationBlock:
    return ToolInvocationBlock(id=call_id, name=name, arguments=arguments)


_CONTEXT = ToolContext(cwd=Path("/tmp"), env={})


class TestDenial:
    """A denied call never reaches its handler."""

    async def test_prompt_no_denies_without_running(self) -> None:
        gateway, shell, _, observer = _make_gateway(
            prompt=FakePermissionPrompt([PermissionAnswer.NO])
        )
        result = await gateway.execute(_call("shell", command="rm -rf /"), _CONTEXT)

        assert result.success is False
        assert result.error_detail == PERMISSION_DENIED
        assert shell.calls == []
        assert observer.denied[0].source == "prompt"

    async def test_never_rule_denies_without_prompting(self) -> None:
        prompt = FakePermissionPrompt()
        gateway, shell, _, _ = _make_gateway(
            prompt=prompt,
            rules=[PermissionRule(tool_pattern="shell", scope="never")],
        )
        result = await gateway.execute(_call("shell", command="ls"), _CONTEXT)

        assert result.error_detail == PERMISSION_DENIED
        assert shell.calls == []
        assert prompt.call_count == 0

    async def test_no_prompt_available_denies(self) -> None:
        gateway, shell, _, observer = _make_gateway(prompt=None)
        result = await gateway.execute(_call("shell", command="ls"), _CONTEXT)

        assert result.error_detail == PERMISSION_DENIED
        assert shell.calls == []
        assert observer.denied[0].source == "none"

    async def test_prompt_failure_propagates_without_running(self) -> None:
        gateway, shell, _, _ = _make_gateway(
            prompt=FailingPermissionPrompt(RuntimeError("terminal closed"))
        )
        with pytest.raises(RuntimeError, match="terminal closed"):
            await gateway.execute(_call("shell", command="ls"), _CONTEXT)
        assert shell.calls == []


class TestSessionGrants:
    """One prompt per permission key per session."""

    async def test_second_call_with_same_key_is_not_prompted(self) -> None:
        prompt = FakePermissionPrompt([PermissionAnswer.YES])
        gateway, shell, _, observer = _make_gateway(prompt=prompt)

        await gateway.execute(_call("shell", "c1", command="git status"), _CONTEXT)
        await gateway.execute(_call("shell", "c2", command="git log"), _CONTEXT)

        assert prompt.call_count == 1
        assert len(shell.calls) == 2
        assert [e.source for e in observer.granted] == ["prompt", "session"]

    async def test_different_key_is_prompted_again(self) -> None:
        prompt = FakePermissionPrompt([PermissionAnswer.YES])
        gateway, _, _, _ = _make_gateway(prompt=prompt)

        await gateway.execute(_call("shell", "c1", command="git status"), _CONTEXT)
        await gateway.execute(_call("shell", "c2", command="npm test"), _CONTEXT)

        assert prompt.call_count == 2

    async def test_session_denial_is_remembered(self) -> None:
        prompt = FakePermissionPrompt([PermissionAnswer.NO, PermissionAnswer.YES])
        gateway, shell, _, _ = _make_gateway(prompt=prompt)

        await gateway.execute(_call("shell", "c1", command="rm a"), _CONTEXT)
        result = await gateway.execute(_call("shell", "c2", command="rm b"), _CONTEXT)

        assert result.error_detail == PERMISSION_DENIED
        assert prompt.call_count == 1
        assert shell.calls == []

    async def test_bool_answer_is_accepted(self) -> None:
        gateway, shell, _, _ = _make_gateway(prompt=FakePermissionPrompt([True]))
        result = await gateway.execute(_call("shell", command="ls"), _CONTEXT)
        assert result.success is True
        assert len(shell.calls) == 1

    async def test_prompt_receives_description(self) -> None:
        prompt = FakePermissionPrompt()
        gateway, _, _, observer = _make_gateway(prompt=prompt)
        await gateway.execute(_call("shell", command="make build"), _CONTEXT)

        assert prompt.requests[0].description == "Run command: make build"
        assert prompt.requests[0].tool == "shell"
        assert observer.prompted[0].description == "Run command: make build"


class TestPermanentAnswers:
    async def test_always_adds_rule_covering_the_key(self) -> None:
        prompt = FakePermissionPrompt([PermissionAnswer.ALWAYS])
        gateway, _, _, observer = _make_gateway(prompt=prompt)

        await gateway.execute(_call("shell", command="git status"), _CONTEXT)

        assert observer.rules_added[0].scope == "always"
        tool = gateway.registry.get("shell")
        assert tool is not None
        decision = gateway.check(tool, {"command": "git diff"})
        assert decision.outcome == "allow"
        assert decision.source == "rule"

    async def test_never_adds_deny_rule(self) -> None:
        prompt = FakePermissionPrompt([PermissionAnswer.NEVER])
        gateway, shell, _, observer = _make_gateway(prompt=prompt)

        result = await gateway.execute(_call("shell", command="curl x"), _CONTEXT)

        assert result.error_detail == PERMISSION_DENIED
        assert observer.rules_added[0].scope == "never"
        assert shell.calls == []


class TestSafeTools:
    async def test_read_only_tools_run_without_prompt(self) -> None:
        prompt = FakePermissionPrompt([PermissionAnswer.NO])
        gateway, _, peek, observer = _make_gateway(prompt=prompt)

        result = await gateway.execute(_call("peek"), _CONTEXT)

        assert result.success is True
        assert len(peek.calls) == 1
        assert prompt.call_count == 0
        assert observer.granted[0].source == "safe"

    async def test_ask_always_mode_prompts_for_read_only_tools(self) -> None:
        prompt = FakePermissionPrompt([PermissionAnswer.NO])
        gateway, _, peek, _ = _make_gateway(prompt=prompt, mode="ask_always")

        result = await gateway.execute(_call("peek"), _CONTEXT)

        assert result.error_detail == PERMISSION_DENIED
        assert peek.calls == []
        assert prompt.call_count == 1

    async def test_safe_tools_can_be_configured_to_need_permission(self) -> None:
        prompt = FakePermissionPrompt([PermissionAnswer.YES])
        gateway, _, _, _ = _make_gateway(
            prompt=prompt, require_permission_for_safe_tools=True
        )
        await gateway.execute(_call("peek"), _CONTEXT)
        assert prompt.call_count == 1


class TestModes:
    async def test_auto_mode_allows_without_prompting(self) -> None:
        prompt = FakePermissionPrompt([PermissionAnswer.NO])
        gateway, shell, _, observer = _make_gateway(prompt=prompt, mode="auto")

        result = await gateway.execute(_call("shell", command="ls"), _CONTEXT)

        assert result.success is True
        assert prompt.call_count == 0
        assert observer.granted[0].source == "auto"

    async def test_auto_mode_still_honours_never_rules(self) -> None:
        gateway, shell, _, _ = _make_gateway(
            mode="auto", rules=[PermissionRule(tool_pattern="shell", scope="never")]
        )
        result = await gateway.execute(_call("shell", command="ls"), _CONTEXT)
        assert result.error_detail == PERMISSION_DENIED
        assert shell.calls == []


class TestUnknownTool:
    async def test_unknown_tool_is_failure_without_prompt(self) -> None:
        prompt = FakePermissionPrompt()
        gateway, _, _, _ = _make_gateway(prompt=prompt)
        result = await gateway.execute(_call("teleport"), _CONTEXT)

        assert result.success is False
        assert result.error_detail == "unknown tool: teleport"
        assert prompt.call_count == 0


class YieldingPermissionPrompt(FakePermissionPrompt):
    """Stays open across an event-loop turn, like a user thinking."""

    async def request_permission(self, request):
        await asyncio.sleep(0.01)
        return await super().request_permission(request)


class TestConcurrentGateways:
    """Gateways of concurrently running agents share one policy."""

    async def test_same_key_is_prompted_once(self) -> None:
        observer = FakePermissionObserver()
        policy = PermissionPolicy(observer)
        prompt = YieldingPermissionPrompt([PermissionAnswer.YES])
        handlers: list[SpyHandler] = []
        gateways: list[ToolGateway] = []
        for _ in range(2):
            handler = SpyHandler()
            handlers.append(handler)
            registry = ToolRegistry(
                [
                    ToolDefinition(
                        name="shell",
                        description="runs commands",
                        handler=handler,
                        permission_key=_command_key,
                    )
                ]
            )
            gateways.append(
                ToolGateway(registry=registry, policy=policy, observer=observer, prompt=prompt)
            )

        results = await asyncio.gather(
            gateways[0].execute(_call("shell", "c1", command="git status"), _CONTEXT),
            gateways[1].execute(_call("shell", "c2", command="git log"), _CONTEXT),
        )

        assert prompt.call_count == 1
        assert all(r.success for r in results)
        assert [len(h.calls) for h in handlers] == [1, 1]

    async def test_concurrent_denial_is_shared(self) -> None:
        observer = FakePermissionObserver()
        policy = PermissionPolicy(observer)
        prompt = YieldingPermissionPrompt([PermissionAnswer.NO])
        handler = SpyHandler()
        registry = ToolRegistry(
            [
                ToolDefinition(
                    name="shell", description="d", handler=handler, permission_key=_command_key
                )
            ]
        )
        first = ToolGateway(registry=registry, policy=policy, observer=observer, prompt=prompt)
        second = ToolGateway(registry=registry, policy=policy, observer=observer, prompt=prompt)

        results = await asyncio.gather(
            first.execute(_call("shell", "c1", command="rm a"), _CONTEXT),
            second.execute(_call("shell", "c2", command="rm b"), _CONTEXT),
        )

        assert prompt.call_count == 1
        assert [r.error_detail for r in results] == [PERMISSION_DENIED, PERMISSION_DENIED]
        assert handler.calls == []

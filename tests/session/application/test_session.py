"""Tests for Session: wiring, delegation, capability servers and teardown."""

import asyncio
from pathlib import Path

from helmsman.backend.domain.completion import CompletionRequest
from helmsman.config.domain.backend import BackendConfig
from helmsman.config.domain.config import HelmsmanConfig
from helmsman.config.domain.mcp_server import McpServerConfig
from helmsman.config.domain.permissions import PermissionsConfig
from helmsman.mcp.domain.observer import McpObserver
from helmsman.mcp.infrastructure.client import McpClient
from helmsman.mcp.infrastructure.manager import McpServerManager
from helmsman.permissions.domain.request import PermissionAnswer
from helmsman.permissions.domain.rule import PermissionRule
from helmsman.permissions.infrastructure.yaml_store import YamlPermissionRuleStore
from helmsman.session.application.session import Session, SessionObservers
from helmsman.subagents.infrastructure.builtin import builtin_definitions
from helmsman.tools.infrastructure.builtin import create_base_registry
from tests.agent.fake_observer import FakeAgentObserver
from tests.backend.fake_backend import (
    FakeCompletionBackend,
    ScriptStep,
    text_response,
    tool_response,
)
from tests.mcp.fake_observer import FakeMcpObserver
from tests.mcp.fake_transport import FakeTransport, handshake_replies
from tests.permissions.fake_observer import FakePermissionObserver
from tests.permissions.fake_prompt import FakePermissionPrompt
from tests.subagents.fake_observer import FakeSubAgentObserver


def _tool(name: str) -> dict:
    return {"name": name, "description": f"{name} tool", "inputSchema": {"type": "object"}}


def _make_config(
    servers: dict[str, McpServerConfig] | None = None,
    permissions: PermissionsConfig | None = None,
) -> HelmsmanConfig:
    return HelmsmanConfig(
        backend=BackendConfig(model="fake/model"),
        mcp_servers=servers or {},
        permissions=permissions or PermissionsConfig(),
    )


def _make_session(
    script: list[ScriptStep],
    tmp_path: Path,
    transports: dict[str, FakeTransport] | None = None,
    permissions: PermissionsConfig | None = None,
    prompt: FakePermissionPrompt | None = None,
) -> tuple[Session, FakeCompletionBackend]:
    transports = transports or {}
    servers = {name: McpServerConfig(command=name) for name in transports}
    config = _make_config(servers, permissions)

    def client_factory(name: str, server: McpServerConfig, obs: McpObserver) -> McpClient:
        return McpClient(
            name=name,
            config=server,
            observer=obs,
            transport_factory=lambda cfg: transports[name],
        )

    backend = FakeCompletionBackend(script)
    session = Session(
        config=config,
        backend=backend,
        observers=SessionObservers(
            agent=FakeAgentObserver(),
            permission=FakePermissionObserver(),
            subagent=FakeSubAgentObserver(),
        ),
        base_registry=create_base_registry(),
        mcp_manager=McpServerManager(
            servers, FakeMcpObserver(), client_factory=client_factory
        ),
        system_prompt="You are a test agent.",
        subagent_definitions=builtin_definitions(),
        prompt=prompt,
        cwd=tmp_path,
    )
    return session, backend


class TestWiring:
    def test_root_registry_adds_task_tool_only_for_root(self, tmp_path: Path) -> None:
        session, _ = _make_session([text_response("x")], tmp_path)

        assert "task" in session.registry
        plan = session.subagents.get("plan")
        assert plan is not None
        assert "task" not in session.subagents.registry_for(plan)

    def test_configured_rules_reach_the_policy(self, tmp_path: Path) -> None:
        rule = PermissionRule(tool_pattern="bash", scope="never")
        session, _ = _make_session(
            [text_response("x")], tmp_path, permissions=PermissionsConfig(rules=[rule])
        )
        assert list(session.policy.rules) == [rule]


class TestStart:
    async def test_discovered_tools_join_both_registries(self, tmp_path: Path) -> None:
        transport = FakeTransport(handshake_replies(tools=[_tool("lookup"), _tool("bash")]))
        session, _ = _make_session([text_response("x")], tmp_path, {"docs": transport})

        await session.start()

        assert "lookup" in session.registry
        assert session.registry.get("bash") is not None
        assert session.registry.get("bash").description != "bash tool"

    async def test_server_tool_is_callable_through_ask(self, tmp_path: Path) -> None:
        transport = FakeTransport(handshake_replies(tools=[_tool("lookup")]))
        transport.set_reply("tools/call", {"content": [{"type": "text", "text": "42 docs"}]})
        session, backend = _make_session(
            [tool_response(("c1", "lookup", {"q": "x"})), text_response("There are 42.")],
            tmp_path,
            {"docs": transport},
            permissions=PermissionsConfig(mode="auto"),
        )

        async with session:
            result = await session.ask("how many docs?")

        assert result.final_text == "There are 42."
        assert transport.last_request("tools/call")["params"]["name"] == "lookup"
        results = backend.requests[1].messages[-1].tool_results()
        assert results[0].content == "42 docs"
        assert transport.closed is True


class TestDelegation:
    async def test_task_tool_runs_sub_agent_and_returns_its_text(self, tmp_path: Path) -> None:
        prompt = FakePermissionPrompt([PermissionAnswer.YES])
        session, backend = _make_session(
            [
                tool_response(("c1", "task", {"agent": "explore", "task": "find main"})),
                text_response("main lives in app.py"),
                text_response("Found it: app.py"),
            ],
            tmp_path,
            prompt=prompt,
        )

        result = await session.ask("where is main?")

        assert result.final_text == "Found it: app.py"
        assert prompt.call_count == 1
        assert prompt.requests[0].tool == "task"
        sub_request = backend.requests[1]
        assert [t.text() for t in sub_request.messages] == ["find main"]
        root_results = backend.requests[2].messages[-1].tool_results()
        assert root_results[0].content == "main lives in app.py"

    async def test_always_answer_is_persisted_to_rule_store(self, tmp_path: Path) -> None:
        store = YamlPermissionRuleStore(tmp_path / "rules.yaml")
        backend = FakeCompletionBackend(
            [
                tool_response(("c1", "task", {"agent": "plan", "task": "plan it"})),
                text_response("the plan"),
                text_response("done"),
            ]
        )
        session = Session(
            config=_make_config(),
            backend=backend,
            observers=SessionObservers(
                agent=FakeAgentObserver(),
                permission=FakePermissionObserver(),
                subagent=FakeSubAgentObserver(),
            ),
            base_registry=create_base_registry(),
            mcp_manager=McpServerManager({}, FakeMcpObserver()),
            system_prompt="",
            subagent_definitions=builtin_definitions(),
            prompt=FakePermissionPrompt([PermissionAnswer.ALWAYS]),
            rule_store=store,
            cwd=tmp_path,
        )

        await session.ask("plan something")

        saved = store.load()
        assert [r.tool_pattern for r in saved] == ["task"]
        assert saved[0].scope == "always"


class TestResetAndClose:
    async def test_reset_forgets_history_and_grants_but_keeps_rules(
        self, tmp_path: Path
    ) -> None:
        rule = PermissionRule(tool_pattern="bash", scope="always")
        session, backend = _make_session(
            [text_response("hi")], tmp_path, permissions=PermissionsConfig(rules=[rule])
        )
        await session.ask("hello")
        session.policy.record_session('write_file:{"path": "a"}', True)

        session.reset()

        assert session.orchestrator.conversation == ()
        assert session.policy.session_grants() == {}
        assert list(session.policy.rules) == [rule]

        await session.ask("again")
        assert len(backend.requests[-1].messages) == 1

    async def test_close_cancels_background_tasks(self, tmp_path: Path) -> None:
        release = asyncio.Event()

        async def never_finishes(request: CompletionRequest):
            await release.wait()
            return text_response("late")

        transport = FakeTransport()
        session, _ = _make_session([never_finishes], tmp_path, {"docs": transport})
        await session.start()
        task_id = session.subagents.run_agent_in_background("explore", "scan")
        await asyncio.sleep(0)

        await session.close()

        assert session.subagents.get_task_status(task_id) == "cancelled"
        result = await session.subagents.wait_for_task(task_id)
        assert result.error == "aborted"
        assert transport.closed is True

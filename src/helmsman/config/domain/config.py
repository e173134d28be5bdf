"""Top-level HelmsmanConfig aggregate — the root configuration object."""

from pydantic import BaseModel, Field

from helmsman.config.domain.agent import AgentConfig
from helmsman.config.domain.backend import BackendConfig
from helmsman.config.domain.mcp_server import McpServerConfig
from helmsman.config.domain.permissions import PermissionsConfig
from helmsman.config.domain.subagents import SubAgentsConfig

type ServerName = str


class HelmsmanConfig(BaseModel, frozen=True):
    """Root configuration aggregate for a helmsman session."""

    backend: BackendConfig
    agent: AgentConfig = AgentConfig()
    mcp_servers: dict[ServerName, McpServerConfig] = Field(default_factory=dict)
    permissions: PermissionsConfig = PermissionsConfig()
    subagents: SubAgentsConfig = SubAgentsConfig()

"""Permission request, decision and answer value objects."""

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

type DecisionOutcome = Literal["allow", "deny", "ask"]
type DecisionSource = Literal["safe", "rule", "session", "prompt", "auto", "none"]
type PermissionMode = Literal["default", "auto", "ask_always"]


class PermissionRequest(BaseModel, frozen=True):
    """What the presentation layer is shown when consent is needed."""

    tool: str = Field(min_length=1)
    args: dict[str, Any] = Field(default_factory=dict)
    description: str


class PermissionDecision(BaseModel, frozen=True):
    outcome: DecisionOutcome
    source: DecisionSource
    key: str
    reason: str | None = None

    @property
    def resolved(self) -> bool:
        return self.outcome != "ask"


class PermissionAnswer(StrEnum):
    """A user's reply to a permission prompt.

    YES and NO last for the session; ALWAYS and NEVER also become permanent rules.
    """

    YES = "yes"
    NO = "no"
    ALWAYS = "always"
    NEVER = "never"

    @property
    def granted(self) -> bool:
        return self in (PermissionAnswer.YES, PermissionAnswer.ALWAYS)

    @property
    def permanent(self) -> bool:
        return self in (PermissionAnswer.ALWAYS, PermissionAnswer.NEVER)

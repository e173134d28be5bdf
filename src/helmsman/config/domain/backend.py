"""Completion backend configuration model."""

from pydantic import BaseModel, Field


class BackendConfig(BaseModel, frozen=True):
    """Which LiteLLM model to call and how.

    `model` uses LiteLLM's provider-prefixed naming, e.g. "anthropic/claude-sonnet-4-5".
    """

    model: str = Field(min_length=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int = Field(default=8192, gt=0)
    api_base: str | None = None

"""UsageMetrics value object — token counts reported by the completion backend."""

from pydantic import BaseModel, Field


class UsageMetrics(BaseModel, frozen=True):
    """Immutable token usage for one response, or a running total of several."""

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)

    def plus(self, other: "UsageMetrics") -> "UsageMetrics":
        return UsageMetrics(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )

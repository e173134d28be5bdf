"""ToolExecutionResult value object — the outcome of one tool execution."""

from pydantic import BaseModel


class ToolExecutionResult(BaseModel, frozen=True):
    """Immutable outcome produced by a tool handler or a protocol call."""

    success: bool
    output: str = ""
    error_detail: str | None = None

    @classmethod
    def ok(cls, output: str) -> "ToolExecutionResult":
        return cls(success=True, output=output)

    @classmethod
    def failure(cls, error_detail: str, output: str = "") -> "ToolExecutionResult":
        return cls(success=False, output=output, error_detail=error_detail)

    def as_result_content(self) -> str:
        """Render the text fed back to the backend in a tool_result block."""
        if self.success:
            return self.output
        message = f"Error: {self.error_detail or 'tool failed'}"
        return f"{message}\n{self.output}" if self.output else message

"""ConsoleAgentObserver — renders streamed text and tool activity with Rich."""

from rich.console import Console
from rich.text import Text


class ConsoleAgentObserver:
    """Writes the main agent's text as it streams, plus one line per tool call.

    Sub-agent text is not echoed; their tool calls are shown dimmed and
    prefixed with the agent name.
    """

    def __init__(self, console: Console | None = None, main_agent: str = "main") -> None:
        self._console = console if console is not None else Console()
        self._main_agent = main_agent
        self._mid_line = False

    def turn_started(self, agent: str, turn: int) -> None:
        return None

    def text_delta(self, agent: str, text: str) -> None:
        if agent != self._main_agent:
            return
        self._console.print(text, end="", markup=False, highlight=False, soft_wrap=True)
        self._mid_line = not text.endswith("\n")

    def tool_invoked(
        self, agent: str, tool: str, invocation_id: str, description: str
    ) -> None:
        self._end_line()
        style = "cyan" if agent == self._main_agent else "dim cyan"
        prefix = "" if agent == self._main_agent else f"[{agent}] "
        self._console.print(Text(f"{prefix}> {description}", style=style))

    def tool_completed(
        self,
        agent: str,
        tool: str,
        invocation_id: str,
        success: bool,
        duration_ms: int,
    ) -> None:
        if not success:
            self._console.print(Text(f"  {tool} failed ({duration_ms} ms)", style="red"))

    def usage_reported(self, agent: str, input_tokens: int, output_tokens: int) -> None:
        return None

    def turn_completed(self, agent: str, turn: int, stop_reason: str) -> None:
        return None

    def run_completed(
        self, agent: str, turns_taken: int, max_turns_reached: bool
    ) -> None:
        if agent != self._main_agent:
            return
        self._end_line()
        if max_turns_reached:
            self._console.print(
                Text(f"Stopped after reaching the limit of {turns_taken} turns.", style="yellow")
            )

    def run_failed(self, agent: str, reason: str) -> None:
        self._end_line()
        self._console.print(Text(f"[{agent}] {reason}", style="bold red"))

    def _end_line(self) -> None:
        if self._mid_line:
            self._console.print()
            self._mid_line = False

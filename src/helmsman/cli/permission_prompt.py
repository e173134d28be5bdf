"""ConsolePermissionPrompt — asks the user on the terminal before a tool runs."""

import asyncio

from rich.console import Console
from rich.prompt import Prompt
from rich.text import Text

from helmsman.permissions.domain.request import PermissionAnswer, PermissionRequest

_CHOICES: dict[str, PermissionAnswer] = {
    "y": PermissionAnswer.YES,
    "n": PermissionAnswer.NO,
    "a": PermissionAnswer.ALWAYS,
    "v": PermissionAnswer.NEVER,
}


class ConsolePermissionPrompt:
    """Satisfies the PermissionPrompt protocol structurally.

    The blocking terminal read runs in a worker thread so the event loop
    keeps serving background sub-agents while the user decides.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console if console is not None else Console()
        self._lock = asyncio.Lock()

    async def request_permission(self, request: PermissionRequest) -> PermissionAnswer:
        async with self._lock:
            return await asyncio.to_thread(self._ask, request)

    def _ask(self, request: PermissionRequest) -> PermissionAnswer:
        self._console.print()
        self._console.print(Text(f"Permission needed: {request.description}", style="bold yellow"))
        choice = Prompt.ask(
            "[y]es, [n]o, [a]lways, ne[v]er",
            choices=list(_CHOICES),
            default="n",
            console=self._console,
        )
        return _CHOICES[choice]

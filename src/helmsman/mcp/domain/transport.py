"""McpTransport port — a bidirectional line channel to one server process."""

from collections.abc import Callable
from typing import Protocol

type LineHandler = Callable[[str], None]
type ExitHandler = Callable[[int | None], None]


class McpTransport(Protocol):
    """One started transport serves one connection; reconnecting builds a new one.

    start() raises OSError when the process cannot be spawned. `on_exit`
    fires once, with the exit code, when the server's stdout closes or can no
    longer be read. `on_discard` receives a reason for every line that was
    dropped before reaching `on_line`.
    """

    async def start(
        self,
        on_line: LineHandler,
        on_stderr: LineHandler,
        on_exit: ExitHandler,
        on_discard: LineHandler,
    ) -> None: ...

    async def send(self, line: str) -> None: ...

    async def close(self) -> None: ...

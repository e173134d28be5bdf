"""StdioTransport — runs a server as a subprocess and exchanges lines over its stdio."""

import asyncio
import os

from helmsman.config.domain.mcp_server import McpServerConfig
from helmsman.mcp.domain.transport import ExitHandler, LineHandler

# asyncio's default 64 KiB line limit is too small for large tool listings.
_STREAM_LIMIT = 16 * 1024 * 1024
_TERMINATE_GRACE_SECONDS = 5.0


class StdioTransport:
    """Satisfies the McpTransport protocol structurally."""

    def __init__(self, config: McpServerConfig, line_limit: int = _STREAM_LIMIT) -> None:
        self._config = config
        self._line_limit = line_limit
        self._process: asyncio.subprocess.Process | None = None
        self._readers: list[asyncio.Task[None]] = []

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    async def start(
        self,
        on_line: LineHandler,
        on_stderr: LineHandler,
        on_exit: ExitHandler,
        on_discard: LineHandler,
    ) -> None:
        env = {**os.environ, **self._config.env}
        self._process = await asyncio.create_subprocess_exec(
            self._config.command,
            *self._config.args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
            cwd=self._config.cwd,
            limit=self._line_limit,
        )
        self._readers = [
            asyncio.create_task(self._read_stdout(on_line, on_exit, on_discard)),
            asyncio.create_task(self._read_stderr(on_stderr)),
        ]

    async def send(self, line: str) -> None:
        if self._process is None or self._process.stdin is None:
            raise ConnectionResetError("transport is not started")
        self._process.stdin.write(line.encode("utf-8") + b"\n")
        await self._process.stdin.drain()

    async def close(self) -> None:
        process = self._process
        if process is None:
            return
        self._process = None

        for reader in self._readers:
            reader.cancel()
        await asyncio.gather(*self._readers, return_exceptions=True)
        self._readers = []

        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()
        if process.returncode is None:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=_TERMINATE_GRACE_SECONDS)
            except TimeoutError:
                process.kill()
                await process.wait()

    async def _read_stdout(
        self, on_line: LineHandler, on_exit: ExitHandler, on_discard: LineHandler
    ) -> None:
        process = self._process
        assert process is not None and process.stdout is not None
        try:
            while True:
                try:
                    raw = await process.stdout.readline()
                except ValueError:
                    # readline() drops the overlong line, so reading can resume.
                    on_discard(f"line exceeds {self._line_limit} bytes")
                    continue
                if not raw:
                    break
                try:
                    on_line(raw.decode("utf-8", errors="replace"))
                except Exception as exc:
                    on_discard(f"line handler failed: {exc}")
        except Exception as exc:  # noqa: BLE001
            on_discard(f"stdout unreadable: {exc}")
            on_exit(process.returncode)
            return
        on_exit(await process.wait())

    async def _read_stderr(self, on_stderr: LineHandler) -> None:
        process = self._process
        assert process is not None and process.stderr is not None
        while True:
            raw = await process.stderr.readline()
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").rstrip()
            if line:
                on_stderr(line)

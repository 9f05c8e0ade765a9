"""Run one child process with a bounded lifetime.

Uses asyncio.create_subprocess_exec (array-based, no shell), so prompt
text is passed to the CLI byte-for-byte and never reinterpreted.
stdout and stderr are drained incrementally while the child runs;
stdin is closed immediately.

Exit, I/O error and timeout race each other. The first one to arrive
settles the invocation and every later event is ignored.
"""
from __future__ import annotations

import asyncio
import codecs
import logging
import shlex
from collections.abc import Sequence
from typing import Any

from .errors import ExecutionFailedError
from .models import ProcessOutcome

logger = logging.getLogger(__name__)

_READ_CHUNK_BYTES = 64 * 1024


class _Settlement:
    """Single-assignment slot for the event that ends an invocation."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._future: asyncio.Future[tuple[str, Any]] = loop.create_future()

    @property
    def settled(self) -> bool:
        return self._future.done()

    def settle(self, event: str, value: Any = None) -> bool:
        """Record *event* unless another event got there first."""
        if self._future.done():
            logger.debug("Ignoring %s event after invocation settled", event)
            return False
        self._future.set_result((event, value))
        return True

    async def wait(self) -> tuple[str, Any]:
        return await self._future


async def _drain(
    stream: asyncio.StreamReader,
    chunks: list[str],
    label: str,
    log_chunks: bool = False,
) -> None:
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        data = await stream.read(_READ_CHUNK_BYTES)
        if not data:
            break
        text = decoder.decode(data)
        chunks.append(text)
        if log_chunks and text:
            logger.debug("[%s chunk] %s", label, text.rstrip())
    tail = decoder.decode(b"", final=True)
    if tail:
        chunks.append(tail)


class ProcessRunner:
    """Spawns the CLI, enforces the timeout and collects its output.

    ``run()`` returns a ProcessOutcome only for exit code 0. Everything
    else (spawn failure, non-zero exit, timeout) is raised as an
    ExecutionFailedError carrying whatever output was captured.
    """

    def __init__(
        self,
        kill_grace_seconds: float = 5.0,
        drain_grace_seconds: float = 2.0,
    ) -> None:
        self._kill_grace_seconds = kill_grace_seconds
        self._drain_grace_seconds = drain_grace_seconds

    async def run(
        self,
        executable: str,
        args: Sequence[str],
        *,
        timeout: float,
        cwd: str | None = None,
    ) -> ProcessOutcome:
        argv = [executable, *args]
        logger.debug("[Spawn] Running command: %s (cwd=%s)", shlex.join(argv), cwd)

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
            )
        except OSError as exc:
            logger.debug("[Spawn] Error launching %s: %r", executable, exc)
            raise ExecutionFailedError.from_spawn(exc, executable) from exc

        loop = asyncio.get_running_loop()
        settlement = _Settlement(loop)
        stdout_chunks: list[str] = []
        stderr_chunks: list[str] = []
        readers = [
            asyncio.create_task(_drain(proc.stdout, stdout_chunks, "stdout")),
            asyncio.create_task(
                _drain(proc.stderr, stderr_chunks, "stderr", log_chunks=True)
            ),
        ]

        async def _watch_close() -> None:
            try:
                await asyncio.gather(*readers)
                exit_code = await proc.wait()
            except Exception as exc:
                settlement.settle("error", exc)
                return
            settlement.settle("close", exit_code)

        watcher = asyncio.create_task(_watch_close())
        timer = loop.call_later(timeout, settlement.settle, "timeout")

        try:
            event, value = await settlement.wait()
        except asyncio.CancelledError:
            logger.debug("[Spawn] Invocation cancelled; stopping pid %s", proc.pid)
            raise
        finally:
            timer.cancel()
            if proc.returncode is None:
                await self._terminate(proc)
            await self._finish_readers(readers)
            if not watcher.done():
                watcher.cancel()
            await asyncio.gather(watcher, return_exceptions=True)

        stdout = "".join(stdout_chunks)
        stderr = "".join(stderr_chunks)

        if event == "timeout":
            logger.debug("[Spawn] pid %s timed out after %ss", proc.pid, timeout)
            raise ExecutionFailedError.from_timeout(timeout, stdout, stderr)
        if event == "error":
            raise ExecutionFailedError(
                f"Process I/O error: {value}", stdout=stdout, stderr=stderr,
            ) from value

        logger.debug("[Spawn Close] Exit code: %s", value)
        logger.debug("[Spawn Stderr Full] %s", stderr.strip())
        logger.debug("[Spawn Stdout Full] %s", stdout.strip())
        if value != 0:
            raise ExecutionFailedError.from_exit(value, stdout, stderr)
        return ProcessOutcome(stdout=stdout, stderr=stderr, exit_code=value)

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        """SIGTERM the child, escalating to SIGKILL after the grace period."""
        try:
            proc.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(proc.wait(), self._kill_grace_seconds)
            return
        except asyncio.TimeoutError:
            logger.warning(
                "Process %s ignored SIGTERM for %ss; killing it",
                proc.pid, self._kill_grace_seconds,
            )
        try:
            proc.kill()
        except ProcessLookupError:
            return
        await proc.wait()

    async def _finish_readers(self, readers: list[asyncio.Task]) -> None:
        # Grandchildren can keep the pipes open after the child is gone.
        _, pending = await asyncio.wait(readers, timeout=self._drain_grace_seconds)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

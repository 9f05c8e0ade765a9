"""Exception hierarchy for the Claude Code MCP bridge.

Specific exceptions for each failure mode. Malformed CLI output is
deliberately absent: it is logged and degraded to raw text, never
raised.
"""
from __future__ import annotations

import errno

SPAWN_SYSCALL = "exec"


class ClaudeCodeMcpError(Exception):
    """Base exception for all bridge errors."""


class ConfigurationError(ClaudeCodeMcpError):
    """Server configuration is unusable (raised at startup)."""


class InvalidInputError(ClaudeCodeMcpError):
    """Caller supplied a missing, mistyped or inaccessible argument."""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ExecutionFailedError(ClaudeCodeMcpError):
    """The CLI could not be launched, exited non-zero, or timed out."""
    def __init__(
        self,
        message: str,
        *,
        stdout: str = "",
        stderr: str = "",
        exit_code: int | None = None,
        timed_out: bool = False,
        timeout_seconds: float | None = None,
        spawn_errno: int | None = None,
        path: str | None = None,
    ):
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code
        self.timed_out = timed_out
        self.timeout_seconds = timeout_seconds
        self.spawn_errno = spawn_errno
        self.path = path
        super().__init__(message)

    @property
    def spawn_error(self) -> bool:
        """True when the process never started."""
        return self.spawn_errno is not None

    @property
    def not_found(self) -> bool:
        return self.spawn_errno == errno.ENOENT

    @classmethod
    def from_spawn(
        cls, exc: OSError, executable: str, stderr: str = ""
    ) -> ExecutionFailedError:
        code = errno.errorcode.get(exc.errno, str(exc.errno)) if exc.errno else None
        path = exc.filename or executable
        # OSError does not name the failing call; launching is always exec.
        message = f"Spawn error: {exc.strerror or exc}"
        message += f" | Syscall: {SPAWN_SYSCALL} | Path: {path}"
        if code:
            message += f" | Code: {code}"
        return cls(
            message,
            stderr=stderr,
            spawn_errno=exc.errno if exc.errno is not None else -1,
            path=str(path),
        )

    @classmethod
    def from_exit(
        cls, exit_code: int | None, stdout: str, stderr: str
    ) -> ExecutionFailedError:
        return cls(
            f"Command failed with exit code {exit_code}",
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
        )

    @classmethod
    def from_timeout(
        cls, timeout_seconds: float, stdout: str, stderr: str
    ) -> ExecutionFailedError:
        return cls(
            f"Command timed out after {timeout_seconds:g}s and was terminated",
            stdout=stdout,
            stderr=stderr,
            timed_out=True,
            timeout_seconds=timeout_seconds,
        )

"""Data models for one tool invocation.

Requests, process outcomes and normalized results are created per
call and never shared between calls.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from .errors import ExecutionFailedError, InvalidInputError

T = TypeVar("T")


@dataclass(frozen=True)
class InvocationRequest:
    """Validated arguments of a claude_code / claude_code_reply call."""
    prompt: str
    work_folder: str
    resume_session_id: str | None = None

    @property
    def is_resume(self) -> bool:
        return self.resume_session_id is not None


@dataclass(frozen=True)
class ProcessOutcome:
    """Captured output of a child process that exited with code 0."""
    stdout: str
    stderr: str
    exit_code: int | None = 0


@dataclass
class NormalizedResult:
    """The CLI's answer, reduced to what the bridge exposes.

    result_text is always set (raw stdout when the structured record
    could not be read). session_id and is_error are only set when the
    CLI itself declared them.
    """
    result_text: str
    session_id: str | None = None
    is_error: bool | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: InvalidInputError | ExecutionFailedError


Outcome = Union[Ok[NormalizedResult], Err]

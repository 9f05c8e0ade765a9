"""Abstract base for CLI providers.

A provider wraps one external coding assistant. The request handler
calls send_message() for both fresh and resumed conversations; the
provider owns the argument vector, the child process and the output
format.
"""
from __future__ import annotations

import abc
import logging
import shutil

from ..models import NormalizedResult

logger = logging.getLogger(__name__)


class Provider(abc.ABC):
    """Abstract provider interface."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Short provider name (e.g. 'claude')."""

    @abc.abstractmethod
    async def send_message(
        self,
        prompt: str,
        *,
        cwd: str,
        thread_id: str | None = None,
    ) -> NormalizedResult:
        """Run one conversation turn.

        If thread_id is None, starts a new conversation.
        If thread_id is provided, continues an existing one.

        Returns a NormalizedResult whose session_id can be passed back
        as thread_id on the next call. Raises ExecutionFailedError when
        the CLI cannot run or fails.
        """

    @property
    @abc.abstractmethod
    def command(self) -> str:
        """The executable this provider launches."""

    def is_available(self) -> bool:
        """Check if the provider's CLI can be found.

        Absolute paths are checked on disk, bare names on PATH.
        """
        return shutil.which(self.command) is not None

    async def shutdown(self) -> None:
        """Clean up resources.

        Default no-op. Nothing outlives a single call in the CLI
        providers; children are reaped by the process runner.
        """
        return None

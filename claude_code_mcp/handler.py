"""Session-aware request handling for claude_code / claude_code_reply.

Each call goes Validating -> ResolvingWorkFolder -> Invoking ->
Interpreting and returns a tagged Outcome: Ok(NormalizedResult) or
Err(InvalidInputError | ExecutionFailedError). Protocol-level error
codes are chosen by the MCP layer from the error type.

The only state shared between calls lives on ServerContext: the
resolver's cached executable path and the first-call banner flag.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from . import __version__
from .config import BridgeConfig
from .errors import ExecutionFailedError, InvalidInputError
from .models import Err, InvocationRequest, Ok, Outcome
from .providers.base import Provider
from .resolver import ExecutableResolver

logger = logging.getLogger(__name__)


@dataclass
class ServerContext:
    """Process-scoped state, built once by the server lifespan."""
    config: BridgeConfig
    resolver: ExecutableResolver
    version: str = __version__
    started_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    _first_call_pending: bool = field(default=True, repr=False)

    @classmethod
    def from_config(cls, config: BridgeConfig) -> ServerContext:
        return cls(config=config, resolver=ExecutableResolver(config.cli_name))

    def announce_first_call(self) -> bool:
        """Log the version banner on the first tool call only."""
        if not self._first_call_pending:
            return False
        self._first_call_pending = False
        logger.info("claude_code v%s started at %s", self.version, self.started_at)
        return True


def resolve_work_folder(work_folder: Any, home: str | None = None) -> str:
    """Effective CWD for the child process.

    Non-string values are ignored and fall back to the home directory,
    like an absent argument.
    """
    default = home or str(Path.home())
    if isinstance(work_folder, str):
        if not work_folder.strip():
            raise InvalidInputError("workFolder cannot be an empty string")
        resolved = os.path.abspath(os.path.expanduser(work_folder))
        logger.debug("Specified workFolder: %s, resolved to: %s", work_folder, resolved)
        if not os.path.exists(resolved):
            raise InvalidInputError(f"Specified workFolder does not exist: {resolved}")
        if not os.path.isdir(resolved):
            raise InvalidInputError(f"Specified workFolder is not a directory: {resolved}")
        return resolved
    if work_folder is not None:
        logger.debug(
            "Ignoring non-string workFolder of type %s", type(work_folder).__name__
        )
    logger.debug("No workFolder provided, using default CWD: %s", default)
    return default


def _require_prompt(arguments: Mapping[str, Any], tool_name: str) -> str:
    prompt = arguments.get("prompt")
    if not isinstance(prompt, str):
        raise InvalidInputError(
            "Missing or invalid required parameter: prompt "
            f"(must be a string) for {tool_name} tool"
        )
    return prompt


def build_start_request(
    arguments: Mapping[str, Any] | None, home: str | None = None
) -> InvocationRequest:
    """Validate claude_code arguments."""
    arguments = arguments or {}
    prompt = _require_prompt(arguments, "claude_code")
    cwd = resolve_work_folder(arguments.get("workFolder"), home)
    return InvocationRequest(prompt=prompt, work_folder=cwd)


def build_resume_request(
    arguments: Mapping[str, Any] | None, home: str | None = None
) -> InvocationRequest:
    """Validate claude_code_reply arguments."""
    arguments = arguments or {}
    thread_id = arguments.get("threadId")
    if not isinstance(thread_id, str) or not thread_id:
        raise InvalidInputError("Missing or invalid required parameter: threadId")
    prompt = _require_prompt(arguments, "claude_code_reply")
    cwd = resolve_work_folder(arguments.get("workFolder"), home)
    return InvocationRequest(
        prompt=prompt, work_folder=cwd, resume_session_id=thread_id,
    )


class SessionAwareHandler:
    """Drives one provider call per request and tags the outcome."""

    def __init__(
        self,
        context: ServerContext,
        provider: Provider,
        home: str | None = None,
    ) -> None:
        self._context = context
        self._provider = provider
        self._home = home

    @property
    def context(self) -> ServerContext:
        return self._context

    @property
    def provider(self) -> Provider:
        return self._provider

    async def start(self, arguments: Mapping[str, Any] | None) -> Outcome:
        try:
            request = build_start_request(arguments, self._home)
        except InvalidInputError as exc:
            return Err(exc)
        return await self.invoke(request)

    async def resume(self, arguments: Mapping[str, Any] | None) -> Outcome:
        try:
            request = build_resume_request(arguments, self._home)
        except InvalidInputError as exc:
            return Err(exc)
        return await self.invoke(request)

    async def invoke(self, request: InvocationRequest) -> Outcome:
        try:
            result = await self._provider.send_message(
                request.prompt,
                cwd=request.work_folder,
                thread_id=request.resume_session_id,
            )
        except ExecutionFailedError as exc:
            logger.debug("Error executing Claude CLI: %s", exc)
            return Err(exc)
        return Ok(result)

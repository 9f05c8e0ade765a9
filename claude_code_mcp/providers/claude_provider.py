"""Claude Code CLI provider.

Runs `claude -p --output-format json` as a one-shot child process and
resumes earlier conversations with `--resume <session_id>`.
"""
from __future__ import annotations

import logging

from ..config import DEFAULT_EXECUTION_TIMEOUT_SECONDS
from ..models import NormalizedResult
from ..output_parser import parse_claude_output
from ..process_runner import ProcessRunner
from .base import Provider

logger = logging.getLogger(__name__)

# Fixed flags, in order: skip permission prompts, non-interactive
# print mode, structured output.
BASE_FLAGS: tuple[str, ...] = (
    "--dangerously-skip-permissions",
    "-p",
    "--output-format",
    "json",
)
RESUME_FLAG = "--resume"


def build_claude_args(prompt: str, thread_id: str | None = None) -> list[str]:
    """Argument vector for one turn. The prompt is always last, verbatim."""
    args = list(BASE_FLAGS)
    if thread_id is not None:
        args.extend([RESUME_FLAG, thread_id])
    args.append(prompt)
    return args


class ClaudeCliProvider(Provider):
    """Provider backed by the Claude Code CLI.

    The CLI persists conversations itself; this provider only threads
    the session id it prints back into --resume.
    """

    def __init__(
        self,
        command: str,
        runner: ProcessRunner | None = None,
        timeout_seconds: float = DEFAULT_EXECUTION_TIMEOUT_SECONDS,
    ) -> None:
        self._command = command
        self._runner = runner or ProcessRunner()
        self._timeout_seconds = timeout_seconds

    @property
    def name(self) -> str:
        return "claude"

    @property
    def command(self) -> str:
        return self._command

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    async def send_message(
        self,
        prompt: str,
        *,
        cwd: str,
        thread_id: str | None = None,
    ) -> NormalizedResult:
        args = build_claude_args(prompt, thread_id)
        if thread_id is not None:
            logger.debug(
                "Resuming session %s with prompt %r in CWD %s",
                thread_id, prompt, cwd,
            )
        else:
            logger.debug("Executing Claude CLI with prompt %r in CWD %s", prompt, cwd)

        outcome = await self._runner.run(
            self._command,
            args,
            timeout=self._timeout_seconds,
            cwd=cwd,
        )
        logger.debug("Claude CLI stdout: %s", outcome.stdout.strip())
        if outcome.stderr:
            logger.debug("Claude CLI stderr: %s", outcome.stderr.strip())

        result = parse_claude_output(outcome.stdout)
        if result.metadata:
            logger.debug(
                "Claude CLI run metadata: duration_ms=%s total_cost_usd=%s",
                result.metadata.get("duration_ms"),
                result.metadata.get("total_cost_usd"),
            )
        return result

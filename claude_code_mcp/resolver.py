"""Locate the claude executable.

Priority:
    1. CLAUDE_CLI_NAME override: absolute paths are used verbatim,
       relative paths are rejected, bare names replace the default.
    2. The per-user local install at ~/.claude/local/claude.
    3. The (possibly overridden) bare command name, left to the
       PATH lookup performed when the process is launched.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CLI_NAME = "claude"


def local_install_path(home: Path | None = None) -> Path:
    """Conventional per-user install location of the claude CLI."""
    return (home or Path.home()) / ".claude" / "local" / "claude"


def _looks_relative(name: str) -> bool:
    if name.startswith(("./", "../", ".\\", "..\\")):
        return True
    separators = {"/", os.sep}
    if os.altsep:
        separators.add(os.altsep)
    return any(sep in name for sep in separators)


class ExecutableResolver:
    """Resolves the claude command once and caches the answer.

    The cache is write-once: the first successful resolve() fixes the
    path for the rest of the process lifetime.
    """

    def __init__(
        self,
        cli_name: str | None = None,
        home: Path | None = None,
    ) -> None:
        self._cli_name = cli_name
        self._home = home
        self._resolved: str | None = None

    def resolve(self) -> str:
        if self._resolved is None:
            self._resolved = self._find()
        return self._resolved

    def _find(self) -> str:
        logger.debug("Attempting to find Claude CLI...")
        custom = self._cli_name
        if custom:
            logger.debug("Using custom Claude CLI name from CLAUDE_CLI_NAME: %s", custom)
            if os.path.isabs(custom):
                logger.debug("CLAUDE_CLI_NAME is an absolute path: %s", custom)
                return custom
            if _looks_relative(custom):
                raise ConfigurationError(
                    "Invalid CLAUDE_CLI_NAME: Relative paths are not allowed. "
                    "Use either a simple name (e.g., 'claude') or an absolute "
                    "path (e.g., '/tmp/claude-test')"
                )

        cli_name = custom or DEFAULT_CLI_NAME

        user_path = local_install_path(self._home)
        logger.debug("Checking for Claude CLI at local user path: %s", user_path)
        if user_path.exists():
            logger.debug("Found Claude CLI at local user path: %s", user_path)
            return str(user_path)
        logger.debug("Claude CLI not found at local user path: %s", user_path)

        logger.warning(
            "Claude CLI not found at %s. Falling back to %r in PATH. "
            "Ensure it is installed and accessible.",
            user_path, cli_name,
        )
        return cli_name

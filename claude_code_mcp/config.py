"""Configuration loaded from environment variables.

All settings have sensible defaults. Read once at startup; nothing
re-reads the environment per call.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}

# 30 minutes
DEFAULT_EXECUTION_TIMEOUT_SECONDS = 1800.0


def parse_bool(value: str | bool | None) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in _TRUTHY


def parse_timeout(value: object, source: str) -> float:
    try:
        timeout = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"Invalid {source}: expected a number of seconds, got {value!r}"
        ) from exc
    if timeout <= 0:
        raise ConfigurationError(
            f"Invalid {source}: timeout must be positive, got {value!r}"
        )
    return timeout


@dataclass
class BridgeConfig:
    """Claude Code MCP bridge configuration."""

    # Override for the claude executable: a bare command name or an
    # absolute path. Relative paths are rejected by the resolver.
    cli_name: str | None = None

    # Verbose diagnostics (DEBUG logging)
    debug: bool = False

    # Absolute wall-clock limit for one CLI invocation.
    execution_timeout_seconds: float = DEFAULT_EXECUTION_TIMEOUT_SECONDS

    # Optional log file in addition to stderr.
    log_file: str | None = None

    @classmethod
    def from_env(cls) -> BridgeConfig:
        """Load configuration from CLAUDE_CLI_NAME / MCP_CLAUDE_* env vars."""
        config = cls(
            cli_name=os.getenv("CLAUDE_CLI_NAME") or None,
            debug=parse_bool(os.getenv("MCP_CLAUDE_DEBUG")),
            execution_timeout_seconds=parse_timeout(
                os.getenv(
                    "MCP_CLAUDE_TIMEOUT",
                    str(cls.execution_timeout_seconds),
                ),
                "MCP_CLAUDE_TIMEOUT",
            ),
            log_file=os.getenv("MCP_CLAUDE_LOG_FILE") or None,
        )
        logger.debug(
            "BridgeConfig.from_env: cli_name=%s debug=%s timeout=%ss",
            config.cli_name, config.debug, config.execution_timeout_seconds,
        )
        return config

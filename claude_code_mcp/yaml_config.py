"""YAML configuration loader.

Loads a single YAML file that replaces the CLAUDE_CLI_NAME /
MCP_CLAUDE_* env vars. When no file is provided, env vars work
exactly as before.

Example YAML:
    server:
      cli_name: /opt/claude/bin/claude
      debug: true
      execution_timeout_seconds: 900
      log_file: ~/.claude-code-mcp/server.log
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from .config import BridgeConfig, parse_bool, parse_timeout
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_KNOWN_KEYS = {"cli_name", "debug", "execution_timeout_seconds", "log_file"}


def load_yaml_config(path: str | Path) -> BridgeConfig:
    """Load and validate a YAML config file into a BridgeConfig."""
    path = Path(path).expanduser()
    logger.debug("load_yaml_config: loading %s (exists=%s)", path, path.exists())
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError as exc:
        raise ConfigurationError(
            f"Config file not found: {path.absolute()}"
        ) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"YAML parse error in {path}: {exc}"
        ) from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a mapping at the top level"
        )

    server_raw = raw.get("server") or {}
    if not isinstance(server_raw, dict):
        raise ConfigurationError(f"'server' section in {path} must be a mapping")

    unknown = sorted(set(server_raw) - _KNOWN_KEYS)
    if unknown:
        logger.warning(
            "Ignoring unknown keys in %s server section: %s",
            path.name, ", ".join(unknown),
        )

    cli_name = server_raw.get("cli_name")
    if cli_name is not None and not isinstance(cli_name, str):
        raise ConfigurationError(
            f"server.cli_name in {path} must be a string, got {cli_name!r}"
        )

    log_file = server_raw.get("log_file")
    config = BridgeConfig(
        cli_name=cli_name or None,
        debug=parse_bool(server_raw.get("debug", False)),
        execution_timeout_seconds=parse_timeout(
            server_raw.get(
                "execution_timeout_seconds",
                BridgeConfig.execution_timeout_seconds,
            ),
            "server.execution_timeout_seconds",
        ),
        log_file=os.path.expanduser(str(log_file)) if log_file else None,
    )
    logger.info(
        "Loaded YAML config %s (cli_name=%s, timeout=%ss)",
        path.name, config.cli_name, config.execution_timeout_seconds,
    )
    return config

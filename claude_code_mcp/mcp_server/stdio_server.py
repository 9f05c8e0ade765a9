"""Stdio MCP server exposing the Claude Code CLI.

Usage:
    # Via .mcp.json / client config (recommended)
    # Or manually:
    python -m claude_code_mcp
    python -m claude_code_mcp --config ~/.claude-code-mcp.yaml
    claude-code-mcp --verbose --log-file /tmp/claude-code-mcp.log

Environment (ignored when a config file is given):
    CLAUDE_CLI_NAME      executable name or absolute path
    MCP_CLAUDE_DEBUG     "true" for debug logging
    MCP_CLAUDE_TIMEOUT   per-call timeout in seconds (default 1800)
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from .. import __version__
from ..config import BridgeConfig
from ..errors import ConfigurationError
from ..handler import ServerContext, SessionAwareHandler
from ..providers.claude_provider import ClaudeCliProvider
from ..yaml_config import load_yaml_config
from .tools import register_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "claude_code"
LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI args for the MCP server process."""
    parser = argparse.ArgumentParser(
        prog="claude-code-mcp",
        description="MCP server that runs the Claude Code CLI as a tool",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=(
            "YAML config file (replaces CLAUDE_CLI_NAME / MCP_CLAUDE_* env "
            "vars). Also reads MCP_CLAUDE_CONFIG_FILE env var."
        ),
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write logs to this file",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> BridgeConfig:
    """Config file if given, environment otherwise; CLI flags on top."""
    config_file = args.config or os.getenv("MCP_CLAUDE_CONFIG_FILE")
    if config_file:
        config = load_yaml_config(config_file)
    else:
        config = BridgeConfig.from_env()
    if args.verbose:
        config.debug = True
    if args.log_file:
        config.log_file = args.log_file
    return config


def configure_logging(config: BridgeConfig) -> None:
    # Logging must go to stderr (stdout is the stdio transport)
    level = logging.DEBUG if config.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    if config.log_file:
        try:
            file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        except OSError as exc:
            logger.warning("Cannot open log file %s: %s", config.log_file, exc)
            return
        file_handler.setFormatter(
            logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        logging.getLogger().addHandler(file_handler)


def build_handler(config: BridgeConfig) -> SessionAwareHandler:
    """Resolve the executable and wire the request handler.

    Raises ConfigurationError for an unusable CLAUDE_CLI_NAME.
    """
    context = ServerContext.from_config(config)
    command = context.resolver.resolve()
    logger.info("[Setup] Using Claude CLI command/path: %s", command)
    provider = ClaudeCliProvider(
        command=command,
        timeout_seconds=config.execution_timeout_seconds,
    )
    if not provider.is_available():
        # Not fatal: the binary may be installed after startup.
        logger.warning(
            "[Setup] %s CLI %r not found; tool calls will fail until it is installed",
            provider.name, command,
        )
    return SessionAwareHandler(context, provider)


def create_server(handler: SessionAwareHandler) -> Server:
    """Low-level MCP server with the two tools registered."""

    @asynccontextmanager
    async def lifespan(_server: Server) -> AsyncIterator[dict[str, Any]]:
        logger.info(
            "Claude Code MCP server initialized (version=%s, timeout=%ss)",
            handler.context.version,
            handler.context.config.execution_timeout_seconds,
        )
        try:
            yield {"context": handler.context, "handler": handler}
        finally:
            await handler.provider.shutdown()
            logger.info("Claude Code MCP server shut down")

    server: Server = Server(SERVER_NAME, version=__version__, lifespan=lifespan)
    register_tools(server)
    return server


async def serve(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        logger.info("Claude Code MCP server running on stdio")
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def main(argv: list[str] | None = None) -> None:
    """Entry point for the MCP server."""
    args = _parse_args(argv)
    try:
        config = load_config(args)
    except ConfigurationError as exc:
        print(f"[Fatal] {exc}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config)
    try:
        handler = build_handler(config)
    except ConfigurationError as exc:
        logger.error("[Fatal] Server failed to start: %s", exc)
        sys.exit(1)

    try:
        asyncio.run(serve(create_server(handler)))
    except KeyboardInterrupt:
        logger.info("Interrupted; exiting")
    except Exception:
        logger.exception("Fatal stdio MCP server error (pid=%s)", os.getpid())
        raise


if __name__ == "__main__":
    main()

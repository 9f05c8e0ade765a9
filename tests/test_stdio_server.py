"""Tests for server wiring and an end-to-end stdio session."""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest
from mcp import ClientSession, StdioServerParameters, types
from mcp.client.stdio import stdio_client
from mcp.shared.exceptions import McpError

from claude_code_mcp.config import BridgeConfig
from claude_code_mcp.errors import ConfigurationError
from claude_code_mcp.mcp_server.stdio_server import (
    SERVER_NAME,
    _parse_args,
    build_handler,
    create_server,
    load_config,
    main,
)
from claude_code_mcp.providers.claude_provider import ClaudeCliProvider


def test_load_config_from_env(monkeypatch) -> None:
    monkeypatch.delenv("MCP_CLAUDE_CONFIG_FILE", raising=False)
    monkeypatch.setenv("CLAUDE_CLI_NAME", "claude-nightly")
    cfg = load_config(_parse_args([]))
    assert cfg.cli_name == "claude-nightly"
    assert cfg.debug is False


def test_load_config_file_ignores_env(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CLAUDE_CLI_NAME", "from-env")
    config_path = tmp_path / "cfg.yaml"
    config_path.write_text("server:\n  cli_name: from-file\n")
    cfg = load_config(_parse_args(["--config", str(config_path), "--verbose"]))
    assert cfg.cli_name == "from-file"
    assert cfg.debug is True


def test_build_handler_resolves_once() -> None:
    handler = build_handler(BridgeConfig(cli_name="/opt/claude", execution_timeout_seconds=42))
    provider = handler.provider
    assert isinstance(provider, ClaudeCliProvider)
    assert provider.command == "/opt/claude"
    assert provider.timeout_seconds == 42
    assert handler.context.resolver.resolve() == "/opt/claude"


def test_build_handler_rejects_relative_cli_name() -> None:
    with pytest.raises(ConfigurationError):
        build_handler(BridgeConfig(cli_name="./claude"))


def test_build_handler_warns_when_cli_missing(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="claude_code_mcp.mcp_server.stdio_server"):
        build_handler(BridgeConfig(cli_name="/nonexistent/bin/claude"))
    assert "claude CLI '/nonexistent/bin/claude' not found" in caplog.text


def test_build_handler_quiet_when_cli_present(fake_claude: Path, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="claude_code_mcp.mcp_server.stdio_server"):
        build_handler(BridgeConfig(cli_name=str(fake_claude)))
    assert "not found" not in caplog.text


def test_main_exits_on_relative_cli_name(monkeypatch) -> None:
    monkeypatch.delenv("MCP_CLAUDE_CONFIG_FILE", raising=False)
    monkeypatch.setenv("CLAUDE_CLI_NAME", "../claude")
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 1


def test_create_server_uses_tool_server_name() -> None:
    server = create_server(build_handler(BridgeConfig(cli_name="/opt/claude")))
    assert server.name == SERVER_NAME


@pytest.mark.asyncio
async def test_stdio_session_start_and_reply(fake_claude: Path, tmp_path: Path) -> None:
    env = dict(os.environ)
    env["CLAUDE_CLI_NAME"] = str(fake_claude)
    env.pop("MCP_CLAUDE_CONFIG_FILE", None)
    params = StdioServerParameters(
        command=sys.executable, args=["-m", "claude_code_mcp"], env=env,
    )
    async with stdio_client(params) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            tools = await session.list_tools()
            assert {t.name for t in tools.tools} == {"claude_code", "claude_code_reply"}

            first = await session.call_tool(
                "claude_code", {"prompt": "hello", "workFolder": str(tmp_path)},
            )
            assert first.isError is False
            assert first.content[0].text == "echo: hello"
            assert first.structuredContent == {"threadId": "abc123", "content": "echo: hello"}

            second = await session.call_tool(
                "claude_code_reply",
                {"threadId": "abc123", "prompt": "more", "workFolder": str(tmp_path)},
            )
            assert second.content[0].text == "echo: more"
            assert second.structuredContent["threadId"] == "abc123"

            with pytest.raises(McpError) as exc_info:
                await session.call_tool("claude_code", {"prompt": "x", "workFolder": ""})
            assert exc_info.value.error.code == types.INVALID_PARAMS
            assert "workFolder cannot be an empty string" in exc_info.value.error.message

            with pytest.raises(McpError) as exc_info:
                await session.call_tool(
                    "claude_code", {"prompt": "fail please", "workFolder": str(tmp_path)},
                )
            assert exc_info.value.error.code == types.INTERNAL_ERROR
            assert "boom" in exc_info.value.error.message

            with pytest.raises(McpError) as exc_info:
                await session.call_tool("nope", {})
            assert exc_info.value.error.code == types.METHOD_NOT_FOUND

"""Claude Code MCP — the Claude Code CLI as MCP tools with session threading."""
__version__ = "2.0.0"

__all__ = [
    "__version__",
    # Config
    "BridgeConfig",
    "load_yaml_config",
    # Core (lazy import)
    "ExecutableResolver",
    "ProcessRunner",
    "parse_claude_output",
    "SessionAwareHandler",
    "ServerContext",
    "ClaudeCliProvider",
    # Models
    "InvocationRequest",
    "NormalizedResult",
    "ProcessOutcome",
    # Errors
    "ClaudeCodeMcpError",
    "ConfigurationError",
    "ExecutionFailedError",
    "InvalidInputError",
]

_LAZY = {
    "BridgeConfig": ".config",
    "load_yaml_config": ".yaml_config",
    "ExecutableResolver": ".resolver",
    "ProcessRunner": ".process_runner",
    "parse_claude_output": ".output_parser",
    "SessionAwareHandler": ".handler",
    "ServerContext": ".handler",
    "ClaudeCliProvider": ".providers.claude_provider",
    "InvocationRequest": ".models",
    "NormalizedResult": ".models",
    "ProcessOutcome": ".models",
    "ClaudeCodeMcpError": ".errors",
    "ConfigurationError": ".errors",
    "ExecutionFailedError": ".errors",
    "InvalidInputError": ".errors",
}


def __getattr__(name: str):
    module_name = _LAZY.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    import importlib

    module = importlib.import_module(module_name, __name__)
    return getattr(module, name)

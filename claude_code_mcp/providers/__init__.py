"""Provider abstraction for the CLI being bridged."""
from .base import Provider
from .claude_provider import ClaudeCliProvider, build_claude_args

__all__ = [
    "Provider",
    "ClaudeCliProvider",
    "build_claude_args",
]

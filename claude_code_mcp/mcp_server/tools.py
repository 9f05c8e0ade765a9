"""MCP tool definitions for the Claude Code bridge.

Exposed:
    claude_code        start a new Claude Code conversation
    claude_code_reply  continue one by its threadId

Responses carry a non-standard ``structuredContent`` extension,
``{"threadId": ..., "content": ...}``, whenever the CLI returned a
session id. Clients that don't know the field ignore it.
"""
from __future__ import annotations

import logging
from typing import Any

from mcp import types
from mcp.server.lowlevel import Server
from mcp.shared.exceptions import McpError

from ..errors import ExecutionFailedError, InvalidInputError
from ..handler import SessionAwareHandler
from ..models import Err, NormalizedResult, Ok, Outcome

logger = logging.getLogger(__name__)

START_TOOL = "claude_code"
REPLY_TOOL = "claude_code_reply"

# Bound on stderr/stdout echoed back in error messages.
EXCERPT_CHARS = 4000

NOT_FOUND_HINT = (
    "Claude CLI not found. Ensure it is installed and in your PATH, "
    "or set CLAUDE_CLI_NAME."
)

START_DESCRIPTION = """Claude Code Agent: Your versatile multi-modal assistant for code, file, Git, and terminal operations via Claude CLI. Use `workFolder` for contextual execution.

• File ops: Create, read, (fuzzy) edit, move, copy, delete, list files, analyze/ocr images, file content analysis
    └─ e.g., "Create /tmp/log.txt with 'system boot'", "Edit main.py to replace 'debug_mode = True' with 'debug_mode = False'", "List files in /src"

• Code: Generate / analyse / refactor / fix
    └─ e.g. "Generate Python to parse CSV→JSON", "Find bugs in my_script.py"

• Git: Stage ▸ commit ▸ push ▸ tag (any workflow)

• Terminal: Run any CLI cmd or open URLs

• Multi-step workflows (version bumps, changelog updates, release tagging, etc.)

**Prompt tips**

1. Be concise, explicit & step-by-step for complex tasks.
2. For multi-line text, write it to a temporary file in the project root, use that file, then delete it.
3. If you get a timeout, split the task into smaller steps.
4. For a second opinion, state in the prompt that you want analysis only and no file modifications.
5. If workFolder is set to the project path, use relative paths for files in the prompt.
6. The response includes a threadId (structuredContent) when the CLI reports a session; pass it to claude_code_reply to continue.
"""

REPLY_DESCRIPTION = (
    "Continue a Claude Code conversation by providing the thread ID and a "
    "new prompt. Use this to send follow-up instructions that build on "
    "prior context from a previous claude_code call. If the original call "
    "used a workFolder, provide the same workFolder here to maintain "
    "execution context."
)


def list_tool_definitions() -> list[types.Tool]:
    return [
        types.Tool(
            name=START_TOOL,
            description=START_DESCRIPTION,
            inputSchema={
                "type": "object",
                "properties": {
                    "prompt": {
                        "type": "string",
                        "description": "The detailed natural language prompt for Claude to execute.",
                    },
                    "workFolder": {
                        "type": "string",
                        "description": (
                            "Mandatory when using file operations or referencing any file. "
                            "The working directory for the Claude CLI execution. "
                            "Must be an absolute path."
                        ),
                    },
                },
                "required": ["prompt"],
            },
        ),
        types.Tool(
            name=REPLY_TOOL,
            description=REPLY_DESCRIPTION,
            inputSchema={
                "type": "object",
                "properties": {
                    "threadId": {
                        "type": "string",
                        "description": "The thread/session ID from a previous claude_code or claude_code_reply call.",
                    },
                    "prompt": {
                        "type": "string",
                        "description": "The follow-up prompt to continue the conversation.",
                    },
                    "workFolder": {
                        "type": "string",
                        "description": (
                            "The working directory for execution. Should match the "
                            "workFolder from the original claude_code call. "
                            "Must be an absolute path."
                        ),
                    },
                },
                "required": ["threadId", "prompt"],
            },
        ),
    ]


def build_response(result: NormalizedResult) -> types.CallToolResult:
    """Wrap a NormalizedResult as an MCP tool result."""
    structured: dict[str, Any] | None = None
    if result.session_id:
        structured = {"threadId": result.session_id, "content": result.result_text}
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=result.result_text)],
        structuredContent=structured,
        isError=bool(result.is_error),
    )


def _excerpt(text: str) -> str:
    text = text.strip()
    if len(text) <= EXCERPT_CHARS:
        return text
    return "...[truncated]...\n" + text[-EXCERPT_CHARS:]


def describe_execution_failure(error: ExecutionFailedError) -> str:
    """Failure message enriched with captured output and hints."""
    message = str(error) or "Unknown error"
    if error.stderr.strip():
        message += f"\nStderr: {_excerpt(error.stderr)}"
    if error.stdout.strip():
        message += f"\nStdout: {_excerpt(error.stdout)}"
    if error.not_found:
        message += f"\n{NOT_FOUND_HINT}"
    return message


def to_mcp_error(error: InvalidInputError | ExecutionFailedError) -> McpError:
    """Translate a handler error into the protocol's error representation."""
    if isinstance(error, InvalidInputError):
        return McpError(types.ErrorData(code=types.INVALID_PARAMS, message=error.reason))

    details = describe_execution_failure(error)
    if error.timed_out:
        message = (
            f"Claude CLI command timed out after {error.timeout_seconds:g}s. "
            f"Details: {details}"
        )
    else:
        message = f"Claude CLI execution failed: {details}"
    return McpError(types.ErrorData(code=types.INTERNAL_ERROR, message=message))


def outcome_to_result(outcome: Outcome) -> types.CallToolResult:
    """Return the tool result for Ok, raise McpError for Err."""
    if isinstance(outcome, Ok):
        return build_response(outcome.value)
    if isinstance(outcome, Err):
        raise to_mcp_error(outcome.error)
    raise TypeError(f"Unexpected outcome type: {type(outcome).__name__}")


async def dispatch_tool_call(
    handler: SessionAwareHandler,
    name: str,
    arguments: dict[str, Any] | None,
) -> types.CallToolResult:
    """Route one tools/call request to the handler."""
    logger.debug("Handling CallToolRequest: %s", name)
    if name not in (START_TOOL, REPLY_TOOL):
        raise McpError(
            types.ErrorData(code=types.METHOD_NOT_FOUND, message=f"Tool {name} not found")
        )

    handler.context.announce_first_call()

    if name == REPLY_TOOL:
        outcome = await handler.resume(arguments)
    else:
        outcome = await handler.start(arguments)

    if isinstance(outcome, Err):
        log = logger.info if isinstance(outcome.error, InvalidInputError) else logger.error
        log("%s failed: %s", name, outcome.error)
    return outcome_to_result(outcome)


def register_tools(server: Server) -> None:
    """Register list_tools / call_tool handlers on the low-level server.

    The handler is taken from the lifespan context on every request.
    """

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return list_tool_definitions()

    # Installed directly rather than through @server.call_tool(), which
    # folds every exception into an isError result. McpError raised here
    # reaches the client as a JSON-RPC error with its code intact.
    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        handler: SessionAwareHandler = server.request_context.lifespan_context["handler"]
        result = await dispatch_tool_call(handler, req.params.name, req.params.arguments)
        return types.ServerResult(result)

    server.request_handlers[types.CallToolRequest] = call_tool
